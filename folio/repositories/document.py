"""
Document Repository

Read access to documents for attachment authorization.
"""

from folio.models.orm.document import Document
from folio.repositories.base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Repository for Document model operations."""

    model = Document
