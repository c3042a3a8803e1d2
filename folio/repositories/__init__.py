"""Data access repositories."""

from folio.repositories.attachment import AttachmentRepository
from folio.repositories.document import DocumentRepository

__all__ = [
    "AttachmentRepository",
    "DocumentRepository",
]
