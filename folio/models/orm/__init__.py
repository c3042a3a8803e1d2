"""SQLAlchemy ORM Models for Folio.

Pure database models using SQLAlchemy 2.0 declarative style.
"""

from folio.models.orm.attachment import Attachment
from folio.models.orm.base import Base
from folio.models.orm.document import Document
from folio.models.orm.team import Team
from folio.models.orm.user import User

__all__ = [
    "Base",
    "Team",
    "User",
    "Document",
    "Attachment",
]
