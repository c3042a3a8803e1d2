"""
Attachment ORM model.

Represents a binary object in storage plus the metadata needed to resolve
it. ``size == 0`` with an ``application/octet-stream`` content type means
the bytes have not been written yet.
"""

from datetime import UTC, datetime
from urllib.parse import quote
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from folio.config import get_settings
from folio.models.enums import AttachmentACL
from folio.models.orm.base import Base

PLACEHOLDER_CONTENT_TYPE = "application/octet-stream"


class Attachment(Base):
    """Attachment database table."""

    __tablename__ = "attachments"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    key: Mapped[str] = mapped_column(String(4096), nullable=False, unique=True)
    acl: Mapped[str] = mapped_column(String(50), nullable=False, default=AttachmentACL.PRIVATE.value)
    content_type: Mapped[str] = mapped_column(
        String(255), nullable=False, default=PLACEHOLDER_CONTENT_TYPE
    )
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    last_accessed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    document_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("documents.id", ondelete="SET NULL"),
        nullable=True,
    )
    team_id: Mapped[UUID] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=text("NOW()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=text("NOW()"),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("ix_attachments_team_id", "team_id"),
        Index("ix_attachments_user_created", "team_id", "user_id", "created_at"),
        Index("ix_attachments_document_id", "document_id"),
        Index("ix_attachments_expires_at", "expires_at"),
    )

    @property
    def is_private(self) -> bool:
        return self.acl == AttachmentACL.PRIVATE.value

    @property
    def name(self) -> str:
        """Display name, taken from the last segment of the storage key."""
        return self.key.rsplit("/", 1)[-1]

    @property
    def redirect_url(self) -> str:
        """Stable URL that always resolves to the current object location."""
        return f"/api/attachments/redirect?id={self.id}"

    @property
    def canonical_url(self) -> str:
        """Permanent URL of the object in the bucket; only readable when public."""
        return f"{get_settings().public_bucket_url}/{quote(self.key)}"

    @property
    def url(self) -> str:
        return self.redirect_url if self.is_private else self.canonical_url
