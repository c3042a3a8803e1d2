"""
Attachment Lifecycle

Owns the state transitions of an attachment record, independent of how the
bytes arrive:

    pending (created, size may be 0) -> populated -> destroyed

The direct-upload path creates records already sized by the client; the
URL-import path creates zero-byte placeholders that the fetch job populates.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from folio.core.database import get_db_context
from folio.models.enums import AttachmentACL
from folio.models.orm.attachment import PLACEHOLDER_CONTENT_TYPE, Attachment
from folio.repositories.attachment import AttachmentRepository
from folio.services.file_storage import FileStorageService, get_file_storage_service

logger = logging.getLogger(__name__)


class AttachmentLifecycle:
    """State transitions for attachment records."""

    def __init__(self, db: AsyncSession, storage: FileStorageService | None = None):
        self.db = db
        self.repo = AttachmentRepository(db)
        self.storage = storage or get_file_storage_service()

    async def create_pending(
        self,
        *,
        id: UUID,
        key: str,
        acl: AttachmentACL,
        team_id: UUID,
        user_id: UUID,
        size: int = 0,
        content_type: str = PLACEHOLDER_CONTENT_TYPE,
        expires_at: datetime | None = None,
        document_id: UUID | None = None,
    ) -> Attachment:
        """
        Insert a new attachment record.

        The row is flushed but not committed; the caller's session decides
        when it becomes visible to other transactions.
        """
        attachment = Attachment(
            id=id,
            key=key,
            acl=acl.value,
            size=size,
            content_type=content_type,
            expires_at=expires_at,
            document_id=document_id,
            team_id=team_id,
            user_id=user_id,
        )
        attachment = await self.repo.create(attachment)

        logger.info(
            "Created attachment record",
            extra={
                "attachment_id": str(attachment.id),
                "team_id": str(team_id),
                "user_id": str(user_id),
                "key": key,
                "size": size,
            },
        )
        return attachment

    async def mark_populated(self, attachment: Attachment, *, size: int, content_type: str) -> Attachment:
        """Record the real size and type once the object has been written."""
        attachment.size = size
        attachment.content_type = content_type
        attachment = await self.repo.update(attachment)

        logger.info(
            "Populated attachment",
            extra={
                "attachment_id": str(attachment.id),
                "size": size,
                "content_type": content_type,
            },
        )
        return attachment

    async def destroy(self, attachment: Attachment) -> None:
        """
        Delete the record and commit, then delete the stored object.

        The object is only removed once the delete has committed, and that
        removal is best effort: a failure is logged and leaves an orphaned
        object rather than a record pointing at nothing.
        """
        key = attachment.key
        attachment_id = attachment.id

        await self.repo.delete(attachment)
        await self.db.commit()

        if self.storage.settings.s3_configured:
            await self.storage.delete_file(key)

        logger.info(
            "Destroyed attachment",
            extra={"attachment_id": str(attachment_id), "key": key},
        )


async def touch_last_accessed(attachment_id: UUID) -> None:
    """
    Record that an attachment was read.

    Runs after the response in its own session. The write is silent
    (``updated_at`` is left alone) and failures are only logged.
    """
    try:
        async with get_db_context() as db:
            await AttachmentRepository(db).touch_last_accessed(attachment_id, datetime.now(UTC))
    except SQLAlchemyError as e:
        logger.warning(
            f"Failed to update last access time for attachment {attachment_id}: {e}",
            extra={"attachment_id": str(attachment_id), "error": str(e)},
        )
