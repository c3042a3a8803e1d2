"""
Attachment Repository

Provides database operations for Attachment model.
Team-scoped for multi-tenancy.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update

from folio.models.orm.attachment import Attachment
from folio.repositories.base import BaseRepository


class AttachmentRepository(BaseRepository[Attachment]):
    """Repository for Attachment model operations."""

    model = Attachment

    async def get_by_id_for_update(self, id: UUID) -> Attachment | None:
        """
        Get attachment by ID holding a row lock until the transaction ends.

        Args:
            id: Attachment UUID

        Returns:
            Attachment or None if not found
        """
        result = await self.session.execute(
            select(Attachment).where(Attachment.id == id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def list_for_team(
        self,
        team_id: UUID,
        *,
        user_id: UUID | None = None,
        document_id: UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[Attachment], int]:
        """
        List attachments in a team, newest first.

        Args:
            team_id: Team UUID for scoping
            user_id: Optional uploader filter
            document_id: Optional document filter
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Tuple of (attachments, total count)
        """
        filters = [Attachment.team_id == team_id]
        if user_id is not None:
            filters.append(Attachment.user_id == user_id)
        if document_id is not None:
            filters.append(Attachment.document_id == document_id)

        return await self.get_paginated(
            filters=filters,
            sort_by="created_at",
            sort_dir="desc",
            limit=limit,
            offset=offset,
        )

    async def touch_last_accessed(self, id: UUID, accessed_at: datetime) -> None:
        """
        Record a read without bumping ``updated_at``.

        Args:
            id: Attachment UUID
            accessed_at: Time of access
        """
        await self.session.execute(
            update(Attachment)
            .where(Attachment.id == id)
            .values(last_accessed_at=accessed_at, updated_at=Attachment.updated_at)
        )
