"""
Attachments Router

Provides endpoints for file attachments including:
- List attachments (team scoped, optionally by document or uploader)
- Create an attachment and get a presigned POST for a direct upload
- Create an attachment by importing a remote URL
- Delete attachments
- Redirect to the current location of an attachment's bytes
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Query, status
from fastapi.responses import RedirectResponse

from folio.config import get_settings
from folio.core.auth import CurrentActiveUser
from folio.core.database import DbSession
from folio.core.errors import NotFoundError, ValidationError
from folio.core.policies import authorize
from folio.models.contracts.attachment import (
    AttachmentCreate,
    AttachmentCreateFromUrl,
    AttachmentPublic,
    AttachmentRedirectRequest,
    AttachmentResponse,
    AttachmentUploadResponse,
)
from folio.models.contracts.common import SuccessResponse
from folio.models.contracts.pagination import PaginatedResponse
from folio.repositories.attachment import AttachmentRepository
from folio.repositories.document import DocumentRepository
from folio.services import upload_orchestrator
from folio.services.attachment_lifecycle import AttachmentLifecycle, touch_last_accessed
from folio.services.file_storage import get_file_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attachments", tags=["attachments"])

# Canonical urls of public objects never change.
PUBLIC_CACHE_MAX_AGE = 604800


@router.get("", response_model=PaginatedResponse[AttachmentPublic])
async def list_attachments(
    current_user: CurrentActiveUser,
    db: DbSession,
    document_id: UUID | None = Query(None, description="Filter by document"),
    user_id: UUID | None = Query(None, description="Filter by uploader (admins only)"),
    limit: int = Query(25, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> PaginatedResponse[AttachmentPublic]:
    """
    List attachments in the caller's team, newest first.

    Callers see their own uploads. Admins may pass ``user_id`` to see
    another member's; the filter is ignored for everyone else.
    """
    if document_id is not None:
        document = await DocumentRepository(db).get_by_id(document_id)
        authorize(current_user, "read", document)

    if user_id is None or not current_user.is_admin:
        user_id = current_user.user_id

    attachments, total = await AttachmentRepository(db).list_for_team(
        current_user.team_id,
        user_id=user_id,
        document_id=document_id,
        limit=limit,
        offset=offset,
    )

    return PaginatedResponse[AttachmentPublic](
        items=[AttachmentPublic.from_orm_model(a) for a in attachments],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=AttachmentUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_attachment(
    attachment_data: AttachmentCreate,
    current_user: CurrentActiveUser,
    db: DbSession,
) -> AttachmentUploadResponse:
    """
    Create an attachment record and get a presigned upload form.

    The client should:
    1. Call this endpoint with the file's name, type and size
    2. POST ``form`` plus the file as a multipart body to ``upload_url``
    3. Reference the attachment by ``attachment.url``
    """
    response = await upload_orchestrator.create_attachment(db, current_user, attachment_data)

    logger.info(
        f"Attachment created: {response.attachment.id}",
        extra={
            "attachment_id": response.attachment.id,
            "user_id": str(current_user.user_id),
            "team_id": str(current_user.team_id),
        },
    )
    return response


@router.post(
    "/from-url",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_attachment_from_url(
    attachment_data: AttachmentCreateFromUrl,
    current_user: CurrentActiveUser,
    db: DbSession,
) -> AttachmentResponse:
    """
    Create a document attachment from a remote URL.

    The request waits for the worker to download and store the file.
    """
    return await upload_orchestrator.create_attachment_from_url(db, current_user, attachment_data)


async def _redirect(
    attachment_id: UUID | None,
    current_user: CurrentActiveUser,
    db: DbSession,
    background_tasks: BackgroundTasks,
) -> RedirectResponse:
    if attachment_id is None:
        raise ValidationError("id is required")

    attachment = await AttachmentRepository(db).get_by_id(attachment_id)
    if attachment is None:
        raise NotFoundError("Attachment not found")

    authorize(current_user, "read", attachment)

    background_tasks.add_task(touch_last_accessed, attachment.id)

    if attachment.is_private:
        settings = get_settings()
        url = await get_file_storage_service().generate_signed_url(attachment.key)
        cache_control = f"max-age={settings.signed_url_expiry}, immutable"
    else:
        url = attachment.canonical_url
        cache_control = f"max-age={PUBLIC_CACHE_MAX_AGE}, immutable"

    return RedirectResponse(
        url=url,
        status_code=status.HTTP_302_FOUND,
        headers={"Cache-Control": cache_control},
    )


@router.get("/redirect", response_class=RedirectResponse, status_code=status.HTTP_302_FOUND)
async def redirect_attachment(
    current_user: CurrentActiveUser,
    db: DbSession,
    background_tasks: BackgroundTasks,
    id: UUID | None = Query(None, description="Attachment ID"),
) -> RedirectResponse:
    """Redirect to a signed url (private) or the canonical url (public)."""
    return await _redirect(id, current_user, db, background_tasks)


@router.post("/redirect", response_class=RedirectResponse, status_code=status.HTTP_302_FOUND)
async def redirect_attachment_post(
    current_user: CurrentActiveUser,
    db: DbSession,
    background_tasks: BackgroundTasks,
    body: AttachmentRedirectRequest | None = None,
    id: UUID | None = Query(None, description="Attachment ID"),
) -> RedirectResponse:
    """Same as the GET form; the id may come from the body or the query."""
    attachment_id = body.id if body is not None and body.id is not None else id
    return await _redirect(attachment_id, current_user, db, background_tasks)


@router.delete("/{attachment_id}", response_model=SuccessResponse)
async def delete_attachment(
    attachment_id: UUID,
    current_user: CurrentActiveUser,
    db: DbSession,
) -> SuccessResponse:
    """
    Delete an attachment and its stored object.

    The row stays locked from the permission checks until the delete
    commits. Attachments linked to a document also require permission to
    update that document.
    """
    lifecycle = AttachmentLifecycle(db)
    attachment = await lifecycle.repo.get_by_id_for_update(attachment_id)
    if attachment is None:
        raise NotFoundError("Attachment not found")

    if attachment.document_id is not None:
        document = await DocumentRepository(db).get_by_id(attachment.document_id)
        authorize(current_user, "update", document)

    authorize(current_user, "delete", attachment)

    await lifecycle.destroy(attachment)

    logger.info(
        f"Attachment deleted: {attachment_id}",
        extra={
            "attachment_id": str(attachment_id),
            "user_id": str(current_user.user_id),
        },
    )
    return SuccessResponse()
