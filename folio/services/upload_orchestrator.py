"""
Upload Orchestrator

Coordinates the two ways an attachment gets its bytes:

- Direct upload: validate, persist the record in the request transaction,
  then hand the client a presigned POST so the bytes go straight to storage.
- URL import: persist a zero-byte record in its own transaction, run the
  remote fetch on the worker and wait for it, then return the populated
  record.

Validation and authorization happen before any write. The only partial
state that can survive a failure is the zero-byte record of a failed import.
"""

import logging
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from folio.core.auth import UserPrincipal
from folio.core.database import get_db_context
from folio.core.errors import InvalidRequestError, NotFoundError, ValidationError
from folio.core.policies import authorize
from folio.models.contracts.attachment import (
    AttachmentCreate,
    AttachmentCreateFromUrl,
    AttachmentPublic,
    AttachmentResponse,
    AttachmentUploadResponse,
)
from folio.models.enums import AttachmentPreset
from folio.repositories.attachment import AttachmentRepository
from folio.repositories.document import DocumentRepository
from folio.services.attachment_lifecycle import AttachmentLifecycle
from folio.services.attachment_policy import (
    AVATAR_CONTENT_TYPES,
    get_key,
    preset_to_acl,
    preset_to_expiry,
    preset_to_max_upload_size,
)
from folio.services.file_storage import FileStorageService, get_file_storage_service
from folio.services.task_queue import enqueue_and_wait
from folio.utils.files import bytes_to_human_readable, get_file_name_from_url

logger = logging.getLogger(__name__)

UPLOAD_CACHE_CONTROL = "max-age=31557600"

FETCH_JOB = "upload_attachment_from_url_task"


async def _authorize_create(db: AsyncSession, user: UserPrincipal, data: AttachmentCreate) -> None:
    if data.preset == AttachmentPreset.AVATAR:
        if data.content_type not in AVATAR_CONTENT_TYPES:
            raise ValidationError(
                f"content_type must be one of {', '.join(AVATAR_CONTENT_TYPES)}"
            )
        return

    if data.preset == AttachmentPreset.DOCUMENT_ATTACHMENT and data.document_id:
        document = await DocumentRepository(db).get_by_id(data.document_id)
        authorize(user, "update", document)
        return

    authorize(user, "create_attachment", user.team_id)


async def create_attachment(
    db: AsyncSession,
    user: UserPrincipal,
    data: AttachmentCreate,
    storage: FileStorageService | None = None,
) -> AttachmentUploadResponse:
    """
    Create an attachment record and a credential to upload its bytes.

    The record is flushed in ``db``; it is committed with the request.

    Raises:
        AuthorizationError: Caller may not attach to the target
        ValidationError: Bad avatar content type or file too large
        StorageUnavailableError: Storage cannot issue the credential
    """
    storage = storage or get_file_storage_service()

    await _authorize_create(db, user, data)

    max_size = preset_to_max_upload_size(data.preset)
    if data.size > max_size:
        raise ValidationError(
            f"Sorry, this file is too large - the maximum size is {bytes_to_human_readable(max_size)}"
        )

    attachment_id = uuid4()
    acl = preset_to_acl(data.preset)
    key = get_key(acl=acl, id=attachment_id, user_id=user.user_id, name=data.name)

    lifecycle = AttachmentLifecycle(db, storage)
    attachment = await lifecycle.create_pending(
        id=attachment_id,
        key=key,
        acl=acl,
        size=data.size,
        content_type=data.content_type,
        expires_at=preset_to_expiry(data.preset),
        document_id=data.document_id if data.preset == AttachmentPreset.DOCUMENT_ATTACHMENT else None,
        team_id=user.team_id,
        user_id=user.user_id,
    )

    presigned = await storage.issue_presigned_post(
        key=key,
        acl=acl,
        max_size=max_size,
        content_type=data.content_type,
    )

    # Document attachments are embedded by their stable redirect url.
    url = attachment.redirect_url if data.preset == AttachmentPreset.DOCUMENT_ATTACHMENT else None

    return AttachmentUploadResponse(
        upload_url=presigned.upload_url,
        form={
            "Cache-Control": UPLOAD_CACHE_CONTROL,
            "Content-Type": data.content_type,
            **presigned.fields,
        },
        attachment=AttachmentPublic.from_orm_model(attachment, url=url),
    )


async def create_attachment_from_url(
    db: AsyncSession,
    user: UserPrincipal,
    data: AttachmentCreateFromUrl,
) -> AttachmentResponse:
    """
    Import a remote file as a document attachment.

    Blocks until the worker finishes the fetch. When the fetch fails the
    zero-byte record is left in place and the job's message is raised.

    Raises:
        ValidationError: Preset is not a document attachment or no document given
        AuthorizationError: Caller may not update the document
        InvalidRequestError: The fetch job reported an error
    """
    if data.preset != AttachmentPreset.DOCUMENT_ATTACHMENT or data.document_id is None:
        raise ValidationError("Only document attachments can be created from a URL")

    document = await DocumentRepository(db).get_by_id(data.document_id)
    authorize(user, "update", document)

    url = str(data.url)
    name = get_file_name_from_url(url) or "file"
    attachment_id = uuid4()
    acl = preset_to_acl(data.preset)
    key = get_key(acl=acl, id=attachment_id, user_id=user.user_id, name=name)

    # Committed before enqueueing so the worker can see the row.
    async with get_db_context() as setup_db:
        await AttachmentLifecycle(setup_db).create_pending(
            id=attachment_id,
            key=key,
            acl=acl,
            expires_at=preset_to_expiry(data.preset),
            document_id=data.document_id,
            team_id=user.team_id,
            user_id=user.user_id,
        )

    result = await enqueue_and_wait(FETCH_JOB, str(attachment_id), url)
    if isinstance(result, dict) and "error" in result:
        logger.info(
            f"URL import rejected for attachment {attachment_id}",
            extra={"attachment_id": str(attachment_id), "user_id": str(user.user_id)},
        )
        raise InvalidRequestError(result["error"])

    attachment = await AttachmentRepository(db).get_by_id(attachment_id)
    if attachment is None:
        raise NotFoundError("Attachment not found")

    return AttachmentResponse(attachment=AttachmentPublic.from_orm_model(attachment))
