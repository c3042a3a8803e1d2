"""
Remote Fetch

Downloads a caller-supplied URL into an existing attachment. This is the
body of the ``upload_attachment_from_url_task`` worker job: it fetches the
resource with bounded time and size, writes the bytes under the
attachment's key, and fills in the record's size and content type.

Failures are returned as ``{"error": message}`` instead of raised, because
the waiting request only checks for the presence of ``error``.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import httpx

from folio.config import get_settings
from folio.core.database import get_db_context
from folio.models.enums import AttachmentPreset
from folio.repositories.attachment import AttachmentRepository
from folio.services.attachment_lifecycle import AttachmentLifecycle
from folio.services.attachment_policy import preset_to_max_upload_size
from folio.services.file_storage import FileStorageService, get_file_storage_service
from folio.utils.files import bytes_to_human_readable

logger = logging.getLogger(__name__)

# URL imports are only allowed for document attachments.
IMPORT_PRESET = AttachmentPreset.DOCUMENT_ATTACHMENT


class RemoteFetchError(Exception):
    """Base class for fetch failures; the message is shown to the user."""


class RemoteUnreachableError(RemoteFetchError):
    pass


class RemoteTooLargeError(RemoteFetchError):
    pass


class RemoteStatusError(RemoteFetchError):
    pass


@dataclass
class FetchedFile:
    content: bytes
    content_type: str | None

    @property
    def size(self) -> int:
        return len(self.content)


def _too_large(max_size: int) -> RemoteTooLargeError:
    return RemoteTooLargeError(
        f"File size exceeds the maximum of {bytes_to_human_readable(max_size)}"
    )


async def fetch_remote_file(
    url: str,
    *,
    max_size: int,
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> FetchedFile:
    """
    Download ``url`` into memory.

    ``timeout`` bounds the whole download, not just each read, so a server
    trickling bytes cannot hold the job open. The declared Content-Length
    is checked first; the streamed body is counted as well since servers
    can omit or understate it.

    Raises:
        RemoteUnreachableError: Connection failure or timeout
        RemoteStatusError: Non-2xx response
        RemoteTooLargeError: Body larger than ``max_size``
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True)

    try:
        async with asyncio.timeout(timeout):
            async with client.stream("GET", url) as response:
                if not response.is_success:
                    raise RemoteStatusError(
                        f"Error fetching URL: {response.status_code} {response.reason_phrase}".rstrip()
                    )

                declared = response.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > max_size:
                    raise _too_large(max_size)

                buffer = bytearray()
                async for chunk in response.aiter_bytes():
                    buffer.extend(chunk)
                    if len(buffer) > max_size:
                        raise _too_large(max_size)

                content_type = response.headers.get("content-type")
                if content_type:
                    content_type = content_type.split(";", 1)[0].strip() or None
    except TimeoutError as e:
        raise RemoteUnreachableError("Unable to fetch URL: request timed out") from e
    except httpx.TimeoutException as e:
        raise RemoteUnreachableError(f"Unable to fetch URL: request timed out ({e})") from e
    except httpx.RequestError as e:
        raise RemoteUnreachableError(f"Unable to fetch URL: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    return FetchedFile(content=bytes(buffer), content_type=content_type)


async def upload_attachment_from_url(
    attachment_id: UUID,
    url: str,
    *,
    storage: FileStorageService | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    Fetch ``url`` and store it as the content of an existing attachment.

    No database session is held during the download; the record is read
    before it and updated in a second session after the bytes are stored.

    Args:
        attachment_id: Attachment created by the import request
        url: Remote resource to download
        storage: Storage service override (for testing)
        client: HTTP client override (for testing)

    Returns:
        ``{"url", "content_type", "size"}`` on success, ``{"error"}`` otherwise
    """
    settings = get_settings()
    storage = storage or get_file_storage_service()
    max_size = preset_to_max_upload_size(IMPORT_PRESET, settings)

    async with get_db_context() as db:
        attachment = await AttachmentRepository(db).get_by_id(attachment_id)
        if attachment is None:
            logger.warning(f"Attachment {attachment_id} not found for URL import")
            return {"error": "Attachment not found"}
        key, name, acl = attachment.key, attachment.name, attachment.acl

    try:
        fetched = await fetch_remote_file(
            url,
            max_size=max_size,
            timeout=settings.remote_fetch_timeout,
            client=client,
        )
    except RemoteFetchError as e:
        logger.warning(
            f"URL import failed for attachment {attachment_id}: {e}",
            extra={"attachment_id": str(attachment_id), "url": url, "error": str(e)},
        )
        return {"error": str(e)}

    content_type = fetched.content_type or storage.guess_content_type(name)

    stored = await storage.upload_file(key, fetched.content, content_type=content_type, acl=acl)
    if not stored:
        return {"error": "Unable to store the fetched file"}

    async with get_db_context() as db:
        lifecycle = AttachmentLifecycle(db, storage)
        attachment = await lifecycle.repo.get_by_id(attachment_id)
        if attachment is None:
            logger.warning(f"Attachment {attachment_id} was deleted during URL import")
            return {"error": "Attachment not found"}

        attachment = await lifecycle.mark_populated(
            attachment, size=fetched.size, content_type=content_type
        )

        return {
            "url": attachment.url,
            "content_type": attachment.content_type,
            "size": attachment.size,
        }
