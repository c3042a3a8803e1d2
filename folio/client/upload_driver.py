"""
Direct upload driver.

Sends a file to object storage using the presigned POST returned by
``POST /api/attachments``. The body is a multipart form made of the
credential fields followed by the file, streamed in chunks so the caller
can follow progress.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], Any]

DEFAULT_CHUNK_SIZE = 64 * 1024


class UploadError(Exception):
    """The transfer to storage failed. Raised once; nothing is retried."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


@dataclass
class UploadResult:
    status_code: int
    bytes_sent: int


class UploadDriver:
    """
    Uploads one file per call to a presigned POST url.

    Args:
        client: HTTP client to send with. A client without auth headers is
            created per upload when omitted.
        timeout: Timeout in seconds for an owned client
        chunk_size: Size of the body chunks reported to ``on_progress``
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 300.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._client = client
        self.timeout = timeout
        self.chunk_size = chunk_size

    async def upload(
        self,
        upload_url: str,
        form: dict[str, str],
        data: bytes,
        *,
        filename: str,
        content_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """
        POST ``form`` plus ``data`` as the ``file`` part to ``upload_url``.

        ``on_progress`` receives the fraction of the body sent so far, from
        0 to 1, after each chunk.

        Raises:
            UploadError: Transport failure or a status outside 200-399
        """
        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))

        try:
            # Storage reads the policy fields before the file part, so the
            # form must come first; httpx encodes data before files.
            request = client.build_request(
                "POST",
                upload_url,
                data=form,
                files={"file": (filename, data, content_type)},
            )
            body = request.read()
            total = len(body)

            try:
                response = await client.post(
                    upload_url,
                    content=self._iter_body(body, on_progress),
                    headers={
                        "Content-Type": request.headers["Content-Type"],
                        "Content-Length": str(total),
                    },
                )
            except httpx.RequestError as e:
                raise UploadError(f"Upload failed: {e}") from e
        finally:
            if owns_client:
                await client.aclose()

        if not 200 <= response.status_code < 400:
            logger.warning(
                f"Upload of {filename} rejected with status {response.status_code}",
                extra={"status_code": response.status_code, "upload_filename": filename},
            )
            raise UploadError(
                f"Upload failed with status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        return UploadResult(status_code=response.status_code, bytes_sent=total)

    async def _iter_body(
        self, body: bytes, on_progress: ProgressCallback | None
    ) -> AsyncIterator[bytes]:
        total = len(body)
        if total == 0:
            if on_progress is not None:
                on_progress(1.0)
            return

        for start in range(0, total, self.chunk_size):
            chunk = body[start : start + self.chunk_size]
            yield chunk
            if on_progress is not None:
                on_progress(min(start + len(chunk), total) / total)
