"""
Folio API Client.

Async HTTP client for the attachments API. Uses httpx with bearer token
authentication; file bytes go straight to storage through ``UploadDriver``.
"""

import base64
import logging
from typing import Any
from urllib.parse import unquote_to_bytes
from uuid import UUID

import httpx

from folio.client.upload_driver import ProgressCallback, UploadDriver

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Exception raised for API errors."""

    def __init__(self, status_code: int, message: str, response_body: Any = None):
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"API Error {status_code}: {message}")


def data_url_to_bytes(data_url: str) -> bytes:
    """
    Decode a ``data:`` URL into its payload.

    Raises:
        ValueError: If ``data_url`` is not a data URL
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("Not a data URL")

    header, payload = data_url[5:].split(",", 1)
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)


class FolioClient:
    """
    Async client for the Folio attachments API.

    Use as an async context manager:

        async with FolioClient(base_url, token) as client:
            attachment = await client.upload_file(data, "notes.pdf", "application/pdf")
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        upload_driver: UploadDriver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the Folio API client.

        Args:
            base_url: Base URL of the Folio API
            token: Bearer token for authentication
            timeout: Request timeout in seconds (default: 30.0)
            upload_driver: Driver for transfers to storage
            transport: Custom httpx transport for API requests
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.upload_driver = upload_driver or UploadDriver()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "FolioClient":
        """Enter async context manager."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an HTTP request to the API.

        Returns:
            Response data (dict, or empty dict for 204)

        Raises:
            APIError: If the request fails
        """
        client = await self._ensure_client()

        try:
            response = await client.request(method=method, url=path, json=json, params=params)
        except httpx.TimeoutException as e:
            raise APIError(0, f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise APIError(0, f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_body = response.json()
            except ValueError:
                error_body = response.text

            if isinstance(error_body, dict):
                message = error_body.get("message") or error_body.get("detail") or str(error_body)
            else:
                message = str(error_body)
            raise APIError(
                status_code=response.status_code,
                message=str(message),
                response_body=error_body,
            )

        if response.status_code == 204:
            return {}

        return response.json()

    # =========================================================================
    # Attachments
    # =========================================================================

    async def list_attachments(
        self,
        document_id: str | UUID | None = None,
        user_id: str | UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> dict[str, Any]:
        """
        List attachments in the caller's team.

        Returns:
            Response with items, total, limit and offset
        """
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if document_id is not None:
            params["document_id"] = str(document_id)
        if user_id is not None:
            params["user_id"] = str(user_id)

        return await self._request("GET", "/api/attachments", params=params)

    async def create_attachment(
        self,
        name: str,
        content_type: str,
        size: int,
        preset: str = "document_attachment",
        document_id: str | UUID | None = None,
    ) -> dict[str, Any]:
        """
        Create an attachment record and get a presigned upload form.

        Returns:
            Response with upload_url, form and attachment
        """
        payload: dict[str, Any] = {
            "name": name,
            "content_type": content_type,
            "size": size,
            "preset": preset,
        }
        if document_id is not None:
            payload["document_id"] = str(document_id)

        return await self._request("POST", "/api/attachments", json=payload)

    async def create_attachment_from_url(
        self,
        url: str,
        document_id: str | UUID,
        preset: str = "document_attachment",
    ) -> dict[str, Any]:
        """Ask the server to import ``url``; returns once the import finished."""
        return await self._request(
            "POST",
            "/api/attachments/from-url",
            json={"url": url, "document_id": str(document_id), "preset": preset},
        )

    async def delete_attachment(self, attachment_id: str | UUID) -> None:
        await self._request("DELETE", f"/api/attachments/{attachment_id}")

    async def upload_file(
        self,
        data: bytes,
        name: str,
        content_type: str,
        preset: str = "document_attachment",
        document_id: str | UUID | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> dict[str, Any]:
        """
        Create an attachment and transfer its bytes to storage.

        Args:
            data: File content
            name: File name shown to users
            content_type: MIME type
            preset: Upload preset
            document_id: Document the file belongs to
            on_progress: Called with the fraction uploaded (0 to 1)

        Returns:
            The attachment as returned by the API

        Raises:
            APIError: The API refused the attachment
            UploadError: The transfer to storage failed
        """
        response = await self.create_attachment(
            name=name,
            content_type=content_type,
            size=len(data),
            preset=preset,
            document_id=document_id,
        )

        await self.upload_driver.upload(
            response["upload_url"],
            response["form"],
            data,
            filename=name,
            content_type=content_type,
            on_progress=on_progress,
        )

        logger.info(f"Uploaded {name} ({len(data)} bytes)")
        return response["attachment"]

    async def upload_file_from_url(self, url: str, document_id: str | UUID) -> dict[str, Any]:
        """Import ``url`` into a document and return the resulting attachment."""
        response = await self.create_attachment_from_url(url, document_id)
        return response["attachment"]
