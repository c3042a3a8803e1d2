"""
Unit tests for the remote fetch job body.

HTTP is served by httpx.MockTransport; the database session is mocked.
"""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from folio.models.orm.attachment import PLACEHOLDER_CONTENT_TYPE
from folio.repositories.attachment import AttachmentRepository
from folio.services.remote_fetch import (
    RemoteStatusError,
    RemoteTooLargeError,
    RemoteUnreachableError,
    fetch_remote_file,
    upload_attachment_from_url,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def db_context(mock_db_session):
    @asynccontextmanager
    async def fake_context():
        yield mock_db_session

    with patch("folio.services.remote_fetch.get_db_context", fake_context):
        yield mock_db_session


@pytest.mark.unit
class TestFetchRemoteFile:
    @pytest.mark.asyncio
    async def test_success(self):
        def handler(request):
            return httpx.Response(
                200, content=b"hello", headers={"Content-Type": "text/plain; charset=utf-8"}
            )

        async with _client(handler) as client:
            fetched = await fetch_remote_file(
                "https://example.com/a.txt", max_size=100, timeout=5, client=client
            )

        assert fetched.content == b"hello"
        assert fetched.size == 5
        assert fetched.content_type == "text/plain"

    @pytest.mark.asyncio
    async def test_error_status(self):
        async with _client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(RemoteStatusError, match="Error fetching URL: 404 Not Found"):
                await fetch_remote_file("https://example.com/x", max_size=100, timeout=5, client=client)

    @pytest.mark.asyncio
    async def test_declared_length_too_large(self):
        def handler(request):
            return httpx.Response(200, content=b"small", headers={"Content-Length": "5000"})

        async with _client(handler) as client:
            with pytest.raises(RemoteTooLargeError, match="File size exceeds the maximum of"):
                await fetch_remote_file("https://example.com/x", max_size=1000, timeout=5, client=client)

    @pytest.mark.asyncio
    async def test_streamed_body_too_large(self):
        async def body():
            yield b"x" * 600
            yield b"x" * 600

        async with _client(lambda request: httpx.Response(200, content=body())) as client:
            with pytest.raises(RemoteTooLargeError):
                await fetch_remote_file("https://example.com/x", max_size=1000, timeout=5, client=client)

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        async with _client(handler) as client:
            with pytest.raises(RemoteUnreachableError, match="Unable to fetch URL"):
                await fetch_remote_file("https://example.com/x", max_size=100, timeout=5, client=client)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(RemoteUnreachableError, match="Unable to fetch URL"):
                await fetch_remote_file("https://example.com/x", max_size=100, timeout=5, client=client)

    @pytest.mark.asyncio
    async def test_slow_body_hits_overall_deadline(self):
        async def trickle():
            for _ in range(50):
                await asyncio.sleep(0.05)
                yield b"x"

        async with _client(lambda request: httpx.Response(200, content=trickle())) as client:
            with pytest.raises(RemoteUnreachableError, match="Unable to fetch URL: request timed out"):
                await fetch_remote_file(
                    "https://example.com/slow", max_size=100, timeout=0.3, client=client
                )


@pytest.mark.unit
class TestUploadAttachmentFromUrl:
    @pytest.mark.asyncio
    async def test_populates_attachment(self, db_context, mock_storage, make_attachment):
        attachment = make_attachment(size=0, content_type=PLACEHOLDER_CONTENT_TYPE)

        def handler(request):
            return httpx.Response(200, content=b"%PDF-1.7", headers={"Content-Type": "application/pdf"})

        with patch.object(AttachmentRepository, "get_by_id", AsyncMock(return_value=attachment)):
            async with _client(handler) as client:
                result = await upload_attachment_from_url(
                    attachment.id, "https://example.com/report.pdf", storage=mock_storage, client=client
                )

        assert result == {
            "url": attachment.redirect_url,
            "content_type": "application/pdf",
            "size": 8,
        }
        assert attachment.size == 8
        mock_storage.upload_file.assert_awaited_once_with(
            attachment.key, b"%PDF-1.7", content_type="application/pdf", acl="private"
        )

    @pytest.mark.asyncio
    async def test_guesses_content_type_when_missing(self, db_context, mock_storage, make_attachment):
        attachment = make_attachment(size=0)
        mock_storage.guess_content_type.return_value = "application/pdf"

        with patch.object(AttachmentRepository, "get_by_id", AsyncMock(return_value=attachment)):
            async with _client(lambda request: httpx.Response(200, content=b"abc")) as client:
                result = await upload_attachment_from_url(
                    attachment.id, "https://example.com/report.pdf", storage=mock_storage, client=client
                )

        assert result["content_type"] == "application/pdf"
        mock_storage.guess_content_type.assert_called_once_with("report.pdf")

    @pytest.mark.asyncio
    async def test_missing_attachment(self, db_context, mock_storage, make_attachment):
        with patch.object(AttachmentRepository, "get_by_id", AsyncMock(return_value=None)):
            result = await upload_attachment_from_url(
                make_attachment().id, "https://example.com/x", storage=mock_storage
            )

        assert result == {"error": "Attachment not found"}

    @pytest.mark.asyncio
    async def test_fetch_error_leaves_record_zero_byte(self, db_context, mock_storage, make_attachment):
        attachment = make_attachment(size=0, content_type=PLACEHOLDER_CONTENT_TYPE)

        with patch.object(AttachmentRepository, "get_by_id", AsyncMock(return_value=attachment)):
            async with _client(lambda request: httpx.Response(500)) as client:
                result = await upload_attachment_from_url(
                    attachment.id, "https://example.com/x", storage=mock_storage, client=client
                )

        assert result == {"error": "Error fetching URL: 500 Internal Server Error"}
        assert attachment.size == 0
        mock_storage.upload_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_failure(self, db_context, mock_storage, make_attachment):
        attachment = make_attachment(size=0, content_type=PLACEHOLDER_CONTENT_TYPE)
        mock_storage.upload_file.return_value = False

        with patch.object(AttachmentRepository, "get_by_id", AsyncMock(return_value=attachment)):
            async with _client(lambda request: httpx.Response(200, content=b"abc")) as client:
                result = await upload_attachment_from_url(
                    attachment.id, "https://example.com/x", storage=mock_storage, client=client
                )

        assert "error" in result
        assert attachment.size == 0

    @pytest.mark.asyncio
    async def test_no_session_open_during_download(self, mock_db_session, mock_storage, make_attachment):
        attachment = make_attachment(size=0, content_type=PLACEHOLDER_CONTENT_TYPE)
        open_sessions = []
        sessions_during_fetch = []

        @asynccontextmanager
        async def fake_context():
            open_sessions.append(mock_db_session)
            try:
                yield mock_db_session
            finally:
                open_sessions.pop()

        def handler(request):
            sessions_during_fetch.append(len(open_sessions))
            return httpx.Response(200, content=b"abc", headers={"Content-Type": "text/plain"})

        with (
            patch("folio.services.remote_fetch.get_db_context", fake_context),
            patch.object(AttachmentRepository, "get_by_id", AsyncMock(return_value=attachment)) as get_by_id,
        ):
            async with _client(handler) as client:
                result = await upload_attachment_from_url(
                    attachment.id, "https://example.com/a.txt", storage=mock_storage, client=client
                )

        assert sessions_during_fetch == [0]
        assert get_by_id.await_count == 2
        assert result["size"] == 3

    @pytest.mark.asyncio
    async def test_deleted_during_download(self, db_context, mock_storage, make_attachment):
        attachment = make_attachment(size=0, content_type=PLACEHOLDER_CONTENT_TYPE)
        lookup = AsyncMock(side_effect=[attachment, None])

        with patch.object(AttachmentRepository, "get_by_id", lookup):
            async with _client(lambda request: httpx.Response(200, content=b"abc")) as client:
                result = await upload_attachment_from_url(
                    attachment.id, "https://example.com/x", storage=mock_storage, client=client
                )

        assert result == {"error": "Attachment not found"}
        assert attachment.size == 0
