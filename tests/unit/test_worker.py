"""
Unit tests for the arq worker task wrappers.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from folio.worker import WorkerSettings, upload_attachment_from_url_task


@pytest.mark.unit
class TestUploadAttachmentFromUrlTask:
    @pytest.mark.asyncio
    async def test_passes_through_result(self):
        attachment_id = uuid4()
        expected = {"url": "/x", "content_type": "text/plain", "size": 3}

        with patch(
            "folio.services.remote_fetch.upload_attachment_from_url",
            AsyncMock(return_value=expected),
        ) as upload:
            result = await upload_attachment_from_url_task({}, str(attachment_id), "https://example.com/a")

        assert result == expected
        upload.assert_awaited_once_with(attachment_id, "https://example.com/a")

    @pytest.mark.asyncio
    async def test_passes_through_error(self):
        with patch(
            "folio.services.remote_fetch.upload_attachment_from_url",
            AsyncMock(return_value={"error": "Unable to fetch URL: boom"}),
        ):
            result = await upload_attachment_from_url_task({}, str(uuid4()), "https://example.com/a")

        assert result == {"error": "Unable to fetch URL: boom"}

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error(self):
        with patch(
            "folio.services.remote_fetch.upload_attachment_from_url",
            AsyncMock(side_effect=RuntimeError("db down")),
        ):
            result = await upload_attachment_from_url_task({}, str(uuid4()), "https://example.com/a")

        assert "error" in result


@pytest.mark.unit
def test_worker_does_not_retry_imports():
    assert upload_attachment_from_url_task in WorkerSettings.functions
    assert WorkerSettings.max_tries == 1
    assert WorkerSettings.retry_jobs is False
