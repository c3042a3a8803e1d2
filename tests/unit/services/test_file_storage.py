"""
Unit tests for file storage service.

Tests presigned credential issuing and object operations with a mocked
S3 client.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from folio.core.errors import StorageUnavailableError
from folio.models.enums import AttachmentACL
from folio.services.file_storage import FileStorageService


@pytest.fixture
def mock_settings():
    """Create mock settings for testing."""
    settings = MagicMock()
    settings.s3_configured = True
    settings.s3_endpoint = "http://minio:9000"
    settings.s3_public_endpoint = None
    settings.s3_access_key = "test-access-key"
    settings.s3_secret_key = "test-secret-key"
    settings.s3_region = "us-east-1"
    settings.s3_bucket = "test-bucket"
    settings.s3_presigned_post_expiry = 600
    settings.signed_url_expiry = 60
    return settings


@pytest.fixture
def file_storage_service(mock_settings):
    """Create file storage service with mock settings."""
    return FileStorageService(settings=mock_settings)


@pytest.fixture
def mock_s3_client():
    """Patch aiobotocore so get_client yields a mock S3 client."""
    with patch("aiobotocore.session.get_session") as mock_get_session:
        client = AsyncMock()

        mock_session = MagicMock()
        mock_session.create_client = MagicMock()
        mock_session.create_client.return_value.__aenter__ = AsyncMock(return_value=client)
        mock_session.create_client.return_value.__aexit__ = AsyncMock(return_value=False)
        mock_get_session.return_value = mock_session

        yield client


@pytest.mark.unit
class TestFileStorageService:
    """Tests for FileStorageService."""

    def test_guess_content_type(self):
        assert FileStorageService.guess_content_type("document.pdf") == "application/pdf"
        assert FileStorageService.guess_content_type("image.png") == "image/png"
        assert FileStorageService.guess_content_type("file.unknown") == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_issue_presigned_post_constrains_upload(self, file_storage_service, mock_s3_client):
        mock_s3_client.generate_presigned_post = AsyncMock(
            return_value={
                "url": "http://minio:9000/test-bucket",
                "fields": {"key": "uploads/u/a/report.pdf", "policy": "abc", "x-amz-signature": "sig"},
            }
        )

        presigned = await file_storage_service.issue_presigned_post(
            key="uploads/u/a/report.pdf",
            acl=AttachmentACL.PRIVATE,
            max_size=1024,
            content_type="application/pdf",
        )

        assert presigned.upload_url == "http://minio:9000/test-bucket"
        assert presigned.fields["policy"] == "abc"
        assert presigned.expires_at is not None

        kwargs = mock_s3_client.generate_presigned_post.call_args.kwargs
        assert kwargs["Bucket"] == "test-bucket"
        assert kwargs["Key"] == "uploads/u/a/report.pdf"
        assert kwargs["Fields"] == {"acl": "private", "Content-Type": "application/pdf"}
        assert {"acl": "private"} in kwargs["Conditions"]
        assert {"Content-Type": "application/pdf"} in kwargs["Conditions"]
        assert ["content-length-range", 0, 1024] in kwargs["Conditions"]
        assert ["starts-with", "$Cache-Control", ""] in kwargs["Conditions"]
        assert kwargs["ExpiresIn"] == 600

    @pytest.mark.asyncio
    async def test_issue_presigned_post_rewrites_public_endpoint(
        self, file_storage_service, mock_settings, mock_s3_client
    ):
        mock_settings.s3_public_endpoint = "http://localhost:9000"
        mock_s3_client.generate_presigned_post = AsyncMock(
            return_value={"url": "http://minio:9000/test-bucket", "fields": {}}
        )

        presigned = await file_storage_service.issue_presigned_post(
            key="k", acl="public-read", max_size=10, content_type="image/png"
        )

        assert presigned.upload_url == "http://localhost:9000/test-bucket"

    @pytest.mark.asyncio
    async def test_issue_presigned_post_client_error(self, file_storage_service, mock_s3_client):
        mock_s3_client.generate_presigned_post = AsyncMock(
            side_effect=ClientError({"Error": {"Code": "AccessDenied"}}, "GeneratePresignedPost")
        )

        with pytest.raises(StorageUnavailableError):
            await file_storage_service.issue_presigned_post(
                key="k", acl=AttachmentACL.PRIVATE, max_size=10, content_type="text/plain"
            )

    @pytest.mark.asyncio
    async def test_not_configured(self, mock_settings):
        mock_settings.s3_configured = False
        service = FileStorageService(settings=mock_settings)

        with pytest.raises(StorageUnavailableError):
            await service.issue_presigned_post(
                key="k", acl=AttachmentACL.PRIVATE, max_size=10, content_type="text/plain"
            )

    @pytest.mark.asyncio
    async def test_generate_signed_url(self, file_storage_service, mock_s3_client):
        mock_s3_client.generate_presigned_url = AsyncMock(
            return_value="http://minio:9000/test-bucket/k?sig=1"
        )

        url = await file_storage_service.generate_signed_url("k")

        assert url == "http://minio:9000/test-bucket/k?sig=1"
        mock_s3_client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "test-bucket", "Key": "k"},
            ExpiresIn=60,
        )

    @pytest.mark.asyncio
    async def test_upload_file(self, file_storage_service, mock_s3_client):
        mock_s3_client.put_object = AsyncMock()

        result = await file_storage_service.upload_file(
            "k", b"data", content_type="text/plain", acl="public-read"
        )

        assert result is True
        mock_s3_client.put_object.assert_called_once_with(
            Bucket="test-bucket",
            Key="k",
            Body=b"data",
            ContentType="text/plain",
            ACL="public-read",
        )

    @pytest.mark.asyncio
    async def test_upload_file_failure_returns_false(self, file_storage_service, mock_s3_client):
        mock_s3_client.put_object = AsyncMock(
            side_effect=ClientError({"Error": {"Code": "500"}}, "PutObject")
        )

        assert await file_storage_service.upload_file("k", b"data") is False

    @pytest.mark.asyncio
    async def test_delete_file(self, file_storage_service, mock_s3_client):
        mock_s3_client.delete_object = AsyncMock()

        assert await file_storage_service.delete_file("k") is True
        mock_s3_client.delete_object.assert_called_once_with(Bucket="test-bucket", Key="k")
