"""
S3 storage service for attachments.

Handles S3 operations including:
- Presigned POST credentials for direct browser uploads
- Signed GET URLs for private downloads
- Server-side writes (URL imports) and deletion
- MIME type detection

Supports MinIO in development and any S3-compatible storage in production.
"""

import logging
import mimetypes
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from folio.config import Settings, get_settings
from folio.core.errors import StorageUnavailableError
from folio.models.enums import AttachmentACL

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@dataclass
class PresignedPost:
    """A single-use credential for uploading one object directly to storage."""

    upload_url: str
    fields: dict[str, str] = field(default_factory=dict)
    expires_at: datetime | None = None


class FileStorageService:
    """Service for S3-compatible file storage operations."""

    def __init__(self, settings: Settings | None = None):
        """
        Initialize file storage service.

        Args:
            settings: Application settings with S3 configuration.
                     Uses get_settings() if not provided.
        """
        self.settings = settings or get_settings()

    @asynccontextmanager
    async def get_client(self) -> "AsyncGenerator[Any, None]":
        """
        Get S3 client context manager.

        Yields:
            Async S3 client from aiobotocore

        Raises:
            StorageUnavailableError: If S3 storage is not configured
        """
        if not self.settings.s3_configured:
            raise StorageUnavailableError(
                "S3 storage not configured. "
                "Set FOLIO_S3_ACCESS_KEY and FOLIO_S3_SECRET_KEY environment variables."
            )

        from aiobotocore.session import get_session

        session = get_session()
        async with session.create_client(
            "s3",
            endpoint_url=self.settings.s3_endpoint,
            aws_access_key_id=self.settings.s3_access_key,
            aws_secret_access_key=self.settings.s3_secret_key,
            region_name=self.settings.s3_region,
        ) as client:
            yield client

    @staticmethod
    def guess_content_type(filename: str) -> str:
        """
        Guess content type from filename.

        Args:
            filename: File name with extension

        Returns:
            MIME type string (defaults to 'application/octet-stream' if unknown)
        """
        content_type, _ = mimetypes.guess_type(filename)
        return content_type or "application/octet-stream"

    def _rewrite_url_for_public(self, url: str) -> str:
        """
        Rewrite internal S3 URL to use public endpoint.

        When S3/MinIO runs in Docker, presigned URLs contain internal hostnames
        (e.g., 'minio:9000') that browsers can't access.
        """
        public_endpoint = self.settings.s3_public_endpoint
        if not public_endpoint:
            return url
        return url.replace(self.settings.s3_endpoint, public_endpoint, 1)

    async def issue_presigned_post(
        self,
        key: str,
        acl: AttachmentACL | str,
        max_size: int,
        content_type: str,
        expires_in: int | None = None,
    ) -> PresignedPost:
        """
        Issue a presigned POST credential for a direct upload.

        The policy pins the key, ACL and content type and limits the body to
        ``max_size`` bytes; storage rejects any upload that violates it.
        A ``Cache-Control`` field of any value is also allowed in the form.

        Args:
            key: Target object key
            acl: Canned ACL the object is written with
            max_size: Largest accepted upload in bytes
            content_type: MIME type the upload must declare
            expires_in: Credential lifetime in seconds (default from settings)

        Returns:
            PresignedPost with the form action URL and the signed fields

        Raises:
            StorageUnavailableError: If storage cannot issue the credential
        """
        if expires_in is None:
            expires_in = self.settings.s3_presigned_post_expiry
        acl_value = AttachmentACL(acl).value

        try:
            async with self.get_client() as s3:
                presigned: dict[str, Any] = await s3.generate_presigned_post(
                    Bucket=self.settings.s3_bucket,
                    Key=key,
                    Fields={"acl": acl_value, "Content-Type": content_type},
                    Conditions=[
                        {"acl": acl_value},
                        {"Content-Type": content_type},
                        ["content-length-range", 0, max_size],
                        ["starts-with", "$Cache-Control", ""],
                    ],
                    ExpiresIn=expires_in,
                )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to issue presigned post for {key}: {e}")
            raise StorageUnavailableError("Unable to issue upload credentials") from e

        return PresignedPost(
            upload_url=self._rewrite_url_for_public(presigned["url"]),
            fields={k: str(v) for k, v in presigned.get("fields", {}).items()},
            expires_at=datetime.now(UTC) + timedelta(seconds=expires_in),
        )

    async def generate_signed_url(
        self,
        key: str,
        expires_in: int | None = None,
    ) -> str:
        """
        Generate a presigned GET URL for a private object.

        Args:
            key: Object key
            expires_in: URL expiration time in seconds (default from settings)

        Returns:
            Presigned GET URL
        """
        if expires_in is None:
            expires_in = self.settings.signed_url_expiry

        async with self.get_client() as s3:
            url: str = await s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.settings.s3_bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        return self._rewrite_url_for_public(url)

    async def upload_file(
        self,
        key: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        acl: AttachmentACL | str = AttachmentACL.PRIVATE,
    ) -> bool:
        """
        Upload file content directly to S3.

        Args:
            key: Target object key
            content: File content as bytes
            content_type: MIME type of the content
            acl: Canned ACL the object is written with

        Returns:
            True if upload was successful
        """
        try:
            async with self.get_client() as s3:
                await s3.put_object(
                    Bucket=self.settings.s3_bucket,
                    Key=key,
                    Body=content,
                    ContentType=content_type,
                    ACL=AttachmentACL(acl).value,
                )
            logger.info(f"Uploaded file to S3: {key} ({len(content)} bytes)")
            return True
        except (BotoCoreError, ClientError, StorageUnavailableError) as e:
            logger.error(f"Failed to upload file to S3: {key}, error: {e}")
            return False

    async def delete_file(self, key: str) -> bool:
        """
        Delete a file from S3.

        Args:
            key: Object key

        Returns:
            True if deletion was successful
        """
        try:
            async with self.get_client() as s3:
                await s3.delete_object(
                    Bucket=self.settings.s3_bucket,
                    Key=key,
                )
            logger.info(f"Deleted file from S3: {key}")
            return True
        except (BotoCoreError, ClientError, StorageUnavailableError) as e:
            logger.error(f"Failed to delete file from S3: {key}, error: {e}")
            return False


# Module-level singleton for convenience
_file_storage_service: FileStorageService | None = None


def get_file_storage_service() -> FileStorageService:
    """
    Get the file storage service singleton.

    Returns:
        FileStorageService instance
    """
    global _file_storage_service
    if _file_storage_service is None:
        _file_storage_service = FileStorageService()
    return _file_storage_service


def reset_file_storage_service() -> None:
    """Reset the file storage service (for testing)."""
    global _file_storage_service
    _file_storage_service = None
