"""
Attachment contracts (API request/response schemas).
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from folio.models.enums import AttachmentPreset

if TYPE_CHECKING:
    from folio.models.orm.attachment import Attachment


class AttachmentCreate(BaseModel):
    """Direct upload request: describes the file the client is about to send."""

    name: str = Field(..., min_length=1, max_length=255, description="User facing file name")
    document_id: UUID | None = Field(None, description="Document the file is uploaded into")
    content_type: str = Field(..., max_length=255, description="MIME type")
    size: int = Field(..., ge=0, description="File size in bytes")
    preset: AttachmentPreset = Field(
        AttachmentPreset.DOCUMENT_ATTACHMENT, description="Upload preset"
    )


class AttachmentCreateFromUrl(BaseModel):
    """Import request: the server fetches the file from ``url``."""

    url: HttpUrl = Field(..., description="Remote URL to download the file from")
    document_id: UUID | None = Field(None, description="Document the file is imported into")
    preset: AttachmentPreset = Field(
        AttachmentPreset.DOCUMENT_ATTACHMENT, description="Upload preset"
    )


class AttachmentRedirectRequest(BaseModel):
    id: UUID | None = None


class AttachmentPublic(BaseModel):
    """Attachment public response model."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    content_type: str
    size: int
    url: str
    document_id: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_orm_model(cls, attachment: "Attachment", url: str | None = None) -> "AttachmentPublic":
        """Project an ORM row, optionally overriding the exposed url."""
        return cls(
            id=str(attachment.id),
            name=attachment.name,
            content_type=attachment.content_type,
            size=attachment.size,
            url=url or attachment.url,
            document_id=str(attachment.document_id) if attachment.document_id else None,
            expires_at=attachment.expires_at,
            created_at=attachment.created_at,
        )


class AttachmentUploadResponse(BaseModel):
    """Credential for a direct upload plus the pending attachment."""

    upload_url: str = Field(..., description="URL the multipart form is POSTed to")
    form: dict[str, str] = Field(..., description="Form fields to send before the file part")
    attachment: AttachmentPublic


class AttachmentResponse(BaseModel):
    attachment: AttachmentPublic
