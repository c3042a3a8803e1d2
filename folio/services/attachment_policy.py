"""
Attachment Policy

Pure functions mapping an upload preset to its access tier, storage key
layout, expiry and size ceiling. Nothing here touches the database or
object storage, so the results can gate a request before any write.
"""

import re
from datetime import UTC, datetime, timedelta
from uuid import UUID

from folio.config import Settings, get_settings
from folio.models.enums import AttachmentACL, AttachmentPreset

MAX_NAME_LENGTH = 255

AVATAR_CONTENT_TYPES: tuple[str, ...] = ("image/jpg", "image/jpeg", "image/png")

WORKSPACE_IMPORT_TTL = timedelta(hours=24)

# Control characters and characters S3 keys treat specially.
_UNSAFE_KEY_CHARS = re.compile(r"[\x00-\x1f\x7f\\^`{}\[\]<>|#%~\"]")


class Buckets:
    """Top-level key prefixes, one per access tier."""

    PUBLIC = "public"
    UPLOADS = "uploads"


def sanitize_name(name: str) -> str:
    """
    Make a display name safe to embed as the last segment of a storage key.

    Path separators become dashes, traversal segments collapse to the
    fallback name, and the result is truncated to ``MAX_NAME_LENGTH``.
    """
    cleaned = _UNSAFE_KEY_CHARS.sub("", name).replace("/", "-").strip()
    if cleaned in ("", ".", ".."):
        cleaned = "file"
    return cleaned[:MAX_NAME_LENGTH]


def get_key(*, acl: AttachmentACL | str, id: UUID | str, user_id: UUID | str, name: str) -> str:
    """
    Build the storage key for an attachment.

    Format: ``{bucket}/{user_id}/{id}/{name}``. The attachment id namespaces
    the key, so two uploads with the same name never collide. The same
    inputs always produce the same key.
    """
    bucket = Buckets.PUBLIC if AttachmentACL(acl) == AttachmentACL.PUBLIC_READ else Buckets.UPLOADS
    return f"{bucket}/{user_id}/{id}/{sanitize_name(name)}"


def preset_to_acl(preset: AttachmentPreset, settings: Settings | None = None) -> AttachmentACL:
    if preset in (AttachmentPreset.AVATAR, AttachmentPreset.EMOJI):
        return AttachmentACL.PUBLIC_READ
    settings = settings or get_settings()
    return AttachmentACL(settings.s3_acl)


def preset_to_expiry(preset: AttachmentPreset, now: datetime | None = None) -> datetime | None:
    """Absolute expiry for attachments of this preset; None means they never expire."""
    if preset == AttachmentPreset.WORKSPACE_IMPORT:
        return (now or datetime.now(UTC)) + WORKSPACE_IMPORT_TTL
    return None


def preset_to_max_upload_size(preset: AttachmentPreset, settings: Settings | None = None) -> int:
    settings = settings or get_settings()

    if preset == AttachmentPreset.AVATAR:
        return min(settings.file_storage_upload_max_size, settings.avatar_max_upload_size)
    if preset == AttachmentPreset.EMOJI:
        return min(settings.file_storage_upload_max_size, settings.emoji_max_upload_size)
    if preset == AttachmentPreset.WORKSPACE_IMPORT:
        return settings.file_storage_import_max_size
    return settings.file_storage_upload_max_size
