"""
Enums for Folio models.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles for access control."""

    OWNER = "owner"
    ADMINISTRATOR = "administrator"
    CONTRIBUTOR = "contributor"
    READER = "reader"

    @classmethod
    def can_edit_data(cls, role: "UserRole") -> bool:
        """Check if role can create/edit/delete data."""
        return role in (cls.OWNER, cls.ADMINISTRATOR, cls.CONTRIBUTOR)

    @classmethod
    def is_admin(cls, role: "UserRole") -> bool:
        """Check if role administers the team."""
        return role in (cls.OWNER, cls.ADMINISTRATOR)


class AttachmentPreset(str, Enum):
    """Upload presets. Each one fixes the ACL, size limit and expiry of an attachment."""

    AVATAR = "avatar"
    DOCUMENT_ATTACHMENT = "document_attachment"
    WORKSPACE_IMPORT = "workspace_import"
    EMOJI = "emoji"


class AttachmentACL(str, Enum):
    """Object storage access tiers."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
