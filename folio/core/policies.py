"""
Authorization Policies

Decides whether a principal may perform an action on a subject. Callers use
``authorize`` which raises ``AuthorizationError`` on denial; ``can`` is the
boolean form.

Rules:
- Documents: ``read`` for any member of the owning team; ``update`` also
  requires an editing role and a non-archived document.
- Teams: ``create_attachment`` for editing roles of that team.
- Attachments: ``read`` for the team when private, anyone when public;
  ``delete`` for the uploader or a team admin.
"""

from typing import Any, Literal

from folio.core.auth import UserPrincipal
from folio.core.errors import AuthorizationError
from folio.models.enums import AttachmentACL, UserRole
from folio.models.orm.attachment import Attachment
from folio.models.orm.document import Document

Action = Literal["read", "update", "delete", "create_attachment"]


def _can_document(user: UserPrincipal, action: Action, document: Document) -> bool:
    if document.team_id != user.team_id:
        return False
    if action == "read":
        return True
    if action == "update":
        return UserRole.can_edit_data(user.role) and document.archived_at is None
    return False


def _can_attachment(user: UserPrincipal, action: Action, attachment: Attachment) -> bool:
    if action == "read":
        return attachment.acl == AttachmentACL.PUBLIC_READ.value or attachment.team_id == user.team_id
    if action == "delete":
        if attachment.team_id != user.team_id:
            return False
        return user.is_admin or attachment.user_id == user.user_id
    return False


def can(user: UserPrincipal, action: Action, subject: Any) -> bool:
    """
    Check a permission.

    ``subject`` is a Document, an Attachment, or a team id for team-level
    actions. A missing subject is always denied.
    """
    if subject is None:
        return False
    if isinstance(subject, Document):
        return _can_document(user, action, subject)
    if isinstance(subject, Attachment):
        return _can_attachment(user, action, subject)
    if action == "create_attachment":
        return subject == user.team_id and UserRole.can_edit_data(user.role)
    return False


def authorize(user: UserPrincipal, action: Action, subject: Any) -> None:
    """
    Raise if ``user`` may not perform ``action`` on ``subject``.

    A missing subject raises the same error as a denied one so that
    existence is not revealed.

    Raises:
        AuthorizationError: If the action is not permitted
    """
    if not can(user, action, subject):
        raise AuthorizationError()
