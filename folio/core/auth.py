"""
Authentication

Provides FastAPI dependencies for authentication.
Supports JWT bearer token authentication with user context injection.
"""

import logging
from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from folio.core.security import decode_token
from folio.models.enums import UserRole

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class UserPrincipal:
    """
    Authenticated user principal.

    All user info is extracted from JWT claims (no database lookup required).
    """

    user_id: UUID
    team_id: UUID
    email: str
    name: str = ""
    role: UserRole = UserRole.CONTRIBUTOR
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        """Check if user administers their team (owner or administrator)."""
        return UserRole.is_admin(self.role)


def principal_from_claims(payload: dict) -> UserPrincipal | None:
    """
    Build a principal from decoded token claims.

    Returns None when a required claim is missing or malformed.
    """
    try:
        user_id = UUID(payload["sub"])
        team_id = UUID(payload["team_id"])
    except (KeyError, TypeError, ValueError):
        return None

    if "email" not in payload:
        logger.warning(f"Token for user {user_id} missing required email claim.")
        return None

    try:
        role = UserRole(payload.get("role", UserRole.CONTRIBUTOR.value))
    except ValueError:
        role = UserRole.CONTRIBUTOR

    return UserPrincipal(
        user_id=user_id,
        team_id=team_id,
        email=payload["email"],
        name=payload.get("name", ""),
        role=role,
    )


async def get_current_user_optional(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> UserPrincipal | None:
    """
    Get the current user from JWT token (optional).

    Checks for authentication in this order:
    1. Authorization: Bearer header
    2. access_token cookie (for browser clients)

    Returns None if no token is provided or token is invalid.
    """
    token = None

    if credentials:
        token = credentials.credentials
    elif "access_token" in request.cookies:
        token = request.cookies["access_token"]

    if not token:
        return None

    payload = decode_token(token, expected_type="access")
    if payload is None:
        return None

    return principal_from_claims(payload)


async def get_current_user(
    user: Annotated[UserPrincipal | None, Depends(get_current_user_optional)],
) -> UserPrincipal:
    """
    Get the current user from JWT token (required).

    Raises:
        HTTPException: If not authenticated or token is invalid
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_active_user(
    user: Annotated[UserPrincipal, Depends(get_current_user)],
) -> UserPrincipal:
    """
    Get the current active user.

    Raises:
        HTTPException: If user is inactive
    """
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return user


# Type aliases for dependency injection
CurrentUser = Annotated[UserPrincipal, Depends(get_current_user)]
CurrentActiveUser = Annotated[UserPrincipal, Depends(get_current_active_user)]
