"""
Authentication dependencies for FastAPI routes.

The session token is read from the Authorization bearer header or, for
browser navigation, from the access token cookie. Role and status always
come from the database so changes apply on the next request.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from leaguehub.services import auth_service, user_service
from leaguehub.services.access_control import authorize
from leaguehub.database.db import get_db_session
from leaguehub.database.models import UserRole
from leaguehub.utils.constants import ACCESS_TOKEN_COOKIE

security = HTTPBearer(auto_error=False)


class PageRedirect(Exception):
    """Raised by page dependencies to send the browser elsewhere."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(location)


def get_request_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer token if present, otherwise the session cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


async def resolve_user(session: AsyncSession, token: Optional[str]) -> Optional[dict]:
    """
    Look up the user a token belongs to.

    Returns:
        User dictionary, or None if the token is missing, invalid or
        names a user that no longer exists
    """
    if not token:
        return None
    payload = auth_service.verify_token(token)
    if payload is None:
        return None
    user_id = payload.get("user_id")
    if user_id is None:
        return None
    return await user_service.get_user_by_id(session, user_id)


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        request: Incoming request (for the session cookie)
        session: Database session
        credentials: HTTP Bearer token credentials

    Returns:
        User dictionary

    Raises:
        HTTPException: 401 if there is no token, it is invalid, or the user is gone
    """
    token = get_request_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = auth_service.verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_user_optional(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[dict]:
    """
    Optional dependency to get the current authenticated user.
    Returns None if no token is provided or token is invalid.
    """
    try:
        return await get_current_user(request, session, credentials)
    except HTTPException:
        return None


async def require_user(user: dict = Depends(get_current_user)) -> dict:
    """Require any authenticated user."""
    return user


def make_require_roles(*roles: UserRole):
    """
    Build a dependency that admits the given roles.

    SUPERADMIN is always admitted. Anyone else gets 403.
    """
    allowed = {r.value for r in roles} | {UserRole.SUPERADMIN.value}

    async def _dep(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return _dep


require_superadmin = make_require_roles()
require_captain = make_require_roles(UserRole.CAPTAIN)
require_manager = make_require_roles(UserRole.MANAGER)
require_captain_or_above = make_require_roles(UserRole.CAPTAIN, UserRole.MANAGER)


async def require_page_access(
    request: Request,
    user: Optional[dict] = Depends(get_current_user_optional),
) -> Optional[dict]:
    """
    Apply the role/status gate to a page route.

    Raises:
        PageRedirect: When the gate denies the path
    """
    decision = authorize(
        user["role"] if user else None,
        user["status"] if user else None,
        request.url.path,
    )
    if not decision.allow:
        raise PageRedirect(decision.redirect_target)
    return user
