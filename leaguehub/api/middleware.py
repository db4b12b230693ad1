"""
Edge gate for dashboard page paths.

Runs before routing for the guarded page paths and redirects sessions the
role/status gate rejects. Page routes apply the same gate again through
`require_page_access`.
"""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.security.utils import get_authorization_scheme_param

from leaguehub.api.auth_dependencies import resolve_user
from leaguehub.database import db
from leaguehub.services.access_control import authorize, is_guarded_page
from leaguehub.utils.constants import ACCESS_TOKEN_COOKIE

logger = logging.getLogger(__name__)


async def resolve_page_user(request: Request) -> Optional[dict]:
    """Load the session user for a page request, or None."""
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "bearer" or not token:
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        return None
    async with db.AsyncSessionLocal() as session:
        return await resolve_user(session, token)


async def page_gate_middleware(request: Request, call_next):
    """Redirect guarded page requests the gate does not allow."""
    path = request.url.path
    if not is_guarded_page(path):
        return await call_next(request)

    user = await resolve_page_user(request)
    decision = authorize(
        user["role"] if user else None,
        user["status"] if user else None,
        path,
    )
    if not decision.allow:
        logger.debug(f"Gate redirected {path} to {decision.redirect_target}")
        return RedirectResponse(url=decision.redirect_target, status_code=307)
    return await call_next(request)
