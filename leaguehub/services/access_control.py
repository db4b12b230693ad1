"""
Role/status authorization gate for page paths.

A pure function of (role, status, path). The edge middleware and the page
route dependencies both call `authorize` so the rules live in one place.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from leaguehub.database.models import UserRole, UserStatus
from leaguehub.utils.constants import (
    AUTH_PATH_PREFIX,
    PENDING_PATH,
    SIGNIN_PATH,
    UNAUTHORIZED_PATH,
)

# (path prefix, roles allowed besides SUPERADMIN), checked in order
ROLE_PREFIX_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("/admin", ()),
    ("/manager", (UserRole.MANAGER.value,)),
    ("/captain", (UserRole.CAPTAIN.value, UserRole.MANAGER.value)),
)

# Page paths the edge middleware guards
GUARDED_PAGE_PREFIXES = ("/admin", "/manager", "/captain", "/player")
GUARDED_PAGE_PATHS = (PENDING_PATH, UNAUTHORIZED_PATH)


@dataclass(frozen=True)
class AccessDecision:
    allow: bool
    redirect_target: Optional[str] = None


ALLOW = AccessDecision(allow=True)


def _value(enum_or_str) -> Optional[str]:
    if enum_or_str is None:
        return None
    return getattr(enum_or_str, "value", enum_or_str)


def authorize(role: Optional[str], status: Optional[str], path: str) -> AccessDecision:
    """
    Decide whether a session may view a page path.

    Rules, in order:
      1. No session: only /auth pages, everything else goes to sign-in.
      2. Not APPROVED: only /auth pages and /pending, else to /pending.
      3. SUPERADMIN: always allowed.
      4. /admin is SUPERADMIN only, /manager needs MANAGER, /captain needs
         CAPTAIN or MANAGER; a mismatch goes to /unauthorized.

    Args:
        role: UserRole value, or None when there is no session
        status: UserStatus value, or None when there is no session
        path: Request path

    Returns:
        AccessDecision with allow flag and redirect target when denied
    """
    role = _value(role)
    status = _value(status)
    is_auth_page = path.startswith(AUTH_PATH_PREFIX)

    if role is None:
        if is_auth_page:
            return ALLOW
        return AccessDecision(allow=False, redirect_target=SIGNIN_PATH)

    if status != UserStatus.APPROVED.value:
        if is_auth_page or path == PENDING_PATH:
            return ALLOW
        return AccessDecision(allow=False, redirect_target=PENDING_PATH)

    if role == UserRole.SUPERADMIN.value:
        return ALLOW

    for prefix, allowed_roles in ROLE_PREFIX_RULES:
        if path.startswith(prefix) and role not in allowed_roles:
            return AccessDecision(allow=False, redirect_target=UNAUTHORIZED_PATH)

    return ALLOW


def is_guarded_page(path: str) -> bool:
    """True for the page paths the edge middleware applies the gate to."""
    return path in GUARDED_PAGE_PATHS or any(
        path == prefix or path.startswith(prefix + "/") for prefix in GUARDED_PAGE_PREFIXES
    )


def home_path_for_role(role: Optional[str]) -> str:
    """Dashboard a signed-in user lands on from the site root."""
    role = _value(role)
    if role is None:
        return SIGNIN_PATH
    if role == UserRole.SUPERADMIN.value:
        return "/admin"
    if role == UserRole.MANAGER.value:
        return "/manager"
    if role == UserRole.CAPTAIN.value:
        return "/captain"
    return "/player"
