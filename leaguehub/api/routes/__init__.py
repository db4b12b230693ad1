"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, error mapping, constants) lives here; every
sub-router imports what it needs from this package.
"""

import os

from fastapi import APIRouter, HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from leaguehub.services.exceptions import NotFoundError, PermissionDeniedError

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------
INVALID_CREDENTIALS_RESPONSE = HTTPException(
    status_code=401, detail="Invalid email or password"
)


def service_error(e: ValueError) -> HTTPException:
    """Map a service-layer ValueError to the matching HTTP error."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from leaguehub.api.routes.auth import router as auth_router  # noqa: E402
from leaguehub.api.routes.users import router as users_router  # noqa: E402
from leaguehub.api.routes.invitations import router as invitations_router  # noqa: E402
from leaguehub.api.routes.notifications import router as notifications_router  # noqa: E402
from leaguehub.api.routes.match_requests import router as match_requests_router  # noqa: E402
from leaguehub.api.routes.teams import router as teams_router  # noqa: E402
from leaguehub.api.routes.leagues import router as leagues_router  # noqa: E402
from leaguehub.api.routes.admin import router as admin_router  # noqa: E402
from leaguehub.api.routes.templates import router as templates_router  # noqa: E402
from leaguehub.api.routes.matches import router as matches_router  # noqa: E402
from leaguehub.api.routes.uploads import router as uploads_router  # noqa: E402

router = APIRouter()
router.include_router(auth_router)
router.include_router(users_router)
router.include_router(invitations_router)
router.include_router(notifications_router)
router.include_router(match_requests_router)
router.include_router(teams_router)
router.include_router(leagues_router)
router.include_router(admin_router)
router.include_router(templates_router)
router.include_router(matches_router)
router.include_router(uploads_router)
