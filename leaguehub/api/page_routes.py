"""
Server-rendered page routes.

The dashboards are small placeholder pages; the web client replaces them.
Every dashboard passes the role/status gate through `require_page_access`.
"""

import html
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from leaguehub.api.auth_dependencies import get_current_user_optional, require_page_access
from leaguehub.services.access_control import home_path_for_role

logger = logging.getLogger(__name__)

page_router = APIRouter(tags=["pages"], include_in_schema=False)


def _page(title: str, body: str, user: Optional[dict] = None) -> HTMLResponse:
    greeting = f"<p>Signed in as {html.escape(user['name'])}</p>" if user else ""
    return HTMLResponse(
        content=f"""
        <!DOCTYPE html>
        <html>
            <head>
                <title>{title} - League Hub</title>
                <style>
                    body {{ font-family: sans-serif; max-width: 800px; margin: 50px auto; padding: 20px; }}
                    h1 {{ color: #2f855a; }}
                </style>
            </head>
            <body>
                <h1>{title}</h1>
                {greeting}
                <p>{body}</p>
            </body>
        </html>
    """
    )


@page_router.get("/")
async def root(user: Optional[dict] = Depends(get_current_user_optional)):
    """Send the visitor to their dashboard, or to sign-in."""
    return RedirectResponse(url=home_path_for_role(user["role"] if user else None), status_code=307)


@page_router.get("/admin", response_class=HTMLResponse)
async def admin_page(user: Optional[dict] = Depends(require_page_access)):
    return _page("Admin", "Approve users, assign roles and manage the platform.", user)


@page_router.get("/manager", response_class=HTMLResponse)
async def manager_page(user: Optional[dict] = Depends(require_page_access)):
    return _page("Manager", "Create leagues and enroll teams and players.", user)


@page_router.get("/captain", response_class=HTMLResponse)
async def captain_page(user: Optional[dict] = Depends(require_page_access)):
    return _page("Captain", "Build your team and invite players.", user)


@page_router.get("/player", response_class=HTMLResponse)
async def player_page(user: Optional[dict] = Depends(require_page_access)):
    return _page("Player", "Your invitations, match requests and matches.", user)


@page_router.get("/leagues", response_class=HTMLResponse)
async def leagues_page(user: Optional[dict] = Depends(require_page_access)):
    return _page("Leagues", "Browse active leagues.", user)


@page_router.get("/auth/signin", response_class=HTMLResponse)
async def signin_page():
    return _page("Sign in", "Sign in with your email and password.")


@page_router.get("/pending", response_class=HTMLResponse)
async def pending_page(user: Optional[dict] = Depends(require_page_access)):
    return _page("Awaiting approval", "Your account is waiting for an administrator.", user)


@page_router.get("/unauthorized", response_class=HTMLResponse)
async def unauthorized_page(user: Optional[dict] = Depends(require_page_access)):
    return _page("Unauthorized", "You do not have access to that page.", user)
