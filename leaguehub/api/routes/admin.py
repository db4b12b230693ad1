"""Superadmin route handlers."""

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.database.db import get_db_session
from leaguehub.database.models import UserRole
from leaguehub.services import auth_service, template_service, user_service
from leaguehub.api.auth_dependencies import get_current_user_optional, require_superadmin
from leaguehub.models.schemas import CreateSuperadminRequest, CreateSuperadminResponse
from leaguehub.utils.constants import MIN_PASSWORD_LENGTH, XLSX_MEDIA_TYPE

logger = logging.getLogger(__name__)
router = APIRouter()


def superadmin_bootstrap_enabled() -> bool:
    """Whether create-superadmin may be called without a superadmin session."""
    return os.getenv("ALLOW_SUPERADMIN_BOOTSTRAP", "false").lower() == "true"


def xlsx_attachment(filename: str, content: bytes) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/admin/create-superadmin", response_model=CreateSuperadminResponse)
async def create_superadmin(
    payload: CreateSuperadminRequest,
    user: Optional[dict] = Depends(get_current_user_optional),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create an approved superadmin, or promote an existing account.

    Needs a superadmin session unless ALLOW_SUPERADMIN_BOOTSTRAP is enabled.
    """
    try:
        if not superadmin_bootstrap_enabled():
            if user is None:
                raise HTTPException(status_code=401, detail="Unauthorized")
            if user["role"] != UserRole.SUPERADMIN.value:
                raise HTTPException(status_code=403, detail="Forbidden")

        if not payload.email or not payload.password:
            raise HTTPException(status_code=400, detail="Email and password are required")
        if not auth_service.validate_email(payload.email):
            raise HTTPException(status_code=400, detail="Invalid email address")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            )

        result = await user_service.create_or_promote_superadmin(
            session,
            email=auth_service.normalize_email(payload.email),
            password_hash=auth_service.hash_password(payload.password),
            name=payload.name,
        )
        message = "Superadmin created" if result["created"] else "User promoted to superadmin"
        return {"message": message, "user": result["user"]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating superadmin: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/admin/download-template")
async def download_player_template(user: dict = Depends(require_superadmin)):
    """Players upload template."""
    filename, content = template_service.player_template()
    return xlsx_attachment(filename, content)
