"""User listing, profile and account administration route handlers."""

import logging
from typing import Optional, List, Dict, Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import user_service
from leaguehub.api.auth_dependencies import (
    require_user,
    require_superadmin,
    require_captain_or_above,
)
from leaguehub.models.schemas import RoleUpdate, LevelUpdate, ApproveRequest, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/users", response_model=List[Dict[str, Any]])
async def list_users(
    status: Optional[str] = None,
    role: Optional[str] = None,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List users. Non-superadmins only see approved users' public fields."""
    try:
        return await user_service.list_users(session, user["role"], status=status, role=role)
    except Exception as e:
        logger.error(f"Error fetching users: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/users/approve", response_model=Dict[str, Any])
async def approve_user(
    payload: ApproveRequest,
    user: dict = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
):
    """Set a user's approval status (superadmin only)."""
    try:
        return await user_service.set_user_status(session, payload.user_id, payload.status)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error approving user: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/users/{user_id}", response_model=Dict[str, Any])
async def get_user(
    user_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """User profile with team memberships."""
    try:
        return await user_service.get_user_detail(session, user_id, user["role"])
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error fetching user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/users/{user_id}", response_model=Dict[str, Any])
async def update_user(
    user_id: int,
    payload: UserUpdate,
    user: dict = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
):
    """Partially update a user (superadmin only)."""
    try:
        return await user_service.update_user(
            session, user_id, payload.model_dump(exclude_none=True)
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/users/{user_id}/role", response_model=Dict[str, Any])
async def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    user: dict = Depends(require_superadmin),
    session: AsyncSession = Depends(get_db_session),
):
    """Change a user's role (superadmin only)."""
    try:
        return await user_service.update_user_role(session, user_id, payload.role)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error updating role of user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/users/{user_id}/level", response_model=Dict[str, Any])
async def update_user_level(
    user_id: int,
    payload: LevelUpdate,
    user: dict = Depends(require_captain_or_above),
    session: AsyncSession = Depends(get_db_session),
):
    """Change a player's level (captain, manager or superadmin)."""
    try:
        return await user_service.update_user_level(session, user_id, payload.level)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error updating level of user {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
