"""Team invitation route handlers."""

import logging
from typing import List, Dict, Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import invitation_service
from leaguehub.api.auth_dependencies import require_user
from leaguehub.models.schemas import (
    InvitationCreate,
    InvitationRespond,
    InvitationResolveResponse,
    CountResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/invitations", response_model=List[Dict[str, Any]])
async def list_invitations(
    user: dict = Depends(require_user), session: AsyncSession = Depends(get_db_session)
):
    """Invitations visible to the caller's role."""
    try:
        return await invitation_service.list_invitations(session, user["id"], user["role"])
    except Exception as e:
        logger.error(f"Error fetching invitations: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/invitations", response_model=Dict[str, Any])
async def create_invitation(
    payload: InvitationCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Invite a player to a team the caller captains."""
    try:
        return await invitation_service.create_invitation(
            session, user["id"], payload.team_id, payload.player_id
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error creating invitation: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/invitations/count", response_model=CountResponse)
async def count_invitations(
    user: dict = Depends(require_user), session: AsyncSession = Depends(get_db_session)
):
    """Pending invitation count for the caller."""
    try:
        count = await invitation_service.count_pending_invitations(
            session, user["id"], user["role"]
        )
        return {"count": count}
    except Exception as e:
        logger.error(f"Error counting invitations: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/invitations/{invitation_id}", response_model=InvitationResolveResponse)
async def resolve_invitation(
    invitation_id: int,
    payload: InvitationRespond,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Accept or reject an invitation as the invited player (or a superadmin)."""
    try:
        return await invitation_service.resolve_invitation(
            session, invitation_id, user["id"], user["role"], payload.accept
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error resolving invitation {invitation_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
