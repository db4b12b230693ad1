"""Team route handlers."""

import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import team_service
from leaguehub.api.auth_dependencies import require_user
from leaguehub.models.schemas import TeamCreate, TeamUpdate, TeamPlayerAdd

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/teams", response_model=List[Dict[str, Any]])
async def list_teams(
    category: Optional[str] = None,
    league_id: Optional[int] = Query(None, alias="leagueId"),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List teams with captain, players and league."""
    try:
        return await team_service.list_teams(session, category=category, league_id=league_id)
    except Exception as e:
        logger.error(f"Error fetching teams: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/teams", response_model=Dict[str, Any])
async def create_team(
    payload: TeamCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a team captained by the caller."""
    try:
        return await team_service.create_team(
            session,
            captain_id=user["id"],
            captain_role=user["role"],
            name=payload.name,
            category=payload.category,
            league_id=payload.league_id,
            max_players=payload.max_players,
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error creating team: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/teams/{team_id}", response_model=Dict[str, Any])
async def get_team(
    team_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Team detail with captain, players and league."""
    try:
        return await team_service.get_team(session, team_id)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error fetching team {team_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/teams/{team_id}", response_model=Dict[str, Any])
async def update_team(
    team_id: int,
    payload: TeamUpdate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Edit a team (captain or superadmin)."""
    try:
        return await team_service.update_team(
            session,
            team_id,
            user["id"],
            user["role"],
            name=payload.name,
            category=payload.category,
            max_players=payload.max_players,
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error updating team {team_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/api/teams/{team_id}")
async def delete_team(
    team_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a team that has no matches (captain or superadmin)."""
    try:
        return await team_service.delete_team(session, team_id, user["id"], user["role"])
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error deleting team {team_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/teams/{team_id}/players", response_model=Dict[str, Any])
async def add_team_player(
    team_id: int,
    payload: TeamPlayerAdd,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Add a player to the roster (captain, manager or superadmin)."""
    try:
        return await team_service.add_team_player(
            session, team_id, user["id"], user["role"], payload.player_id
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error adding player to team {team_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/api/teams/{team_id}/players")
async def remove_team_player(
    team_id: int,
    player_id: Optional[int] = Query(None, alias="playerId"),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a player from the roster; the captain stays."""
    try:
        return await team_service.remove_team_player(
            session, team_id, user["id"], user["role"], player_id
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error removing player from team {team_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
