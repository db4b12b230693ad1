"""League route handlers."""

import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import fixture_service, league_service
from leaguehub.services.exceptions import ConfirmationRequiredError
from leaguehub.api.auth_dependencies import require_user
from leaguehub.models.schemas import (
    FixtureCreate,
    LeagueCreate,
    LeagueDelete,
    LeaguePlayerAdd,
    LeagueTeamAdd,
    LeagueUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/leagues", response_model=List[Dict[str, Any]])
async def list_leagues(
    status: Optional[str] = None,
    public: bool = False,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Leagues the caller manages (all for superadmin), or every ACTIVE league with public=true."""
    try:
        return await league_service.list_leagues(
            session, user["id"], user["role"], status=status, public=public
        )
    except Exception as e:
        logger.error(f"Error fetching leagues: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/leagues", response_model=Dict[str, Any])
async def create_league(
    payload: LeagueCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a league (manager or superadmin)."""
    try:
        return await league_service.create_league(
            session,
            user_id=user["id"],
            role=user["role"],
            name=payload.name,
            type=payload.type,
            category=payload.category,
            format=payload.format,
            season=payload.season,
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error creating league: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/leagues/player", response_model=List[Dict[str, Any]])
async def list_player_leagues(
    user: dict = Depends(require_user), session: AsyncSession = Depends(get_db_session)
):
    """Leagues the caller is enrolled in as a player."""
    try:
        return await league_service.list_player_leagues(session, user["id"])
    except Exception as e:
        logger.error(f"Error fetching player leagues: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/leagues/{league_id}", response_model=Dict[str, Any])
async def get_league(
    league_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """League detail with manager and teams."""
    try:
        return await league_service.get_league(session, league_id)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error fetching league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/leagues/{league_id}", response_model=Dict[str, Any])
async def update_league(
    league_id: int,
    payload: LeagueUpdate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Edit or start a league the caller manages."""
    try:
        return await league_service.update_league(
            session,
            league_id,
            user["id"],
            user["role"],
            name=payload.name,
            status=payload.status,
            season=payload.season,
            action=payload.action,
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error updating league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/api/leagues/{league_id}")
async def delete_league(
    league_id: int,
    payload: Optional[LeagueDelete] = None,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Delete a league the caller manages.

    When matches exist and the body lacks {"confirmation": "DELETE"}, answers
    400 with requiresConfirmation and matchesCount.
    """
    try:
        return await league_service.delete_league(
            session,
            league_id,
            user["id"],
            user["role"],
            confirmation=payload.confirmation if payload else None,
        )
    except ConfirmationRequiredError as e:
        return JSONResponse(
            status_code=400,
            content={
                "error": str(e),
                "requiresConfirmation": True,
                "matchesCount": e.matches_count,
            },
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error deleting league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/leagues/{league_id}/players", response_model=List[Dict[str, Any]])
async def list_league_players(
    league_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Players enrolled in a league the caller manages."""
    try:
        return await league_service.list_league_players(
            session, league_id, user["id"], user["role"]
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error fetching players of league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/leagues/{league_id}/players", response_model=Dict[str, Any])
async def add_league_player(
    league_id: int,
    payload: LeaguePlayerAdd,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Enroll an approved player in an individual league."""
    try:
        return await league_service.add_league_player(
            session, league_id, user["id"], user["role"], payload.player_id
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error adding player to league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/api/leagues/{league_id}/players")
async def remove_league_player(
    league_id: int,
    player_id: Optional[int] = Query(None, alias="playerId"),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Withdraw a player from a league."""
    try:
        return await league_service.remove_league_player(
            session, league_id, user["id"], user["role"], player_id
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error removing player from league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/leagues/{league_id}/teams", response_model=Dict[str, Any])
async def add_league_team(
    league_id: int,
    payload: LeagueTeamAdd,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Attach a team to a doubles league."""
    try:
        return await league_service.add_league_team(
            session, league_id, user["id"], user["role"], payload.team_id
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error adding team to league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/api/leagues/{league_id}/teams")
async def remove_league_team(
    league_id: int,
    team_id: Optional[int] = Query(None, alias="teamId"),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Detach a team from a league."""
    try:
        return await league_service.remove_league_team(
            session, league_id, user["id"], user["role"], team_id
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error removing team from league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/leagues/{league_id}/fixtures", response_model=Dict[str, Any])
async def generate_fixtures(
    league_id: int,
    payload: FixtureCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Generate the round-robin schedule for a league without matches."""
    try:
        return await fixture_service.generate_fixtures(
            session,
            league_id,
            user["id"],
            user["role"],
            match_type=payload.match_type,
            start_date=payload.start_date,
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error generating fixtures for league {league_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
