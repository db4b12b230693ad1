"""Match route handlers: schedule, score reports and approval."""

import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import match_service
from leaguehub.api.auth_dependencies import require_user, require_manager
from leaguehub.models.schemas import MatchUpdate, ScoreReportRequest

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/matches", response_model=List[Dict[str, Any]])
async def list_matches(
    league_id: Optional[int] = Query(None, alias="leagueId"),
    team_id: Optional[int] = Query(None, alias="teamId"),
    player_id: Optional[int] = Query(None, alias="playerId"),
    status: Optional[str] = None,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Matches in schedule order, filtered by league, team, player or status."""
    try:
        return await match_service.list_matches(
            session, league_id=league_id, team_id=team_id, player_id=player_id, status=status
        )
    except Exception as e:
        logger.error(f"Error fetching matches: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/matches/pending-approval", response_model=List[Dict[str, Any]])
async def list_pending_approval(
    user: dict = Depends(require_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Reported results waiting for the caller's approval."""
    try:
        return await match_service.list_pending_approval(session, user["id"], user["role"])
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error fetching matches pending approval: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/matches/{match_id}", response_model=Dict[str, Any])
async def get_match(
    match_id: int,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Match detail with score reports."""
    try:
        return await match_service.get_match(session, match_id)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error fetching match {match_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/matches/{match_id}", response_model=Dict[str, Any])
async def update_match(
    match_id: int,
    payload: MatchUpdate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Set the date or score (participants) or the status (league manager)."""
    try:
        return await match_service.update_match(
            session,
            match_id,
            user["id"],
            user["role"],
            home_score=payload.home_score,
            away_score=payload.away_score,
            scheduled_date=payload.scheduled_date,
            status=payload.status,
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error updating match {match_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/matches/{match_id}/report-score", response_model=Dict[str, Any])
async def report_score(
    match_id: int,
    payload: ScoreReportRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Report a result from the caller's side of the match."""
    if len(payload.sets) < 2:
        raise HTTPException(status_code=400, detail="At least 2 set scores are required")
    try:
        sets = [s.model_dump(exclude_none=True) for s in payload.sets]
        return await match_service.report_score(session, match_id, user["id"], sets)
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error reporting score for match {match_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/api/matches/{match_id}/approve", response_model=Dict[str, Any])
async def approve_match(
    match_id: int,
    user: dict = Depends(require_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Approve the recorded result as the league manager."""
    try:
        return await match_service.approve_match(session, match_id, user["id"], user["role"])
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error approving match {match_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
