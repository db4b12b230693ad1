"""Match request route handlers."""

import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaguehub.api.routes import service_error
from leaguehub.database.db import get_db_session
from leaguehub.services import match_request_service
from leaguehub.api.auth_dependencies import require_user
from leaguehub.models.schemas import MatchRequestCreate, MatchRequestRespond, CountResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/match-requests", response_model=Dict[str, Any])
async def create_match_request(
    payload: MatchRequestCreate,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Propose a match to another player in the same league."""
    try:
        return await match_request_service.create_match_request(
            session,
            requester_id=user["id"],
            requester_name=user["name"],
            league_id=payload.league_id,
            opponent_id=payload.opponent_id,
            message=payload.message,
            suggested_date=payload.suggested_date,
            suggested_time=payload.suggested_time,
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(f"Error creating match request: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/match-requests", response_model=List[Dict[str, Any]])
async def list_match_requests(
    direction: Optional[str] = Query(None, alias="type"),
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Match requests the caller sent (type=sent), received (type=received), or both."""
    try:
        return await match_request_service.list_match_requests(session, user["id"], direction)
    except Exception as e:
        logger.error(f"Error fetching match requests: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/api/match-requests/pending", response_model=CountResponse)
async def count_pending_match_requests(
    user: dict = Depends(require_user), session: AsyncSession = Depends(get_db_session)
):
    """Pending match requests awaiting the caller's answer."""
    try:
        count = await match_request_service.count_pending_for_opponent(session, user["id"])
        return {"count": count}
    except Exception as e:
        logger.error(f"Error counting pending match requests: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/api/match-requests/{match_request_id}", response_model=Dict[str, Any])
async def respond_to_match_request(
    match_request_id: int,
    payload: MatchRequestRespond,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Accept or reject a match request as its opponent."""
    try:
        return await match_request_service.respond_to_match_request(
            session, match_request_id, user["id"], user["name"], payload.action
        )
    except ValueError as e:
        raise service_error(e)
    except Exception as e:
        logger.error(
            f"Error responding to match request {match_request_id}: {str(e)}", exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error")
