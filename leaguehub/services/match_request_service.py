"""
Match request service.

League players propose matches to each other; the opponent accepts
(creating a scheduled match) or rejects. Both outcomes notify the players.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import selectinload
from leaguehub.database.models import (
    League,
    LeagueFormat,
    LeaguePlayer,
    Match,
    MatchRequest,
    MatchRequestStatus,
    MatchStatus,
    MatchType,
    NotificationType,
    User,
)
from leaguehub.services import notification_service
from leaguehub.services.exceptions import NotFoundError, PermissionDeniedError, ConflictError
from leaguehub.utils.datetime_utils import isoformat_or_none, parse_suggested_date
import logging

logger = logging.getLogger(__name__)

MATCH_REQUEST_ACTIONS = ("accept", "reject")


def _user_summary(user: User, include_email: bool = False) -> Dict:
    summary = {"id": user.id, "name": user.name}
    if include_email:
        summary["email"] = user.email
    return summary


def _match_to_dict(match: Match) -> Dict:
    return {
        "id": match.id,
        "league_id": match.league_id,
        "home_player_id": match.home_player_id,
        "away_player_id": match.away_player_id,
        "category": match.category,
        "match_type": match.match_type,
        "scheduled_date": isoformat_or_none(match.scheduled_date),
        "status": match.status,
        "match_request_id": match.match_request_id,
    }


def _match_request_to_dict(match_request: MatchRequest, include_email: bool = False) -> Dict:
    match_request_dict = {
        "id": match_request.id,
        "league_id": match_request.league_id,
        "requester_id": match_request.requester_id,
        "opponent_id": match_request.opponent_id,
        "status": match_request.status,
        "message": match_request.message,
        "suggested_date": isoformat_or_none(match_request.suggested_date),
        "suggested_time": match_request.suggested_time,
        "created_at": isoformat_or_none(match_request.created_at),
        "requester": _user_summary(match_request.requester, include_email),
        "opponent": _user_summary(match_request.opponent, include_email),
        "league": {
            "id": match_request.league.id,
            "name": match_request.league.name,
            "format": match_request.league.format,
        },
    }
    return match_request_dict


def _with_relations(query):
    return query.options(
        selectinload(MatchRequest.requester),
        selectinload(MatchRequest.opponent),
        selectinload(MatchRequest.league),
        selectinload(MatchRequest.match),
    )


async def _is_league_member(session: AsyncSession, league_id: int, user_id: int) -> bool:
    result = await session.execute(
        select(LeaguePlayer.id).where(
            LeaguePlayer.league_id == league_id, LeaguePlayer.player_id == user_id
        )
    )
    return result.scalar_one_or_none() is not None


async def count_pending_for_opponent(session: AsyncSession, user_id: int) -> int:
    """Count pending match requests where the user is the opponent."""
    result = await session.execute(
        select(func.count())
        .select_from(MatchRequest)
        .where(
            MatchRequest.opponent_id == user_id,
            MatchRequest.status == MatchRequestStatus.PENDING.value,
        )
    )
    return result.scalar_one() or 0


async def create_match_request(
    session: AsyncSession,
    requester_id: int,
    requester_name: str,
    league_id: int,
    opponent_id: int,
    message: Optional[str] = None,
    suggested_date: Optional[str] = None,
    suggested_time: Optional[str] = None,
) -> Dict:
    """
    Send a match request to another member of the same league.

    Raises:
        PermissionDeniedError: If the requester is not a league member
        ValueError: If the opponent is not a league member, is the requester,
            or the suggested date cannot be parsed
        ConflictError: If a pending or accepted request to this opponent exists
        NotFoundError: If the league does not exist
    """
    if not await _is_league_member(session, league_id, requester_id):
        raise PermissionDeniedError("You are not a member of this league")

    if not await _is_league_member(session, league_id, opponent_id):
        raise ValueError("Opponent is not a member of this league")

    if requester_id == opponent_id:
        raise ValueError("You cannot send a match request to yourself")

    existing = await session.execute(
        select(MatchRequest.id).where(
            MatchRequest.league_id == league_id,
            MatchRequest.requester_id == requester_id,
            MatchRequest.opponent_id == opponent_id,
            MatchRequest.status != MatchRequestStatus.REJECTED.value,
        ).limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(
            "You already have a pending or accepted request with this opponent in this league"
        )

    league_result = await session.execute(select(League).where(League.id == league_id))
    league = league_result.scalar_one_or_none()
    if not league:
        raise NotFoundError("League not found")

    match_request = MatchRequest(
        league_id=league_id,
        requester_id=requester_id,
        opponent_id=opponent_id,
        message=message or None,
        suggested_date=parse_suggested_date(suggested_date),
        suggested_time=suggested_time or None,
        status=MatchRequestStatus.PENDING.value,
    )
    session.add(match_request)
    await session.flush()

    await notification_service.create_notification(
        session=session,
        user_id=opponent_id,
        type=NotificationType.MATCH_REQUEST.value,
        message=f"{requester_name} sent you a match request in {league.name}",
        match_request_id=match_request.id,
        link_url="/player/match-requests",
    )
    await session.commit()

    result = await session.execute(
        _with_relations(select(MatchRequest).where(MatchRequest.id == match_request.id))
        .execution_options(populate_existing=True)
    )
    logger.info(f"User {requester_id} sent match request {match_request.id} to {opponent_id}")
    return _match_request_to_dict(result.scalar_one())


async def list_match_requests(
    session: AsyncSession, user_id: int, direction: Optional[str] = None
) -> List[Dict]:
    """
    List match requests the user sent, received, or both (default).

    Each entry includes the resulting match summary when one was created.
    """
    query = _with_relations(select(MatchRequest))
    if direction == "sent":
        query = query.where(MatchRequest.requester_id == user_id)
    elif direction == "received":
        query = query.where(MatchRequest.opponent_id == user_id)
    else:
        query = query.where(
            or_(MatchRequest.requester_id == user_id, MatchRequest.opponent_id == user_id)
        )

    result = await session.execute(
        query.order_by(MatchRequest.created_at.desc(), MatchRequest.id.desc())
    )
    items = []
    for match_request in result.scalars().all():
        item = _match_request_to_dict(match_request, include_email=True)
        item["match"] = (
            {
                "id": match_request.match.id,
                "status": match_request.match.status,
                "scheduled_date": isoformat_or_none(match_request.match.scheduled_date),
            }
            if match_request.match
            else None
        )
        items.append(item)
    return items


async def respond_to_match_request(
    session: AsyncSession, match_request_id: int, user_id: int, user_name: str, action: str
) -> Dict:
    """
    Accept or reject a pending match request as its opponent.

    Reject marks the request REJECTED and notifies the requester. Accept
    creates a SCHEDULED match (SINGLE for individual leagues, DOUBLE
    otherwise), marks the request ACCEPTED and notifies both players.

    Returns:
        For reject, the updated request dict. For accept, a dict with
        match_request and match.

    Raises:
        ValueError: If action is not accept/reject
        NotFoundError: If the request does not exist
        PermissionDeniedError: If the user is not the opponent
        ConflictError: If the request was already processed
    """
    if action not in MATCH_REQUEST_ACTIONS:
        raise ValueError("Action must be 'accept' or 'reject'")

    result = await session.execute(
        _with_relations(select(MatchRequest).where(MatchRequest.id == match_request_id))
    )
    match_request = result.scalar_one_or_none()
    if not match_request:
        raise NotFoundError("Match request not found")

    if match_request.opponent_id != user_id:
        raise PermissionDeniedError("You can only accept/reject requests sent to you")

    if match_request.status != MatchRequestStatus.PENDING.value:
        raise ConflictError("This match request has already been processed")

    league = match_request.league
    new_status = (
        MatchRequestStatus.ACCEPTED.value if action == "accept" else MatchRequestStatus.REJECTED.value
    )
    transition = await session.execute(
        update(MatchRequest)
        .where(
            MatchRequest.id == match_request_id,
            MatchRequest.status == MatchRequestStatus.PENDING.value,
        )
        .values(status=new_status)
    )
    if transition.rowcount == 0:
        await session.rollback()
        raise ConflictError("This match request has already been processed")

    if action == "reject":
        await notification_service.create_notification(
            session=session,
            user_id=match_request.requester_id,
            type=NotificationType.MATCH_REJECTED.value,
            message=f"{user_name} rejected your match request in {league.name}",
            match_request_id=match_request.id,
        )
        await session.commit()
        logger.info(f"Match request {match_request_id} rejected by user {user_id}")
        return _match_request_to_dict(match_request)

    match_type = (
        MatchType.SINGLE.value
        if league.format == LeagueFormat.INDIVIDUAL.value
        else MatchType.DOUBLE.value
    )
    match = Match(
        league_id=match_request.league_id,
        home_player_id=match_request.requester_id,
        away_player_id=match_request.opponent_id,
        category=league.category,
        match_type=match_type,
        scheduled_date=match_request.suggested_date,
        status=MatchStatus.SCHEDULED.value,
        match_request_id=match_request.id,
    )
    session.add(match)
    await session.flush()

    await notification_service.create_notifications_bulk(
        session,
        [
            {
                "user_id": match_request.requester_id,
                "type": NotificationType.MATCH_ACCEPTED.value,
                "message": f"{user_name} accepted your match request in {league.name}",
                "match_request_id": match_request.id,
                "match_id": match.id,
            },
            {
                "user_id": match_request.opponent_id,
                "type": NotificationType.MATCH_ACCEPTED.value,
                "message": (
                    f"You accepted {match_request.requester.name}'s match request in {league.name}"
                ),
                "match_request_id": match_request.id,
                "match_id": match.id,
            },
        ],
    )
    await session.commit()
    logger.info(f"Match request {match_request_id} accepted, match {match.id} scheduled")

    return {
        "match_request": _match_request_to_dict(match_request),
        "match": _match_to_dict(match),
    }
