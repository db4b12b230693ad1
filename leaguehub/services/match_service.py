"""
Match service: listing matches, score reports and manager approval.

Each side reports the result from its own point of view. The match keeps
the latest reported result (sets won per side) and a score status that
tracks who has reported; the league manager then approves it.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from leaguehub.database.models import (
    League,
    Match,
    MatchScoreReport,
    MatchStatus,
    ScoreStatus,
    Team,
    TeamPlayer,
    UserRole,
)
from leaguehub.services import tennis_scoring
from leaguehub.services.exceptions import NotFoundError, PermissionDeniedError, ConflictError
from leaguehub.utils.datetime_utils import isoformat_or_none, parse_suggested_date, utcnow
import logging

logger = logging.getLogger(__name__)

MATCH_STATUSES = {s.value for s in MatchStatus}
REPORTED_STATUSES = (
    ScoreStatus.REPORTED_BY_HOME.value,
    ScoreStatus.REPORTED_BY_AWAY.value,
    ScoreStatus.REPORTED_BY_BOTH.value,
)
FINAL_STATUSES = (ScoreStatus.APPROVED.value, ScoreStatus.MANAGER_ENTERED.value)


def _side_summary(user=None, team=None) -> Optional[Dict]:
    if team is not None:
        return {"id": team.id, "name": team.name, "captain_id": team.captain_id}
    if user is not None:
        return {"id": user.id, "name": user.name}
    return None


def _score_report_to_dict(report: MatchScoreReport) -> Dict:
    return {
        "id": report.id,
        "match_id": report.match_id,
        "reported_by": report.reported_by,
        "sets_won": report.sets_won,
        "sets_lost": report.sets_lost,
        "games_won": report.games_won,
        "games_lost": report.games_lost,
        "set_scores": report.set_scores,
        "score": tennis_scoring.format_tennis_score(report.set_scores),
        "reporter": {"id": report.reporter.id, "name": report.reporter.name},
        "updated_at": isoformat_or_none(report.updated_at),
    }


def _match_to_dict(match: Match, include_reports: bool = False) -> Dict:
    match_dict = {
        "id": match.id,
        "league_id": match.league_id,
        "round": match.round,
        "category": match.category,
        "match_type": match.match_type,
        "scheduled_date": isoformat_or_none(match.scheduled_date),
        "status": match.status,
        "home_score": match.home_score,
        "away_score": match.away_score,
        "score_status": match.score_status,
        "approved_by": match.approved_by,
        "approved_at": isoformat_or_none(match.approved_at),
        "match_request_id": match.match_request_id,
        "home_player_id": match.home_player_id,
        "away_player_id": match.away_player_id,
        "home_team_id": match.home_team_id,
        "away_team_id": match.away_team_id,
        "home": _side_summary(match.home_player, match.home_team),
        "away": _side_summary(match.away_player, match.away_team),
        "league": {"id": match.league.id, "name": match.league.name},
    }
    if include_reports:
        match_dict["score_reports"] = [_score_report_to_dict(r) for r in match.score_reports]
    return match_dict


def _with_relations(query, include_reports: bool = False):
    query = query.options(
        selectinload(Match.league),
        selectinload(Match.home_player),
        selectinload(Match.away_player),
        selectinload(Match.home_team),
        selectinload(Match.away_team),
    )
    if include_reports:
        query = query.options(
            selectinload(Match.score_reports).selectinload(MatchScoreReport.reporter)
        )
    return query


async def _load_match(session: AsyncSession, match_id: int, include_reports: bool = False) -> Match:
    result = await session.execute(
        _with_relations(select(Match).where(Match.id == match_id), include_reports)
        .execution_options(populate_existing=True)
    )
    match = result.scalar_one_or_none()
    if not match:
        raise NotFoundError("Match not found")
    return match


async def list_matches(
    session: AsyncSession,
    league_id: Optional[int] = None,
    team_id: Optional[int] = None,
    player_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[Dict]:
    """
    List matches by schedule, optionally filtered.

    player_id matches a player on either side of an individual match.
    """
    query = _with_relations(select(Match))
    if league_id:
        query = query.where(Match.league_id == league_id)
    if team_id:
        query = query.where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
    if player_id:
        query = query.where(
            or_(Match.home_player_id == player_id, Match.away_player_id == player_id)
        )
    if status:
        query = query.where(Match.status == status)
    result = await session.execute(
        query.order_by(Match.scheduled_date.asc(), Match.round.asc(), Match.id.asc())
    )
    return [_match_to_dict(match) for match in result.scalars().all()]


async def get_match(session: AsyncSession, match_id: int) -> Dict:
    """
    Get a match with both sides and all score reports.

    Raises:
        NotFoundError: If the match does not exist
    """
    return _match_to_dict(await _load_match(session, match_id, include_reports=True), True)


async def _team_member_ids(session: AsyncSession, team: Optional[Team]) -> set:
    if team is None:
        return set()
    result = await session.execute(
        select(TeamPlayer.player_id).where(TeamPlayer.team_id == team.id)
    )
    return set(result.scalars().all()) | {team.captain_id}


async def _reporting_side(session: AsyncSession, match: Match, user_id: int) -> str:
    """Return "home" or "away" for a participant of the match."""
    if match.home_player_id == user_id:
        return "home"
    if match.away_player_id == user_id:
        return "away"
    if user_id in await _team_member_ids(session, match.home_team):
        return "home"
    if user_id in await _team_member_ids(session, match.away_team):
        return "away"
    raise PermissionDeniedError("You are not playing in this match")


def _next_score_status(current: str, side: str) -> str:
    reported_by_side = (
        ScoreStatus.REPORTED_BY_HOME.value if side == "home" else ScoreStatus.REPORTED_BY_AWAY.value
    )
    other_side = (
        ScoreStatus.REPORTED_BY_AWAY.value if side == "home" else ScoreStatus.REPORTED_BY_HOME.value
    )
    if current == ScoreStatus.PENDING.value:
        return reported_by_side
    if current == other_side:
        return ScoreStatus.REPORTED_BY_BOTH.value
    return current


async def report_score(
    session: AsyncSession, match_id: int, user_id: int, sets: List[Dict]
) -> Dict:
    """
    Record a participant's result for a match.

    A second report by the same user replaces the first. The match score
    (sets won per side) follows the latest report until it is approved.

    Args:
        session: Database session
        match_id: Match being reported
        user_id: Reporting participant
        sets: Set scores from the reporter's side (see tennis_scoring)

    Returns:
        Dict with the score report and the match's new score status

    Raises:
        ValueError: If the score is invalid or the match was cancelled
        NotFoundError: If the match does not exist
        PermissionDeniedError: If the user is not playing in the match
        ConflictError: If the result was already approved
    """
    tennis_scoring.validate_tennis_score(sets)

    match = await _load_match(session, match_id)
    side = await _reporting_side(session, match, user_id)
    if match.status == MatchStatus.CANCELLED.value:
        raise ValueError("Cannot report a score for a cancelled match")
    if match.score_status in FINAL_STATUSES:
        raise ConflictError("Match score already approved")

    sets_won, sets_lost = tennis_scoring.calculate_sets(sets)
    games_won, games_lost = tennis_scoring.calculate_games(sets)

    existing = await session.execute(
        select(MatchScoreReport).where(
            MatchScoreReport.match_id == match_id, MatchScoreReport.reported_by == user_id
        )
    )
    report = existing.scalar_one_or_none()
    if report is None:
        report = MatchScoreReport(match_id=match_id, reported_by=user_id)
        session.add(report)
    report.sets_won = sets_won
    report.sets_lost = sets_lost
    report.games_won = games_won
    report.games_lost = games_lost
    report.set_scores = [dict(s) for s in sets]

    home_away = tennis_scoring.to_home_away(sets, reporter_is_home=side == "home")
    match.home_score = home_away["sets_won_home"]
    match.away_score = home_away["sets_won_away"]
    match.score_status = _next_score_status(match.score_status, side)
    new_status = match.score_status

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Score already reported")
    await session.commit()

    result = await session.execute(
        select(MatchScoreReport)
        .where(MatchScoreReport.id == report.id)
        .options(selectinload(MatchScoreReport.reporter))
        .execution_options(populate_existing=True)
    )
    logger.info(f"User {user_id} reported {sets_won}-{sets_lost} for match {match_id} ({new_status})")
    return {
        "success": True,
        "score_report": _score_report_to_dict(result.scalar_one()),
        "score_status": new_status,
    }


async def _check_league_manager(session: AsyncSession, league_id: int, user_id: int, role: str):
    if role == UserRole.SUPERADMIN.value:
        return
    if role == UserRole.MANAGER.value:
        result = await session.execute(select(League.created_by).where(League.id == league_id))
        if result.scalar_one_or_none() == user_id:
            return
    raise PermissionDeniedError("Only the league manager can do this")


async def approve_match(session: AsyncSession, match_id: int, user_id: int, role: str) -> Dict:
    """
    Approve a match result as the league manager (or a superadmin).

    The match becomes PLAYED and its score final.

    Raises:
        NotFoundError: If the match does not exist
        PermissionDeniedError: If the caller does not manage the league
        ValueError: If no score has been recorded
    """
    match = await _load_match(session, match_id)
    await _check_league_manager(session, match.league_id, user_id, role)
    if match.home_score is None or match.away_score is None:
        raise ValueError("Match scores must be set before approval")

    match.status = MatchStatus.PLAYED.value
    match.score_status = ScoreStatus.APPROVED.value
    match.approved_by = user_id
    match.approved_at = utcnow()
    await session.commit()

    logger.info(f"User {user_id} approved match {match_id}")
    return _match_to_dict(await _load_match(session, match_id))


async def update_match(
    session: AsyncSession,
    match_id: int,
    user_id: int,
    role: str,
    home_score: Optional[int] = None,
    away_score: Optional[int] = None,
    scheduled_date: Optional[str] = None,
    status: Optional[str] = None,
) -> Dict:
    """
    Edit a match.

    Participants (players, or team captains) may set the date and the
    score. Managers may also change the status; a score they enter is final
    and setting PLAYED records them as the approver.

    Raises:
        NotFoundError: If the match does not exist
        PermissionDeniedError: If the caller is neither a participant nor a manager
        ValueError: On a negative score, unknown status or bad date
        ConflictError: If a participant edits an approved score
    """
    match = await _load_match(session, match_id)
    is_manager = role in (UserRole.MANAGER.value, UserRole.SUPERADMIN.value)
    if is_manager:
        await _check_league_manager(session, match.league_id, user_id, role)
    else:
        captains = {
            team.captain_id for team in (match.home_team, match.away_team) if team is not None
        }
        players = {match.home_player_id, match.away_player_id} - {None}
        if user_id not in captains | players:
            raise PermissionDeniedError("You are not playing in this match")

    if status is not None and not is_manager:
        raise PermissionDeniedError("Only the league manager can change the match status")
    if status is not None and status not in MATCH_STATUSES:
        raise ValueError("Invalid status")
    for score in (home_score, away_score):
        if score is not None and score < 0:
            raise ValueError("Scores cannot be negative")

    if home_score is not None or away_score is not None:
        if not is_manager and match.score_status in FINAL_STATUSES:
            raise ConflictError("Match score already approved")
        if home_score is not None:
            match.home_score = home_score
        if away_score is not None:
            match.away_score = away_score
        if is_manager:
            match.score_status = ScoreStatus.MANAGER_ENTERED.value
    if scheduled_date is not None:
        match.scheduled_date = parse_suggested_date(scheduled_date)
    if status is not None:
        match.status = status
        if status == MatchStatus.PLAYED.value and match.approved_by is None:
            match.approved_by = user_id
            match.approved_at = utcnow()
    await session.commit()

    logger.info(f"User {user_id} updated match {match_id}")
    return _match_to_dict(await _load_match(session, match_id))


async def list_pending_approval(session: AsyncSession, user_id: int, role: str) -> List[Dict]:
    """
    Matches with reported but unapproved results, most recently reported first.

    Managers see their own leagues; superadmins see every league.
    """
    if role not in (UserRole.MANAGER.value, UserRole.SUPERADMIN.value):
        raise PermissionDeniedError("Only managers can review match results")

    query = _with_relations(
        select(Match).where(Match.score_status.in_(REPORTED_STATUSES)), include_reports=True
    )
    if role != UserRole.SUPERADMIN.value:
        query = query.where(
            Match.league_id.in_(select(League.id).where(League.created_by == user_id))
        )
    result = await session.execute(query.order_by(Match.updated_at.desc(), Match.id.desc()))
    return [_match_to_dict(match, include_reports=True) for match in result.scalars().all()]
