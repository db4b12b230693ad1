"""
League service: leagues, their enrolled players and their teams.

A league belongs to the manager who created it. Managers see their own
leagues; superadmins see all of them; anyone may ask for the public view of
ACTIVE leagues.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from leaguehub.database.models import (
    League,
    LeagueFormat,
    LeaguePlayer,
    LeagueStatus,
    LeagueType,
    Match,
    MatchRequest,
    MatchScoreReport,
    Notification,
    Team,
    TeamCategory,
    User,
    UserRole,
    UserStatus,
)
from leaguehub.services.exceptions import (
    ConfirmationRequiredError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from leaguehub.services.team_service import check_player_fits_category
from leaguehub.utils.datetime_utils import isoformat_or_none
import logging

logger = logging.getLogger(__name__)

LEAGUE_TYPES = {t.value for t in LeagueType}
LEAGUE_FORMATS = {f.value for f in LeagueFormat}
LEAGUE_CATEGORIES = {c.value for c in TeamCategory}
LEAGUE_STATUSES = {s.value for s in LeagueStatus}
LEAGUE_MANAGER_ROLES = (UserRole.MANAGER.value, UserRole.SUPERADMIN.value)
DELETE_CONFIRMATION = "DELETE"


def _league_to_dict(league: League) -> Dict:
    return {
        "id": league.id,
        "name": league.name,
        "type": league.type,
        "category": league.category,
        "format": league.format,
        "season": league.season,
        "status": league.status,
        "created_by": league.created_by,
        "created_at": isoformat_or_none(league.created_at),
        "manager": (
            {"id": league.creator.id, "name": league.creator.name} if league.creator else None
        ),
        "teams": [
            {
                "id": team.id,
                "name": team.name,
                "category": team.category,
                "captain": {"id": team.captain.id, "name": team.captain.name},
            }
            for team in league.teams
        ],
    }


def _with_relations(query):
    return query.options(
        selectinload(League.creator),
        selectinload(League.teams).selectinload(Team.captain),
    )


async def list_leagues(
    session: AsyncSession,
    user_id: int,
    role: str,
    status: Optional[str] = None,
    public: bool = False,
) -> List[Dict]:
    """
    List leagues, newest first.

    Args:
        session: Database session
        user_id: Requesting user
        role: Requesting user's role
        status: Optional status filter (ignored for the public view)
        public: If True, list every ACTIVE league regardless of role
    """
    query = _with_relations(select(League))
    if public:
        query = query.where(League.status == LeagueStatus.ACTIVE.value)
    else:
        if status:
            query = query.where(League.status == status)
        if role != UserRole.SUPERADMIN.value:
            query = query.where(League.created_by == user_id)

    result = await session.execute(query.order_by(League.created_at.desc(), League.id.desc()))
    return [_league_to_dict(league) for league in result.scalars().all()]


async def get_league(session: AsyncSession, league_id: int) -> Dict:
    """
    Get a league with its manager and teams.

    Raises:
        NotFoundError: If the league does not exist
    """
    result = await session.execute(_with_relations(select(League).where(League.id == league_id)))
    league = result.scalar_one_or_none()
    if not league:
        raise NotFoundError("League not found")
    return _league_to_dict(league)


async def get_managed_league(
    session: AsyncSession, league_id: int, user_id: int, role: str
) -> Dict:
    """
    Get a league the caller manages (any league for a superadmin).

    Raises:
        NotFoundError: If the league does not exist
        PermissionDeniedError: If the caller did not create the league
    """
    league = await get_league(session, league_id)
    if role != UserRole.SUPERADMIN.value and league["created_by"] != user_id:
        raise PermissionDeniedError("You do not manage this league")
    return league


async def create_league(
    session: AsyncSession,
    user_id: int,
    role: str,
    name: Optional[str],
    type: Optional[str],
    category: Optional[str],
    format: Optional[str] = None,
    season: Optional[str] = None,
) -> Dict:
    """
    Create a DRAFT league managed by the caller.

    Raises:
        PermissionDeniedError: If the caller is not a MANAGER or SUPERADMIN
        ValueError: If required fields are missing or an enum value is unknown
    """
    if role not in LEAGUE_MANAGER_ROLES:
        raise PermissionDeniedError("Only managers can create leagues")
    if not name or not type or not category:
        raise ValueError("Missing required fields")
    if type not in LEAGUE_TYPES:
        raise ValueError("Invalid league type")
    if category not in LEAGUE_CATEGORIES:
        raise ValueError("Invalid category")
    if format and format not in LEAGUE_FORMATS:
        raise ValueError("Invalid league format")

    league = League(
        name=name,
        type=type,
        category=category,
        format=format or LeagueFormat.INDIVIDUAL.value,
        season=season or None,
        status=LeagueStatus.DRAFT.value,
        created_by=user_id,
    )
    session.add(league)
    await session.flush()
    await session.commit()

    logger.info(f"User {user_id} created league {league.id} ({name})")
    return await _load_league(session, league.id)


async def _load_league(session: AsyncSession, league_id: int) -> Dict:
    result = await session.execute(
        _with_relations(select(League).where(League.id == league_id))
        .execution_options(populate_existing=True)
    )
    return _league_to_dict(result.scalar_one())


async def load_managed_league(
    session: AsyncSession, league_id: int, user_id: int, role: str
) -> League:
    """
    Load the League row for a caller who manages it (any league for a superadmin).

    Raises:
        NotFoundError: If the league does not exist
        PermissionDeniedError: If the caller did not create the league
    """
    result = await session.execute(select(League).where(League.id == league_id))
    league = result.scalar_one_or_none()
    if not league:
        raise NotFoundError("League not found")
    if role != UserRole.SUPERADMIN.value and league.created_by != user_id:
        raise PermissionDeniedError("You do not manage this league")
    return league


async def update_league(
    session: AsyncSession,
    league_id: int,
    user_id: int,
    role: str,
    name: Optional[str] = None,
    status: Optional[str] = None,
    season: Optional[str] = None,
    action: Optional[str] = None,
) -> Dict:
    """
    Edit a league, or start it with action="startLeague".

    Starting moves a DRAFT league to ACTIVE; any other current status is
    rejected. Without an action, name, status and season are updated as given.

    Raises:
        NotFoundError: If the league does not exist
        PermissionDeniedError: If the caller does not manage the league
        ValueError: On an unknown action or status, or starting a non-DRAFT league
    """
    league = await load_managed_league(session, league_id, user_id, role)

    if action:
        if action != "startLeague":
            raise ValueError("Invalid action")
        if league.status != LeagueStatus.DRAFT.value:
            raise ValueError("Only DRAFT leagues can be started")
        league.status = LeagueStatus.ACTIVE.value
    else:
        if status and status not in LEAGUE_STATUSES:
            raise ValueError("Invalid status")
        if name:
            league.name = name
        if status:
            league.status = status
        if season is not None:
            league.season = season or None
    await session.commit()

    logger.info(f"User {user_id} updated league {league_id} (status {league.status})")
    return await _load_league(session, league_id)


async def delete_league(
    session: AsyncSession,
    league_id: int,
    user_id: int,
    role: str,
    confirmation: Optional[str] = None,
) -> Dict:
    """
    Delete a league with its matches, match requests and enrollments.

    Teams survive and are detached from the league. A league that already
    has matches is only deleted when confirmation == "DELETE".

    Raises:
        NotFoundError: If the league does not exist
        PermissionDeniedError: If the caller does not manage the league
        ConfirmationRequiredError: If matches exist and the deletion is unconfirmed
    """
    await load_managed_league(session, league_id, user_id, role)

    count_result = await session.execute(
        select(func.count()).select_from(Match).where(Match.league_id == league_id)
    )
    matches_count = count_result.scalar_one()
    if matches_count and confirmation != DELETE_CONFIRMATION:
        raise ConfirmationRequiredError(
            f"League has {matches_count} matches. Send confirmation DELETE to remove them",
            matches_count=matches_count,
        )

    match_ids = select(Match.id).where(Match.league_id == league_id)
    request_ids = select(MatchRequest.id).where(MatchRequest.league_id == league_id)
    await session.execute(
        delete(Notification)
        .where(
            or_(Notification.match_id.in_(match_ids), Notification.match_request_id.in_(request_ids))
        )
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(MatchScoreReport)
        .where(MatchScoreReport.match_id.in_(match_ids))
        .execution_options(synchronize_session=False)
    )
    await session.execute(delete(Match).where(Match.league_id == league_id))
    await session.execute(delete(MatchRequest).where(MatchRequest.league_id == league_id))
    await session.execute(delete(LeaguePlayer).where(LeaguePlayer.league_id == league_id))
    await session.execute(update(Team).where(Team.league_id == league_id).values(league_id=None))
    await session.execute(delete(League).where(League.id == league_id))
    await session.commit()

    logger.info(f"User {user_id} deleted league {league_id} ({matches_count} matches)")
    return {"success": True, "deletedMatches": matches_count}


def _league_player_to_dict(league_player: LeaguePlayer) -> Dict:
    return {
        "id": league_player.id,
        "league_id": league_player.league_id,
        "player_id": league_player.player_id,
        "created_at": isoformat_or_none(league_player.created_at),
        "player": {
            "id": league_player.player.id,
            "name": league_player.player.name,
            "email": league_player.player.email,
            "gender": league_player.player.gender,
            "level": league_player.player.level,
        },
    }


async def list_league_players(
    session: AsyncSession, league_id: int, user_id: int, role: str
) -> List[Dict]:
    """List a managed league's players, most recently enrolled first."""
    await load_managed_league(session, league_id, user_id, role)
    result = await session.execute(
        select(LeaguePlayer)
        .where(LeaguePlayer.league_id == league_id)
        .options(selectinload(LeaguePlayer.player))
        .order_by(LeaguePlayer.created_at.desc(), LeaguePlayer.id.desc())
    )
    return [_league_player_to_dict(lp) for lp in result.scalars().all()]


async def add_league_player(
    session: AsyncSession, league_id: int, user_id: int, role: str, player_id: Optional[int]
) -> Dict:
    """
    Enroll a player in an individual league.

    Enrolled players can send each other match requests in that league.

    Raises:
        NotFoundError: If the league or player does not exist
        PermissionDeniedError: If the caller does not manage the league
        ValueError: On a doubles league, an unapproved player or a gender mismatch
        ConflictError: If the player is already enrolled
    """
    league = await load_managed_league(session, league_id, user_id, role)
    if not player_id:
        raise ValueError("Missing playerId")
    if league.format != LeagueFormat.INDIVIDUAL.value:
        raise ValueError("Players can only be added to individual leagues")

    player_result = await session.execute(select(User).where(User.id == player_id))
    player = player_result.scalar_one_or_none()
    if not player:
        raise NotFoundError("Player not found")
    if player.status != UserStatus.APPROVED.value:
        raise ValueError("Only approved players can be added to leagues")
    check_player_fits_category(league.category, player.gender, noun="league")

    existing = await session.execute(
        select(LeaguePlayer.id).where(
            LeaguePlayer.league_id == league_id, LeaguePlayer.player_id == player_id
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Player already in league")

    league_player = LeaguePlayer(league_id=league_id, player_id=player_id)
    session.add(league_player)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Player already in league")
    await session.commit()

    result = await session.execute(
        select(LeaguePlayer)
        .where(LeaguePlayer.id == league_player.id)
        .options(selectinload(LeaguePlayer.player))
        .execution_options(populate_existing=True)
    )
    logger.info(f"User {user_id} added player {player_id} to league {league_id}")
    return _league_player_to_dict(result.scalar_one())


async def remove_league_player(
    session: AsyncSession, league_id: int, user_id: int, role: str, player_id: Optional[int]
) -> Dict:
    """
    Withdraw a player from a league.

    Raises:
        NotFoundError: If the league does not exist or the player is not enrolled
        PermissionDeniedError: If the caller does not manage the league
    """
    await load_managed_league(session, league_id, user_id, role)
    if not player_id:
        raise ValueError("Missing playerId")
    result = await session.execute(
        delete(LeaguePlayer).where(
            LeaguePlayer.league_id == league_id, LeaguePlayer.player_id == player_id
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Player not in league")
    await session.commit()
    logger.info(f"User {user_id} removed player {player_id} from league {league_id}")
    return {"success": True}


async def add_league_team(
    session: AsyncSession, league_id: int, user_id: int, role: str, team_id: Optional[int]
) -> Dict:
    """
    Attach a team to a doubles league. A team moved from another league is detached from it.

    Raises:
        NotFoundError: If the league or team does not exist
        PermissionDeniedError: If the caller does not manage the league
        ValueError: On a non-doubles league or a category mismatch
        ConflictError: If the team is already in this league
    """
    league = await load_managed_league(session, league_id, user_id, role)
    if not team_id:
        raise ValueError("Missing teamId")

    team_result = await session.execute(select(Team).where(Team.id == team_id))
    team = team_result.scalar_one_or_none()
    if not team:
        raise NotFoundError("Team not found")
    if league.format != LeagueFormat.DOUBLES.value:
        raise ValueError("Teams can only be added to doubles leagues")
    if team.category != league.category:
        raise ValueError("Team category does not match league category")
    if team.league_id == league_id:
        raise ConflictError("Team already in league")

    team.league_id = league_id
    await session.commit()
    logger.info(f"User {user_id} added team {team_id} to league {league_id}")
    return await _load_league(session, league_id)


async def remove_league_team(
    session: AsyncSession, league_id: int, user_id: int, role: str, team_id: Optional[int]
) -> Dict:
    """
    Detach a team from a league.

    Raises:
        NotFoundError: If the league does not exist or the team is not in it
        PermissionDeniedError: If the caller does not manage the league
    """
    await load_managed_league(session, league_id, user_id, role)
    if not team_id:
        raise ValueError("Missing teamId")
    result = await session.execute(
        update(Team).where(Team.id == team_id, Team.league_id == league_id).values(league_id=None)
    )
    if result.rowcount == 0:
        raise NotFoundError("Team not in league")
    await session.commit()
    logger.info(f"User {user_id} removed team {team_id} from league {league_id}")
    return {"success": True}


async def list_player_leagues(session: AsyncSession, user_id: int) -> List[Dict]:
    """Leagues the user is enrolled in, newest first, with manager and player count."""
    player_counts = (
        select(LeaguePlayer.league_id, func.count(LeaguePlayer.id).label("players_count"))
        .group_by(LeaguePlayer.league_id)
        .subquery()
    )
    result = await session.execute(
        select(League, player_counts.c.players_count)
        .join(LeaguePlayer, LeaguePlayer.league_id == League.id)
        .join(player_counts, player_counts.c.league_id == League.id)
        .where(LeaguePlayer.player_id == user_id)
        .options(selectinload(League.creator))
        .order_by(League.created_at.desc(), League.id.desc())
    )
    leagues = []
    for league, players_count in result.all():
        leagues.append(
            {
                "id": league.id,
                "name": league.name,
                "type": league.type,
                "category": league.category,
                "format": league.format,
                "season": league.season,
                "status": league.status,
                "manager": (
                    {"id": league.creator.id, "name": league.creator.name}
                    if league.creator
                    else None
                ),
                "players_count": players_count,
            }
        )
    return leagues
