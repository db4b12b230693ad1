"""
Team service: team records and their rosters.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from leaguehub.database.models import (
    Invitation,
    InvitationStatus,
    League,
    Match,
    Team,
    TeamCategory,
    TeamPlayer,
    User,
    UserRole,
)
from leaguehub.services.exceptions import NotFoundError, PermissionDeniedError, ConflictError
import logging

logger = logging.getLogger(__name__)

TEAM_CATEGORIES = {c.value for c in TeamCategory}


def _team_to_dict(team: Team) -> Dict:
    return {
        "id": team.id,
        "name": team.name,
        "category": team.category,
        "captain_id": team.captain_id,
        "league_id": team.league_id,
        "max_players": team.max_players,
        "captain": {"id": team.captain.id, "name": team.captain.name, "email": team.captain.email},
        "players": [
            {
                "id": tp.player.id,
                "name": tp.player.name,
                "gender": tp.player.gender,
                "level": tp.player.level,
            }
            for tp in team.players
        ],
        "league": {"id": team.league.id, "name": team.league.name} if team.league else None,
    }


def _with_relations(query):
    return query.options(
        selectinload(Team.captain),
        selectinload(Team.players).selectinload(TeamPlayer.player),
        selectinload(Team.league),
    )


async def list_teams(
    session: AsyncSession, category: Optional[str] = None, league_id: Optional[int] = None
) -> List[Dict]:
    """List teams ordered by name, optionally filtered by category and league."""
    query = _with_relations(select(Team))
    if category:
        query = query.where(Team.category == category)
    if league_id:
        query = query.where(Team.league_id == league_id)
    result = await session.execute(query.order_by(Team.name.asc()))
    return [_team_to_dict(team) for team in result.scalars().all()]


def parse_max_players(max_players) -> Optional[int]:
    """
    Validate the optional roster limit.

    Raises:
        ValueError: If the value is not a positive integer
    """
    if max_players is None:
        return None
    try:
        parsed = int(max_players)
    except (TypeError, ValueError):
        raise ValueError("maxPlayers must be a positive number")
    if parsed < 1:
        raise ValueError("maxPlayers must be a positive number")
    return parsed


async def create_team(
    session: AsyncSession,
    captain_id: int,
    captain_role: str,
    name: Optional[str],
    category: Optional[str],
    league_id: Optional[int] = None,
    max_players=None,
) -> Dict:
    """
    Create a team captained by the caller.

    Raises:
        PermissionDeniedError: If the caller is a PLAYER
        ValueError: If name/category are missing or invalid, or maxPlayers is invalid
        NotFoundError: If league_id does not exist
    """
    if captain_role == UserRole.PLAYER.value:
        raise PermissionDeniedError("Players cannot create teams")
    if not name or not category:
        raise ValueError("Missing name or category")
    if category not in TEAM_CATEGORIES:
        raise ValueError("Invalid category")
    max_players_value = parse_max_players(max_players)

    if league_id:
        league = await session.execute(select(League.id).where(League.id == league_id))
        if league.scalar_one_or_none() is None:
            raise NotFoundError("League not found")

    team = Team(
        name=name,
        category=category,
        captain_id=captain_id,
        league_id=league_id or None,
        max_players=max_players_value,
    )
    session.add(team)
    await session.flush()
    await session.commit()

    result = await session.execute(
        _with_relations(select(Team).where(Team.id == team.id))
        .execution_options(populate_existing=True)
    )
    logger.info(f"User {captain_id} created team {team.id} ({name})")
    return _team_to_dict(result.scalar_one())


async def _load_team(session: AsyncSession, team_id: int) -> Team:
    result = await session.execute(
        _with_relations(select(Team).where(Team.id == team_id))
        .execution_options(populate_existing=True)
    )
    team = result.scalar_one_or_none()
    if not team:
        raise NotFoundError("Team not found")
    return team


def _can_edit_team(team: Team, user_id: int, role: str) -> bool:
    return team.captain_id == user_id or role == UserRole.SUPERADMIN.value


def _can_manage_roster(team: Team, user_id: int, role: str) -> bool:
    return team.captain_id == user_id or role in (
        UserRole.MANAGER.value,
        UserRole.SUPERADMIN.value,
    )


def check_player_fits_category(category: str, gender: Optional[str], noun: str = "team") -> None:
    """
    MALE and FEMALE categories only take players of the same gender.

    Raises:
        ValueError: On mismatch
    """
    if category == TeamCategory.MALE.value and gender != TeamCategory.MALE.value:
        raise ValueError(f"Only male players can join a male {noun}")
    if category == TeamCategory.FEMALE.value and gender != TeamCategory.FEMALE.value:
        raise ValueError(f"Only female players can join a female {noun}")


async def get_team(session: AsyncSession, team_id: int) -> Dict:
    """
    Get a team with captain, players and league.

    Raises:
        NotFoundError: If the team does not exist
    """
    return _team_to_dict(await _load_team(session, team_id))


async def update_team(
    session: AsyncSession,
    team_id: int,
    user_id: int,
    role: str,
    name: Optional[str] = None,
    category: Optional[str] = None,
    max_players=None,
) -> Dict:
    """
    Rename a team, change its category or its roster limit.

    Only the captain or a superadmin may edit. A new roster limit may not be
    below the current number of players.

    Raises:
        NotFoundError: If the team does not exist
        PermissionDeniedError: If the caller may not edit the team
        ValueError: On an invalid category or limit
    """
    team = await _load_team(session, team_id)
    if not _can_edit_team(team, user_id, role):
        raise PermissionDeniedError("Only the team captain can edit this team")

    if category is not None and category not in TEAM_CATEGORIES:
        raise ValueError("Invalid category")
    max_players_value = parse_max_players(max_players)
    if max_players_value is not None and max_players_value < len(team.players):
        raise ValueError(
            f"maxPlayers cannot be below the current roster size ({len(team.players)})"
        )

    if name:
        team.name = name
    if category:
        team.category = category
    if max_players_value is not None:
        team.max_players = max_players_value
    await session.commit()

    logger.info(f"User {user_id} updated team {team_id}")
    return _team_to_dict(await _load_team(session, team_id))


async def delete_team(session: AsyncSession, team_id: int, user_id: int, role: str) -> Dict:
    """
    Delete a team with its roster and invitations.

    Raises:
        NotFoundError: If the team does not exist
        PermissionDeniedError: If the caller may not edit the team
        ConflictError: If the team already appears in league matches
    """
    result = await session.execute(
        select(Team)
        .where(Team.id == team_id)
        .options(selectinload(Team.players), selectinload(Team.invitations))
        .execution_options(populate_existing=True)
    )
    team = result.scalar_one_or_none()
    if not team:
        raise NotFoundError("Team not found")
    if not _can_edit_team(team, user_id, role):
        raise PermissionDeniedError("Only the team captain can delete this team")

    matches = await session.execute(
        select(func.count())
        .select_from(Match)
        .where(or_(Match.home_team_id == team_id, Match.away_team_id == team_id))
    )
    if matches.scalar_one():
        raise ConflictError("Team has matches and cannot be deleted")

    await session.delete(team)
    await session.commit()
    logger.info(f"User {user_id} deleted team {team_id}")
    return {"success": True}


async def add_team_player(
    session: AsyncSession, team_id: int, user_id: int, role: str, player_id: Optional[int]
) -> Dict:
    """
    Put a player straight onto a team's roster.

    Allowed for the captain, managers and superadmins. When the roster
    reaches maxPlayers, the team's pending invitations are rejected.

    Raises:
        NotFoundError: If the team or player does not exist
        PermissionDeniedError: If the caller may not manage the roster
        ValueError: On a missing player id, gender mismatch or a full roster
        ConflictError: If the player is already on the team
    """
    team = await _load_team(session, team_id)
    if not _can_manage_roster(team, user_id, role):
        raise PermissionDeniedError("Only the captain or a manager can add players")
    if not player_id:
        raise ValueError("Missing playerId")

    player_result = await session.execute(select(User).where(User.id == player_id))
    player = player_result.scalar_one_or_none()
    if not player:
        raise NotFoundError("Player not found")
    check_player_fits_category(team.category, player.gender)

    if any(tp.player_id == player_id for tp in team.players):
        raise ConflictError("Player already in team")
    if team.max_players is not None and len(team.players) >= team.max_players:
        raise ValueError(f"Team has reached its maximum of {team.max_players} players")

    session.add(TeamPlayer(team_id=team_id, player_id=player_id))
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Player already in team")

    if team.max_players is not None and len(team.players) + 1 >= team.max_players:
        await session.execute(
            update(Invitation)
            .where(
                Invitation.team_id == team_id,
                Invitation.status == InvitationStatus.PENDING.value,
            )
            .values(status=InvitationStatus.REJECTED.value)
        )
        logger.info(f"Team {team_id} is full; pending invitations rejected")
    await session.commit()

    logger.info(f"User {user_id} added player {player_id} to team {team_id}")
    return _team_to_dict(await _load_team(session, team_id))


async def remove_team_player(
    session: AsyncSession, team_id: int, user_id: int, role: str, player_id: Optional[int]
) -> Dict:
    """
    Take a player off a team's roster. The captain cannot be removed.

    Raises:
        NotFoundError: If the team does not exist or the player is not on it
        PermissionDeniedError: If the caller may not manage the roster
        ValueError: On a missing player id or an attempt to remove the captain
    """
    team = await _load_team(session, team_id)
    if not _can_manage_roster(team, user_id, role):
        raise PermissionDeniedError("Only the captain or a manager can remove players")
    if not player_id:
        raise ValueError("Missing playerId")
    if player_id == team.captain_id:
        raise ValueError("Cannot remove team captain")

    result = await session.execute(
        delete(TeamPlayer).where(TeamPlayer.team_id == team_id, TeamPlayer.player_id == player_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Player not in team")
    await session.commit()

    logger.info(f"User {user_id} removed player {player_id} from team {team_id}")
    return {"success": True}
