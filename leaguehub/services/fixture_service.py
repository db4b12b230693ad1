"""
Round-robin fixture generation.

Doubles leagues pair their teams, individual leagues pair their enrolled
players. Everyone meets everyone once; rounds are a week apart.
"""

from datetime import timedelta
from typing import Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from leaguehub.database.models import (
    LeagueFormat,
    LeaguePlayer,
    Match,
    MatchStatus,
    MatchType,
    ScoreStatus,
    Team,
)
from leaguehub.services.exceptions import ConflictError
from leaguehub.services.league_service import load_managed_league
from leaguehub.services.match_service import list_matches
from leaguehub.utils.datetime_utils import parse_suggested_date, utcnow
import logging

logger = logging.getLogger(__name__)

MATCH_TYPES = {t.value for t in MatchType}
DAYS_BETWEEN_ROUNDS = 7

_BYE = object()


def generate_round_robin(entrant_ids: Sequence[int]) -> List[Dict]:
    """
    Circle-method round robin.

    The first entrant stays put while the rest rotate one place per round.
    An odd field gets a bye slot, so n entrants play n-1 rounds when n is
    even and n rounds when n is odd. Pairs with the bye are dropped.

    Returns:
        [{"home": id, "away": id, "round": r}, ...] with 1-based rounds
    """
    if len(entrant_ids) < 2:
        return []

    slots = list(entrant_ids)
    if len(slots) % 2:
        slots.append(_BYE)
    fixed, rotating = slots[0], slots[1:]

    fixtures = []
    for round_index in range(len(slots) - 1):
        if round_index > 0:
            rotating.insert(0, rotating.pop())
        lineup = [fixed] + rotating
        for i in range(len(lineup) // 2):
            home, away = lineup[i], lineup[-1 - i]
            if home is _BYE or away is _BYE:
                continue
            fixtures.append({"home": home, "away": away, "round": round_index + 1})
    return fixtures


async def generate_fixtures(
    session: AsyncSession,
    league_id: int,
    user_id: int,
    role: str,
    match_type: Optional[str],
    start_date: Optional[str] = None,
) -> Dict:
    """
    Create the full schedule for a league that has no matches yet.

    Args:
        session: Database session
        league_id: League to schedule
        user_id: Acting manager
        role: Their role
        match_type: SINGLE or DOUBLE
        start_date: Date of round 1 (defaults to now)

    Raises:
        NotFoundError: If the league does not exist
        PermissionDeniedError: If the caller does not manage the league
        ValueError: On an unknown match type, a bad date or fewer than two entrants
        ConflictError: If the league already has matches
    """
    league = await load_managed_league(session, league_id, user_id, role)
    if not match_type or match_type not in MATCH_TYPES:
        raise ValueError("Invalid match type")
    base_date = parse_suggested_date(start_date) or utcnow()

    doubles = league.format == LeagueFormat.DOUBLES.value
    if doubles:
        entrants = await session.execute(
            select(Team.id).where(Team.league_id == league_id).order_by(Team.id)
        )
    else:
        entrants = await session.execute(
            select(LeaguePlayer.player_id)
            .where(LeaguePlayer.league_id == league_id)
            .order_by(LeaguePlayer.id)
        )
    entrant_ids = list(entrants.scalars().all())
    if len(entrant_ids) < 2:
        raise ValueError(f"League must have at least 2 {'teams' if doubles else 'players'}")

    existing = await session.execute(
        select(func.count()).select_from(Match).where(Match.league_id == league_id)
    )
    if existing.scalar_one():
        raise ConflictError("Fixtures already exist for this league")

    fixtures = generate_round_robin(entrant_ids)
    for fixture in fixtures:
        sides = (
            {"home_team_id": fixture["home"], "away_team_id": fixture["away"]}
            if doubles
            else {"home_player_id": fixture["home"], "away_player_id": fixture["away"]}
        )
        session.add(
            Match(
                league_id=league_id,
                round=fixture["round"],
                category=league.category,
                match_type=match_type,
                scheduled_date=base_date
                + timedelta(days=DAYS_BETWEEN_ROUNDS * (fixture["round"] - 1)),
                status=MatchStatus.SCHEDULED.value,
                score_status=ScoreStatus.PENDING.value,
                **sides,
            )
        )
    await session.flush()
    await session.commit()

    logger.info(
        f"User {user_id} generated {len(fixtures)} fixtures for league {league_id}"
    )
    matches = await list_matches(session, league_id=league_id)
    return {"success": True, "count": len(fixtures), "matches": matches}
