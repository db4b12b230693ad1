"""
Unit tests for round-robin fixture generation.
"""

from itertools import combinations

import pytest
import pytest_asyncio
from leaguehub.services import fixture_service
from leaguehub.services.exceptions import ConflictError, PermissionDeniedError
from leaguehub.database.models import LeagueFormat, UserRole
from conftest import create_user, create_league, create_team, add_league_player


def _pairs(fixtures):
    return {frozenset((f["home"], f["away"])) for f in fixtures}


@pytest.mark.parametrize("entrants,rounds", [(4, 3), (3, 3), (6, 5), (5, 5)])
def test_everyone_meets_everyone_once(entrants, rounds):
    ids = list(range(1, entrants + 1))
    fixtures = fixture_service.generate_round_robin(ids)

    assert len(fixtures) == entrants * (entrants - 1) // 2
    assert _pairs(fixtures) == {frozenset(p) for p in combinations(ids, 2)}
    assert max(f["round"] for f in fixtures) == rounds


def test_nobody_plays_twice_in_a_round():
    fixtures = fixture_service.generate_round_robin([10, 20, 30, 40, 50, 60])
    for round_number in range(1, 6):
        players = [
            side for f in fixtures if f["round"] == round_number for side in (f["home"], f["away"])
        ]
        assert len(players) == len(set(players)) == 6


def test_too_few_entrants():
    assert fixture_service.generate_round_robin([]) == []
    assert fixture_service.generate_round_robin([1]) == []


@pytest_asyncio.fixture
async def setup_leagues(db_session):
    manager = await create_user(db_session, "mgr@example.com", role=UserRole.MANAGER.value)
    players = [await create_user(db_session, f"p{i}@example.com") for i in range(3)]
    singles = await create_league(db_session, created_by=manager.id, name="Singles")
    for player in players:
        await add_league_player(db_session, singles.id, player.id)
    doubles = await create_league(
        db_session, created_by=manager.id, name="Doubles", format=LeagueFormat.DOUBLES.value
    )
    for i in range(4):
        await create_team(db_session, manager.id, name=f"Team {i}", league_id=doubles.id)
    await db_session.commit()
    return {"manager": manager.id, "singles": singles.id, "doubles": doubles.id}


@pytest.mark.asyncio
async def test_generate_individual_fixtures(db_session, setup_leagues):
    result = await fixture_service.generate_fixtures(
        db_session, setup_leagues["singles"], setup_leagues["manager"], UserRole.MANAGER.value,
        "SINGLE", start_date="2026-03-02",
    )
    assert result["success"] is True
    assert result["count"] == 3
    assert len(result["matches"]) == 3
    for match in result["matches"]:
        assert match["home_player_id"] is not None
        assert match["home_team_id"] is None
        assert match["score_status"] == "PENDING"
    dates = {m["round"]: m["scheduled_date"][:10] for m in result["matches"]}
    assert dates == {1: "2026-03-02", 2: "2026-03-09", 3: "2026-03-16"}


@pytest.mark.asyncio
async def test_generate_doubles_fixtures(db_session, setup_leagues):
    result = await fixture_service.generate_fixtures(
        db_session, setup_leagues["doubles"], setup_leagues["manager"], UserRole.MANAGER.value,
        "DOUBLE",
    )
    assert result["count"] == 6
    assert all(m["home"]["name"].startswith("Team") for m in result["matches"])
    assert {m["match_type"] for m in result["matches"]} == {"DOUBLE"}


@pytest.mark.asyncio
async def test_fixtures_only_generated_once(db_session, setup_leagues):
    args = (db_session, setup_leagues["singles"], setup_leagues["manager"], UserRole.MANAGER.value)
    await fixture_service.generate_fixtures(*args, "SINGLE")
    with pytest.raises(ConflictError, match="already exist"):
        await fixture_service.generate_fixtures(*args, "SINGLE")


@pytest.mark.asyncio
async def test_fixture_validation(db_session, setup_leagues):
    with pytest.raises(ValueError, match="Invalid match type"):
        await fixture_service.generate_fixtures(
            db_session, setup_leagues["singles"], setup_leagues["manager"],
            UserRole.MANAGER.value, "TRIPLE",
        )

    empty = await create_league(db_session, created_by=setup_leagues["manager"], name="Empty")
    await db_session.commit()
    with pytest.raises(ValueError, match="at least 2 players"):
        await fixture_service.generate_fixtures(
            db_session, empty.id, setup_leagues["manager"], UserRole.MANAGER.value, "SINGLE"
        )


@pytest.mark.asyncio
async def test_other_manager_cannot_generate(db_session, setup_leagues):
    other = await create_user(db_session, "other@example.com", role=UserRole.MANAGER.value)
    await db_session.commit()
    with pytest.raises(PermissionDeniedError):
        await fixture_service.generate_fixtures(
            db_session, setup_leagues["singles"], other.id, UserRole.MANAGER.value, "SINGLE"
        )
