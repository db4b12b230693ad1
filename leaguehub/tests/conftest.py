"""
Shared pytest configuration for leaguehub tests.

Service tests run against a throwaway SQLite database (one file per test)
through aiosqlite. Set TEST_DATABASE_URL to run them against PostgreSQL
instead; the database name must then contain "test" because every table is
dropped after each test.
"""

import os

# Rate limiting is disabled and no real database is touched at import time
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest_asyncio  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402
from leaguehub.database import db  # noqa: E402
from leaguehub.database.db import Base, make_engine, make_session_factory  # noqa: E402
from leaguehub.database.models import (  # noqa: E402
    User,
    UserRole,
    UserStatus,
    League,
    LeagueFormat,
    LeaguePlayer,
    Team,
    Invitation,
    InvitationStatus,
    Match,
    MatchRequest,
    MatchRequestStatus,
    TeamPlayer,
    Notification,
    NotificationType,
)


def _resolve_test_database_url(tmp_path) -> str:
    url = os.getenv("TEST_DATABASE_URL")
    if not url:
        return f"sqlite+aiosqlite:///{tmp_path / 'leaguehub_test.db'}"

    db_name = url.rsplit("/", 1)[-1].split("?")[0]
    if "test" not in db_name.lower():
        raise RuntimeError(
            f"SAFETY: Refusing to run tests against database '{db_name}'. "
            f"Point TEST_DATABASE_URL at a database whose name contains 'test'."
        )
    return url


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a fresh database with all tables for one test."""
    engine = make_engine(_resolve_test_database_url(tmp_path), echo=False, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Code that opens its own sessions (edge gate, bootstrap) uses the test engine
    original_async_session_local = db.AsyncSessionLocal
    db.AsyncSessionLocal = make_session_factory(engine)

    yield engine

    db.AsyncSessionLocal = original_async_session_local
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    return make_session_factory(test_engine, autoflush=True)


@pytest_asyncio.fixture
async def db_session(session_maker):
    """A session on the per-test database."""
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


# ──────────────────────────────────────────────────────────────
# Fixture helpers
# ──────────────────────────────────────────────────────────────


async def create_user(
    db_session,
    email,
    name=None,
    role=UserRole.PLAYER.value,
    status=UserStatus.APPROVED.value,
    gender=None,
    level=None,
):
    """Helper: create a user directly, return the User."""
    user = User(
        email=email,
        password_hash="hash",
        name=name or email.split("@")[0],
        role=role,
        status=status,
        gender=gender,
        level=level,
    )
    db_session.add(user)
    await db_session.flush()
    return user


async def create_league(
    db_session, created_by=None, name="Test League", format=None, category="MIXED"
):
    """Helper: create a league, return the League."""
    league = League(
        name=name,
        category=category,
        format=format or LeagueFormat.INDIVIDUAL.value,
        created_by=created_by,
    )
    db_session.add(league)
    await db_session.flush()
    return league


async def add_league_player(db_session, league_id, player_id):
    db_session.add(LeaguePlayer(league_id=league_id, player_id=player_id))
    await db_session.flush()


async def create_team(
    db_session, captain_id, name="Test Team", category="MIXED", league_id=None, max_players=None
):
    """Helper: create a team, return the Team."""
    team = Team(
        name=name,
        category=category,
        captain_id=captain_id,
        league_id=league_id,
        max_players=max_players,
    )
    db_session.add(team)
    await db_session.flush()
    return team


async def create_invitation(
    db_session, team_id, player_id, invited_by=None, status=InvitationStatus.PENDING.value
):
    """Helper: create an invitation, return the Invitation."""
    invitation = Invitation(
        team_id=team_id, player_id=player_id, invited_by=invited_by, status=status
    )
    db_session.add(invitation)
    await db_session.flush()
    return invitation


async def create_match_request(
    db_session, league_id, requester_id, opponent_id, status=MatchRequestStatus.PENDING.value
):
    """Helper: create a match request, return the MatchRequest."""
    match_request = MatchRequest(
        league_id=league_id,
        requester_id=requester_id,
        opponent_id=opponent_id,
        status=status,
    )
    db_session.add(match_request)
    await db_session.flush()
    return match_request


async def create_notification(db_session, user_id, is_read=False, message="Hello"):
    """Helper: create a notification, return the Notification."""
    notification = Notification(
        user_id=user_id,
        type=NotificationType.MATCH_MESSAGE.value,
        message=message,
        is_read=is_read,
    )
    db_session.add(notification)
    await db_session.flush()
    return notification


async def add_team_player(db_session, team_id, player_id):
    db_session.add(TeamPlayer(team_id=team_id, player_id=player_id))
    await db_session.flush()


async def create_match(db_session, league_id, **sides):
    """Helper: create a SCHEDULED match between players or teams, return the Match."""
    match = Match(league_id=league_id, **sides)
    db_session.add(match)
    await db_session.flush()
    return match
