"""
Database engine, session factory and request-scoped sessions (SQLAlchemy async).

`AsyncSessionLocal` is looked up through this module at call time
(`db.AsyncSessionLocal()`), so tests can point it at their own engine.
"""

import os
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
    AsyncEngine
)
from sqlalchemy.orm import DeclarativeBase
from dotenv import load_dotenv

load_dotenv()


def build_database_url() -> str:
    """
    DATABASE_URL if set, otherwise a postgresql+asyncpg URL from POSTGRES_* settings.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("POSTGRES_USER", "leaguehub")
    password = os.getenv("POSTGRES_PASSWORD", "leaguehub")
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    name = os.getenv("POSTGRES_DB", "leaguehub")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


def make_engine(url: str, **overrides) -> AsyncEngine:
    """
    Create an async engine.

    Server databases get a pre-pinged connection pool; SQLite keeps the
    dialect default. Keyword overrides (e.g. poolclass) win.
    """
    kwargs = {"echo": os.getenv("SQL_ECHO", "false").lower() == "true"}
    if not url.startswith("sqlite") and "poolclass" not in overrides:
        kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    kwargs.update(overrides)
    return create_async_engine(url, **kwargs)


def make_session_factory(bind: AsyncEngine, **overrides) -> async_sessionmaker:
    # Objects stay usable after commit; routes serialize them afterwards
    kwargs = {"expire_on_commit": False, "autoflush": False}
    kwargs.update(overrides)
    return async_sessionmaker(bind, class_=AsyncSession, **kwargs)


DATABASE_URL = build_database_url()
engine: AsyncEngine = make_engine(DATABASE_URL)
AsyncSessionLocal = make_session_factory(engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# Registers the tables on Base.metadata; must come after Base
from leaguehub.database import models  # noqa: F401, E402


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session: commits when the handler returns, rolls back if it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_database():
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)


async def close_database():
    """Dispose of the engine's connection pool."""
    await engine.dispose()
