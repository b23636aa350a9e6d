"""Shared fixtures and factory helpers.

Every test gets its own SQLite file under ``tmp_path`` (a file rather than
``:memory:`` so concurrent sessions see the same database), installed on
``app.state.database`` the way the lifespan would.
"""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import Database
from backend.app.limiter import limiter
from backend.app.main import app
from backend.app.models.feature import Feature, Vote


@pytest.fixture
async def database(tmp_path: Path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'features.db'}")
    await database.create_all()
    yield database
    await database.dispose()


@pytest.fixture
async def db(database: Database):
    async with database.session() as session:
        yield session


@pytest.fixture
async def client(database: Database):
    app.state.database = database
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


async def create_feature(
    db: AsyncSession,
    title: str = "Dark mode",
    description: str | None = None,
    author_name: str = "alice",
    votes: int = 0,
    created_at: str | None = None,
) -> Feature:
    now = created_at or datetime.now(UTC).isoformat()
    feature = Feature(
        title=title,
        description=description,
        author_name=author_name,
        votes=votes,
        created_at=now,
        updated_at=now,
    )
    db.add(feature)
    await db.flush()
    return feature


async def create_vote(db: AsyncSession, feature_id: int, voter_ip: str) -> Vote:
    vote = Vote(
        feature_id=feature_id,
        voter_ip=voter_ip,
        created_at=datetime.now(UTC).isoformat(),
    )
    db.add(vote)
    await db.flush()
    return vote


# ---------------------------------------------------------------------------
# Fresh reads (bypass the identity map of a long-lived test session)
# ---------------------------------------------------------------------------


async def stored_votes(database: Database, feature_id: int) -> int:
    async with database.session() as session:
        result = await session.execute(select(Feature.votes).where(Feature.id == feature_id))
        return result.scalar_one()


async def vote_rows(database: Database, feature_id: int | None = None) -> int:
    query = select(func.count(Vote.id))
    if feature_id is not None:
        query = query.where(Vote.feature_id == feature_id)
    async with database.session() as session:
        result = await session.execute(query)
        return result.scalar_one()


async def feature_rows(database: Database) -> int:
    async with database.session() as session:
        result = await session.execute(select(func.count(Feature.id)))
        return result.scalar_one()
