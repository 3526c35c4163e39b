"""Shared fixtures: an isolated in-memory database per test."""

from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from factories import T0, make_node, make_roadmap
from roadtrack import models  # noqa: F401  (registers tables on Base.metadata)
from roadtrack.core.database import Base
from roadtrack.tree.model import RoadmapTree


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def scenario_roadmap() -> RoadmapTree:
    """One milestone, one section, two open subsections."""
    return make_roadmap(
        [
            make_node(
                "m1",
                sequence=0,
                children=[
                    make_node(
                        "s1",
                        sequence=1,
                        created_at=T0 + timedelta(milliseconds=10),
                        children=[
                            make_node("ss1", sequence=2, created_at=T0 + timedelta(milliseconds=20)),
                            make_node("ss2", sequence=3, created_at=T0 + timedelta(milliseconds=30)),
                        ],
                    )
                ],
            )
        ]
    )
