"""
Pytest fixtures for test database, client, and seeded events.

Each test gets a fresh SQLite database file (set TEST_DATABASE_URL to run
against PostgreSQL instead). Like the real `get_db`, every HTTP request gets
its own session, so a rollback inside a request never touches objects the
test holds. `db_session` is for seeding and for assertions after requests.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./event_registration_dev.db")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.main import app
from app.db.base import Base
from app.db.session import create_engine, create_session_factory, get_db
from app.models.event import Event


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield the engine, then drop tables for isolation."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_engine(url)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests use sessions bound to the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_event(**overrides) -> Event:
    start = datetime.now(timezone.utc) + timedelta(days=30)
    fields = {
        "title": "Spring Showcase",
        "description": "A test event",
        "location": "Main Hall",
        "start_time": start,
        "end_time": start + timedelta(hours=3),
        "capacity": 100,
        "cost": 0,
    }
    fields.update(overrides)
    return Event(**fields)


async def add_event(session: AsyncSession, **overrides) -> Event:
    event = make_event(**overrides)
    session.add(event)
    await session.commit()
    return event


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    """Free event with 100 seats."""
    return await add_event(db_session)


@pytest_asyncio.fixture
async def paid_event(db_session: AsyncSession) -> Event:
    return await add_event(db_session, title="Gala Dinner", cost=2500, capacity=50)


@pytest_asyncio.fixture
async def single_seat_event(db_session: AsyncSession) -> Event:
    return await add_event(db_session, title="Private Tasting", capacity=1)


@pytest_asyncio.fixture
async def other_event(db_session: AsyncSession) -> Event:
    return await add_event(db_session, title="Autumn Meetup", capacity=0)


@pytest_asyncio.fixture
async def event_factory(session_factory):
    """Create events in a short-lived session of their own."""

    async def create(**overrides) -> Event:
        async with session_factory() as session:
            return await add_event(session, **overrides)

    return create
