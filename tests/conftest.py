"""Shared test fixtures for all test groups."""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from sales_challenge.core.config import get_settings
from sales_challenge.db.base import create_engine, create_tables, make_session_factory
from sales_challenge.db.models import SalesChallenge, SalesEntry
from sales_challenge.domain.status import ChallengeStatus, EntrySource
from sales_challenge.domain.weeks import windows_for

TEST_CRON_SECRET = "test-cron-secret"
TEST_JWT_SECRET = "test-jwt-secret-0123456789abcdef0123456789"

# ISO week 2026-W08 with the default +1h offset:
#   start        Mon 2026-02-16 10:00 UTC
#   edit close   Fri 2026-02-20 11:00 UTC
#   vote close   Fri 2026-02-20 13:00 UTC
#   freeze       Fri 2026-02-20 14:00 UTC
#   reveal       Fri 2026-02-20 15:00 UTC
#   end          Mon 2026-02-23 10:00 UTC
WEEK = "2026-W08"
MONDAY_NOON = datetime(2026, 2, 16, 12, 0, tzinfo=UTC)
FRIDAY_MORNING = datetime(2026, 2, 20, 9, 0, tzinfo=UTC)
AFTER_FREEZE = datetime(2026, 2, 20, 14, 1, tzinfo=UTC)
AFTER_REVEAL = datetime(2026, 2, 20, 15, 1, tzinfo=UTC)
NEXT_MONDAY = datetime(2026, 2, 23, 10, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    """Deterministic settings from the environment, fresh for every test."""
    monkeypatch.setenv("CRON_ENABLED", "true")
    monkeypatch.setenv("CRON_SECRET", TEST_CRON_SECRET)
    monkeypatch.setenv("AUTH_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("AUTH_JWT_AUDIENCE", "")
    monkeypatch.setenv("DEBUG", "false")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'sales.db'}"


@pytest.fixture
async def engine(database_url) -> AsyncEngine:
    """SQLite engine (foreign keys on) with all tables, bound to the pytest-asyncio loop."""
    engine = create_engine(database_url)
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
def make_challenge(session_factory):
    """Insert a challenge with the real windows of its week."""

    async def _make(key: str = WEEK, status: ChallengeStatus = ChallengeStatus.ACTIVE, **overrides) -> SalesChallenge:
        columns = {
            "week_key": key,
            "status": status.value,
            "title": f"Challenge {key}",
            "original_text": "Original line",
            "context_text": "Some context",
            **windows_for(key).as_dict(),
        }
        columns.update(overrides)
        async with session_factory() as session:
            challenge = SalesChallenge(**columns)
            session.add(challenge)
            await session.commit()
            return challenge

    return _make


@pytest.fixture
def make_entry(session_factory):
    """Insert a published entry (human by default)."""

    async def _make(
        challenge_id,
        text: str = "A sales line",
        source: EntrySource = EntrySource.HUMAN,
        author_user_id: str | None = None,
        author_initials: str | None = None,
        published_at: datetime | None = MONDAY_NOON,
        is_published: bool = True,
    ) -> SalesEntry:
        async with session_factory() as session:
            entry = SalesEntry(
                challenge_id=challenge_id,
                text=text,
                source=source.value,
                author_user_id=author_user_id,
                author_initials=author_initials,
                is_published=is_published,
                published_at=published_at if is_published else None,
            )
            session.add(entry)
            await session.commit()
            return entry

    return _make
