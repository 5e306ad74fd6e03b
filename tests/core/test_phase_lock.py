"""Tests for the Redis phase lock."""

import pytest
from fakeredis import FakeAsyncRedis

from sales_challenge.core.locking import PhaseLock

pytestmark = pytest.mark.unit


@pytest.fixture
async def redis():
    """Provide fakeredis async client."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def lock(redis):
    return PhaseLock(redis, ttl=60)


async def test_acquire_succeeds_when_free(lock):
    assert await lock.acquire("freeze", "2026-W08", "owner-a") is True


async def test_second_acquire_fails_while_held(lock):
    await lock.acquire("freeze", "2026-W08", "owner-a")
    assert await lock.acquire("freeze", "2026-W08", "owner-b") is False


async def test_locks_are_scoped_per_phase_and_week(lock):
    await lock.acquire("freeze", "2026-W08", "owner-a")
    assert await lock.acquire("reveal", "2026-W08", "owner-b") is True
    assert await lock.acquire("freeze", "2026-W09", "owner-c") is True


async def test_lock_key_has_ttl(lock, redis):
    await lock.acquire("start", "2026-W08", "owner-a")
    ttl = await redis.ttl("sales:phase-lock:start:2026-W08")
    assert 0 < ttl <= 60


async def test_release_requires_ownership(lock):
    await lock.acquire("start", "2026-W08", "owner-a")

    assert await lock.release("start", "2026-W08", "owner-b") is False
    assert await lock.is_locked("start", "2026-W08") is not None

    assert await lock.release("start", "2026-W08", "owner-a") is True
    assert await lock.is_locked("start", "2026-W08") is None


async def test_is_locked_reports_owner(lock):
    await lock.acquire("reveal", "2026-W08", "owner-a")
    info = await lock.is_locked("reveal", "2026-W08")

    assert info["owner"] == "owner-a"
    assert info["phase"] == "reveal"
    assert info["locked_at"]
    assert info["expires_in"] > 0


async def test_hold_releases_on_exit(lock):
    async with lock.hold("freeze", "2026-W08") as acquired:
        assert acquired is True
        assert await lock.is_locked("freeze", "2026-W08") is not None

    assert await lock.is_locked("freeze", "2026-W08") is None


async def test_hold_releases_on_error(lock):
    with pytest.raises(RuntimeError):
        async with lock.hold("freeze", "2026-W08"):
            raise RuntimeError("boom")

    assert await lock.is_locked("freeze", "2026-W08") is None


async def test_hold_does_not_release_foreign_lock(lock):
    await lock.acquire("freeze", "2026-W08", "scheduler-retry")

    async with lock.hold("freeze", "2026-W08") as acquired:
        assert acquired is False

    info = await lock.is_locked("freeze", "2026-W08")
    assert info["owner"] == "scheduler-retry"
