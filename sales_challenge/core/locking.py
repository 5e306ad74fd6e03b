"""Phase Locking: keep overlapping scheduler retries from running the same transition.

This module provides:
- Per (phase, week) locks in Redis with automatic expiration
- Owner-checked release
- An async context manager for wrapping one transition

The lock only narrows the window for duplicate work. The transitions stay
correct without it because every status write is conditional.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import redis.asyncio as redis


class PhaseLock:
    """Manages distributed phase locks using Redis."""

    LOCK_PREFIX = "sales:phase-lock:"
    DEFAULT_TTL = 120

    def __init__(self, redis_client: redis.Redis, ttl: int | None = None):
        self.redis = redis_client
        self.ttl = ttl or self.DEFAULT_TTL

    def _lock_key(self, phase: str, week_key: str) -> str:
        """Generate the Redis key for a phase lock."""
        return f"{self.LOCK_PREFIX}{phase}:{week_key}"

    async def acquire(self, phase: str, week_key: str, owner: str) -> bool:
        """Attempt to acquire the lock for one phase of one week.

        Args:
            phase: Phase name ("start", "freeze", ...)
            week_key: ISO week key the phase acts on
            owner: Identifier of the lock owner (one per invocation)

        Returns:
            True if lock acquired, False if another invocation holds it
        """
        key = self._lock_key(phase, week_key)
        lock_value = f"{owner}|{datetime.now(UTC).isoformat()}"
        result = await self.redis.set(key, lock_value, nx=True, ex=self.ttl)
        return bool(result)

    async def release(self, phase: str, week_key: str, owner: str) -> bool:
        """Release the lock if it is still owned by ``owner``.

        Returns:
            True if lock released, False if not owned by this owner
        """
        key = self._lock_key(phase, week_key)

        current = await self.redis.get(key)
        if current and current.startswith(f"{owner}|"):
            await self.redis.delete(key)
            return True

        return False

    async def is_locked(self, phase: str, week_key: str) -> dict | None:
        """Return lock info if the phase is locked, None otherwise."""
        key = self._lock_key(phase, week_key)

        current = await self.redis.get(key)
        if not current:
            return None

        owner, _, locked_at = current.partition("|")
        return {
            "phase": phase,
            "week_key": week_key,
            "owner": owner,
            "locked_at": locked_at or None,
            "expires_in": await self.redis.ttl(key),
        }

    @asynccontextmanager
    async def hold(self, phase: str, week_key: str) -> AsyncGenerator[bool, None]:
        """Context manager for one phase invocation.

        Yields:
            True if lock acquired

        Example:
            async with phase_lock.hold("freeze", "2026-W08") as acquired:
                if acquired:
                    ...
        """
        owner = str(uuid.uuid4())
        acquired = False
        try:
            acquired = await self.acquire(phase, week_key, owner)
            yield acquired
        finally:
            if acquired:
                await self.release(phase, week_key, owner)
