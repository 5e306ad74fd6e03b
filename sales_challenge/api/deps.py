"""Shared FastAPI dependencies."""

from datetime import UTC, datetime


def get_now() -> datetime:
    """Wall clock for one request. Overridden in tests to pin time."""
    return datetime.now(UTC)
