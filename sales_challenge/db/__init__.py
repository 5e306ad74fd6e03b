"""Storage for the sales challenge: SQL stores plus the Redis lock client."""

from sales_challenge.db.base import (
    Base,
    close_db,
    create_engine,
    create_tables,
    get_session_factory,
    init_db,
    make_session_factory,
)
from sales_challenge.db.redis import close_redis, get_redis, init_redis

__all__ = [
    "Base",
    "close_db",
    "close_redis",
    "create_engine",
    "create_tables",
    "get_redis",
    "get_session_factory",
    "init_db",
    "init_redis",
    "make_session_factory",
]
