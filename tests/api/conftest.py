"""API-specific test fixtures."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime

import pytest
from fakeredis import FakeAsyncRedis, FakeRedis, FakeServer
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

CRON_HEADERS = {"X-Cron-Secret": "test-cron-secret"}


class Clock:
    """Mutable wall clock handed to the app through ``get_now``."""

    def __init__(self, now: datetime):
        self.now = now


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime(2026, 2, 16, 12, 0, tzinfo=UTC))


@pytest.fixture
def redis_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def sync_redis(redis_server) -> FakeRedis:
    """Same fake server as the app, usable from synchronous test code."""
    return FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def api_client(database_url, redis_server, clock):
    """FastAPI test client with a SQLite database and fake Redis.

    The database is initialized inside the TestClient's own event loop so
    route handlers can use get_session_factory(). Callers identify
    themselves with an ``X-Test-User`` header.
    """
    import sales_challenge.db.base as db_mod
    from sales_challenge.api.deps import get_now
    from sales_challenge.api.routes import api_router
    from sales_challenge.core.auth import AuthUser, require_auth
    from sales_challenge.db import close_db, close_redis, init_db, init_redis
    from sales_challenge.db.redis import get_redis
    from sales_challenge.main import register_exception_handlers

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        """Test lifespan - initialize DB in TestClient's event loop."""
        db_mod._engine = None
        db_mod._session_factory = None
        await init_db(database_url)
        app.state.redis = FakeAsyncRedis(server=redis_server, decode_responses=True)
        await init_redis(client=app.state.redis)
        yield
        await close_redis()
        await close_db()

    async def fake_auth(request: Request) -> AuthUser:
        user_id = request.headers.get("X-Test-User")
        if not user_id:
            raise HTTPException(status_code=401, detail="Missing authorization header")
        request.state.user_id = user_id
        return AuthUser(user_id=user_id, claims={"sub": user_id})

    def fake_redis(request: Request):
        return request.app.state.redis

    app = FastAPI(title="Sales Challenge - Test Client", lifespan=test_lifespan)
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")

    app.dependency_overrides[require_auth] = fake_auth
    app.dependency_overrides[get_redis] = fake_redis
    app.dependency_overrides[get_now] = lambda: clock.now

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


@pytest.fixture
def start_week(api_client, clock):
    """Run the start phase for the clock's week and return the challenge id."""

    def _start(**prompt) -> str:
        response = api_client.post("/api/phases/start", headers=CRON_HEADERS, json=prompt or None)
        assert response.status_code == 200, response.text
        return response.json()["challenge_id"]

    return _start


@pytest.fixture
def cron_headers() -> dict[str, str]:
    return dict(CRON_HEADERS)
