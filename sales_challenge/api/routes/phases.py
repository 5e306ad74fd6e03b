"""Phase endpoints called by the external scheduler.

POST /api/phases/start                 - Monday 11:00 local
POST /api/phases/freeze                - Friday 15:00 local
POST /api/phases/reveal                - Friday 16:00 local
POST /api/phases/archive-and-rollover  - following Monday 11:00 local

Every endpoint is idempotent: duplicate, early or late calls answer 200
with a ``message`` explaining why nothing happened.
"""

from datetime import datetime

import redis.asyncio as redis
import structlog
from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from sales_challenge.api.deps import get_now
from sales_challenge.core.auth import verify_cron_secret
from sales_challenge.core.config import get_settings
from sales_challenge.core.locking import PhaseLock
from sales_challenge.db.base import get_session_factory
from sales_challenge.db.redis import get_redis
from sales_challenge.schemas.phases import PromptRequest
from sales_challenge.services.backlog_service import ChallengePrompt
from sales_challenge.services.phase_service import (
    PHASE_ARCHIVE,
    PHASE_FREEZE,
    PHASE_REVEAL,
    PHASE_START,
    PhaseService,
    target_week_key,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


async def run_phase(
    phase: str,
    request: Request,
    redis_client: redis.Redis,
    now: datetime,
    prompt: ChallengePrompt | None = None,
) -> JSONResponse | dict:
    """Shared gatekeeping for all four phases: kill switch, secret, lock, error boundary."""
    settings = get_settings()
    if not settings.cron_enabled:
        return {"ok": True, "message": "Phase scheduling disabled"}

    # Before any storage access
    verify_cron_secret(request)

    key = target_week_key(phase, now)
    lock = PhaseLock(redis_client, ttl=settings.phase_lock_ttl_seconds)
    async with lock.hold(phase, key) as acquired:
        if not acquired:
            holder = await lock.is_locked(phase, key) or {}
            logger.info(
                "phase_noop",
                phase=phase,
                week_key=key,
                reason="Transition already running",
                locked_at=holder.get("locked_at"),
                expires_in=holder.get("expires_in"),
            )
            return {"ok": True, "message": "Transition already running", "week_key": key}

        try:
            result = await PhaseService(get_session_factory(), settings).run(phase, now, prompt=prompt)
        except Exception as exc:
            logger.error(
                "phase_failed",
                phase=phase,
                week_key=key,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return JSONResponse(status_code=500, content={"error": str(exc)})

    return result.to_response()


@router.post("/start")
async def start_phase(
    request: Request,
    prompt: PromptRequest | None = Body(None),
    now: datetime = Depends(get_now),
    redis_client: redis.Redis = Depends(get_redis),
):
    """Create this week's challenge (optionally with an explicit prompt)."""
    return await run_phase(
        PHASE_START,
        request,
        redis_client,
        now,
        prompt=prompt.to_prompt() if prompt is not None else None,
    )


@router.post("/freeze")
async def freeze_phase(
    request: Request,
    now: datetime = Depends(get_now),
    redis_client: redis.Redis = Depends(get_redis),
):
    """Close voting for this week's challenge."""
    return await run_phase(PHASE_FREEZE, request, redis_client, now)


@router.post("/reveal")
async def reveal_phase(
    request: Request,
    now: datetime = Depends(get_now),
    redis_client: redis.Redis = Depends(get_redis),
):
    """Tally and publish this week's podium."""
    return await run_phase(PHASE_REVEAL, request, redis_client, now)


@router.post("/archive-and-rollover")
async def archive_phase(
    request: Request,
    now: datetime = Depends(get_now),
    redis_client: redis.Redis = Depends(get_redis),
):
    """Archive last week's podium into best-of."""
    return await run_phase(PHASE_ARCHIVE, request, redis_client, now)
