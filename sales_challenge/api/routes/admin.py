"""Admin routes (scheduler secret required).

POST /api/admin/test-week/seed   - Create the test week
POST /api/admin/test-week/reset  - Delete the test week
GET  /api/admin/stats            - Summary of archived weeks
"""

from datetime import datetime

from fastapi import APIRouter, Body, Depends, Query, Request

from sales_challenge.api.deps import get_now
from sales_challenge.core.auth import verify_cron_secret
from sales_challenge.db.base import get_session_factory
from sales_challenge.schemas.challenges import ChallengeStatsResponse
from sales_challenge.schemas.phases import SeedTestWeekRequest
from sales_challenge.services.challenge_queries import ChallengeQueries
from sales_challenge.services.test_week_service import TestWeekService

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------- Test week ----------


@router.post("/test-week/seed")
async def seed_test_week(
    request: Request,
    body: SeedTestWeekRequest | None = Body(None),
    now: datetime = Depends(get_now),
):
    """Create the test week with sample entries (and votes for ``voter_user_id``)."""
    verify_cron_secret(request)
    voter = body.voter_user_id if body is not None else None
    result = await TestWeekService(get_session_factory()).seed(now, voter_user_id=voter)
    return result.to_response()


@router.post("/test-week/reset")
async def reset_test_week(request: Request):
    """Delete the test week and everything attached to it."""
    verify_cron_secret(request)
    result = await TestWeekService(get_session_factory()).reset()
    return result.to_response()


# ---------- Stats ----------


@router.get("/stats", response_model=ChallengeStatsResponse)
async def challenge_stats(
    request: Request,
    weeks: int = Query(12, ge=1, le=260, description="Look back this many weeks, current week included"),
    now: datetime = Depends(get_now),
) -> ChallengeStatsResponse:
    """Votes, entries, authors and AI podium share over archived weeks."""
    verify_cron_secret(request)
    return await ChallengeQueries(get_session_factory()).stats(now, weeks)
