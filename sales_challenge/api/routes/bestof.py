"""Best-of archive listing."""

from fastapi import APIRouter, HTTPException, Query

from sales_challenge.db.base import get_session_factory
from sales_challenge.domain.weeks import parse_week_key
from sales_challenge.schemas.challenges import BestOfResponse
from sales_challenge.services.challenge_queries import ChallengeQueries

router = APIRouter()


@router.get("", response_model=list[BestOfResponse])
async def list_bestof(
    week_key: str | None = Query(None, description="Only this week"),
    limit: int = Query(30, ge=1, le=300),
) -> list[BestOfResponse]:
    """Archived podium lines, newest week first."""
    if week_key is not None:
        try:
            parse_week_key(week_key)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
    return await ChallengeQueries(get_session_factory()).best_of(week_key, limit=limit)
