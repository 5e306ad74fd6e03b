"""Challenge read endpoints.

GET /api/challenges/current     - This week's challenge as the caller sees it
GET /api/challenges/{week_key}  - Same view for an explicit, still visible week
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from sales_challenge.api.deps import get_now
from sales_challenge.core.auth import AuthUser, require_auth
from sales_challenge.core.exceptions import ChallengeNotFoundError
from sales_challenge.db.base import get_session_factory
from sales_challenge.domain.weeks import parse_week_key
from sales_challenge.schemas.challenges import ChallengeViewResponse
from sales_challenge.services.challenge_queries import ChallengeQueries

router = APIRouter()


@router.get("/current", response_model=ChallengeViewResponse)
async def get_current_challenge(
    user: AuthUser = Depends(require_auth),
    now: datetime = Depends(get_now),
) -> ChallengeViewResponse:
    view = await ChallengeQueries(get_session_factory()).current_view(now, viewer_id=user.user_id)
    if view is None:
        raise ChallengeNotFoundError("No challenge this week")
    return view


@router.get("/{week_key}", response_model=ChallengeViewResponse)
async def get_challenge_by_week(
    week_key: str,
    user: AuthUser = Depends(require_auth),
    now: datetime = Depends(get_now),
) -> ChallengeViewResponse:
    try:
        parse_week_key(week_key)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    view = await ChallengeQueries(get_session_factory()).by_week(week_key, now, viewer_id=user.user_id)
    if view is None:
        raise ChallengeNotFoundError()
    return view
