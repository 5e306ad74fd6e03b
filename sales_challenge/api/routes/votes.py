"""Voting endpoints.

POST /api/challenges/{challenge_id}/votes        - Set weight on one entry
GET  /api/challenges/{challenge_id}/votes/me     - Caller's votes and budget
GET  /api/challenges/{challenge_id}/votes/total  - Live vote counter
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends

from sales_challenge.api.deps import get_now
from sales_challenge.core.auth import AuthUser, require_auth
from sales_challenge.core.config import get_settings
from sales_challenge.db.base import get_session_factory
from sales_challenge.schemas.votes import MyVotesResponse, TotalVotesResponse, VoteRequest, VoteResponse
from sales_challenge.services.vote_ledger import VoteLedger

router = APIRouter()


@router.post("/{challenge_id}/votes", response_model=VoteResponse)
async def set_vote(
    challenge_id: UUID,
    body: VoteRequest,
    user: AuthUser = Depends(require_auth),
    now: datetime = Depends(get_now),
) -> VoteResponse:
    """Set the caller's weight on an entry.

    Rejections are distinguishable by ``code``: ``voting_closed`` (409),
    ``budget_exceeded`` (409) or ``invalid_weight`` (422).
    """
    ledger = VoteLedger(get_session_factory(), get_settings())
    receipt = await ledger.set_vote(challenge_id, body.entry_id, user.user_id, body.weight, now=now)
    return VoteResponse(
        entry_id=str(receipt.entry_id),
        weight=receipt.weight,
        voter_total=receipt.voter_total,
        remaining=receipt.remaining,
    )


@router.get("/{challenge_id}/votes/me", response_model=MyVotesResponse)
async def get_my_votes(
    challenge_id: UUID,
    user: AuthUser = Depends(require_auth),
) -> MyVotesResponse:
    settings = get_settings()
    votes = await VoteLedger(get_session_factory(), settings).votes_of(challenge_id, user.user_id)
    used = sum(votes.values())
    return MyVotesResponse(
        challenge_id=str(challenge_id),
        votes={str(entry_id): weight for entry_id, weight in votes.items()},
        used=used,
        remaining=max(settings.vote_budget - used, 0),
    )


@router.get("/{challenge_id}/votes/total", response_model=TotalVotesResponse)
async def get_total_votes(
    challenge_id: UUID,
    user: AuthUser = Depends(require_auth),
) -> TotalVotesResponse:
    total = await VoteLedger(get_session_factory(), get_settings()).total_votes(challenge_id)
    return TotalVotesResponse(challenge_id=str(challenge_id), total_votes=total)
