"""Entry endpoints for the caller's own entry.

GET  /api/challenges/{challenge_id}/entries/me          - Own entry incl. draft
PUT  /api/challenges/{challenge_id}/entries/me          - Save draft
POST /api/challenges/{challenge_id}/entries/me/publish  - Publish (one-way)
PUT  /api/entries/{entry_id}/winner-notes               - Notes on a placed entry
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends

from sales_challenge.api.deps import get_now
from sales_challenge.core.auth import AuthUser, require_auth
from sales_challenge.core.exceptions import EntryNotFoundError
from sales_challenge.db.base import get_session_factory
from sales_challenge.schemas.challenges import MyEntryResponse
from sales_challenge.schemas.entries import DraftRequest, WinnerNotesRequest
from sales_challenge.services.challenge_queries import my_entry_response
from sales_challenge.services.entry_service import EntryService

router = APIRouter()


@router.get("/challenges/{challenge_id}/entries/me", response_model=MyEntryResponse)
async def get_my_entry(
    challenge_id: UUID,
    user: AuthUser = Depends(require_auth),
) -> MyEntryResponse:
    entry = await EntryService(get_session_factory()).my_entry(challenge_id, user.user_id)
    if entry is None:
        raise EntryNotFoundError()
    return my_entry_response(entry)


@router.put("/challenges/{challenge_id}/entries/me", response_model=MyEntryResponse)
async def save_draft(
    challenge_id: UUID,
    body: DraftRequest,
    user: AuthUser = Depends(require_auth),
    now: datetime = Depends(get_now),
) -> MyEntryResponse:
    entry = await EntryService(get_session_factory()).save_draft(
        challenge_id,
        user.user_id,
        body.text,
        author_initials=body.author_initials,
        now=now,
    )
    return my_entry_response(entry)


@router.post("/challenges/{challenge_id}/entries/me/publish", response_model=MyEntryResponse)
async def publish_entry(
    challenge_id: UUID,
    user: AuthUser = Depends(require_auth),
    now: datetime = Depends(get_now),
) -> MyEntryResponse:
    entry = await EntryService(get_session_factory()).publish(challenge_id, user.user_id, now=now)
    return my_entry_response(entry)


@router.put("/entries/{entry_id}/winner-notes", response_model=MyEntryResponse)
async def set_winner_notes(
    entry_id: UUID,
    body: WinnerNotesRequest,
    user: AuthUser = Depends(require_auth),
    now: datetime = Depends(get_now),
) -> MyEntryResponse:
    entry = await EntryService(get_session_factory()).set_winner_notes(entry_id, user.user_id, body.notes, now=now)
    return my_entry_response(entry)
