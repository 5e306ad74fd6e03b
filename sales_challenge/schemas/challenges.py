"""Pydantic schemas for challenge read models.

The client UI renders one screen per week from ``ChallengeViewResponse``;
everything a viewer may see is assembled server-side.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ChallengeResponse(BaseModel):
    """Challenge header with its phase timestamps."""

    id: str = Field(..., description="Challenge UUID")
    week_key: str = Field(..., description="ISO week key, e.g. 2026-W08")
    status: str = Field(..., description="active, frozen, revealed or archived")
    title: str
    original_text: str | None = None
    context_text: str | None = None
    rules_text: str | None = None
    starts_at: datetime
    edit_deadline_at: datetime
    vote_deadline_at: datetime
    freeze_at: datetime
    reveal_at: datetime
    ends_at: datetime


class EntryResponse(BaseModel):
    """Published entry as every viewer sees it."""

    id: str = Field(..., description="Entry UUID")
    source: str = Field(..., description="human or ai")
    author_initials: str | None = None
    text: str
    published_at: datetime | None = None
    winner_notes: str | None = None
    is_mine: bool = Field(False, description="True if the viewer wrote this entry")


class MyEntryResponse(BaseModel):
    """The viewer's own entry, draft included."""

    id: str
    challenge_id: str
    text: str
    draft_text: str | None = None
    author_initials: str | None = None
    is_published: bool
    published_at: datetime | None = None
    winner_notes: str | None = None


class WinnerResponse(BaseModel):
    """Frozen tally snapshot written at reveal. Places are null when nothing placed."""

    place1_entry_id: str | None = None
    place2_entry_id: str | None = None
    place3_entry_id: str | None = None
    total_votes: int = 0


class ChallengeViewResponse(BaseModel):
    """Everything the weekly challenge screen needs for one viewer."""

    challenge: ChallengeResponse
    entries: list[EntryResponse] = Field(default_factory=list)
    total_votes: int = Field(0, description="Live total before reveal, tally total after")
    my_votes: dict[str, int] = Field(default_factory=dict, description="entry id -> weight")
    votes_used: int = 0
    votes_remaining: int = 0
    my_entry: MyEntryResponse | None = None
    can_edit: bool = False
    can_vote: bool = False
    winner: WinnerResponse | None = None


class BestOfResponse(BaseModel):
    """One archived podium line."""

    id: str
    week_key: str
    place: int = Field(..., ge=1, le=3)
    category: str
    entry_text: str
    original_text: str | None = None
    context_text: str | None = None
    author_initials: str | None = None
    source: str
    votes: int
    winner_notes: str | None = None
    created_at: datetime | None = None


class StatsWeekRow(BaseModel):
    """One archived week in the admin summary. Place sources are null when the place stayed empty."""

    week_key: str
    title: str
    total_votes: int = 0
    place1_source: str | None = None
    place2_source: str | None = None
    place3_source: str | None = None


class ChallengeStatsResponse(BaseModel):
    """Admin summary over the archived challenges of the last ``weeks`` weeks."""

    weeks: int
    challenges_count: int = 0
    total_votes: int = Field(0, description="Sum of the tally totals")
    published_entries_count: int = Field(0, description="Published human entries")
    unique_authors_count: int = 0
    ai_in_top3_count: int = 0
    ai_place1_count: int = 0
    rows: list[StatsWeekRow] = Field(default_factory=list, description="Oldest week first")
