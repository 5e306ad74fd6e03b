"""Pydantic schemas for the voting endpoints."""

from uuid import UUID

from pydantic import BaseModel, Field, StrictInt


class VoteRequest(BaseModel):
    """Set the caller's weight on one entry. Weight 0 removes the vote.

    Booleans and numeric strings are rejected; the range is checked by the
    ledger so that rejection carries its own code.
    """

    entry_id: UUID
    weight: StrictInt


class VoteResponse(BaseModel):
    entry_id: str
    weight: int
    voter_total: int = Field(..., description="Caller's committed total after this vote")
    remaining: int = Field(..., description="Budget left after this vote")


class MyVotesResponse(BaseModel):
    challenge_id: str
    votes: dict[str, int] = Field(default_factory=dict, description="entry id -> weight")
    used: int
    remaining: int


class TotalVotesResponse(BaseModel):
    challenge_id: str
    total_votes: int
