"""Pydantic schemas for entry mutations."""

from pydantic import BaseModel, Field


class DraftRequest(BaseModel):
    text: str = Field(..., max_length=2000)
    author_initials: str | None = Field(None, max_length=10, description="Shown next to the entry")


class WinnerNotesRequest(BaseModel):
    notes: str | None = Field(None, max_length=4000)
