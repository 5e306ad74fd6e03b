"""Pydantic schemas for scheduler and admin requests."""

from pydantic import BaseModel, Field

from sales_challenge.services.backlog_service import ChallengePrompt


class PromptRequest(BaseModel):
    """Optional prompt for ``start``; without it the backlog or placeholder is used."""

    title: str = Field(..., min_length=1)
    original_text: str = Field(..., min_length=1)
    context_text: str | None = None
    rules_text: str | None = None

    def to_prompt(self) -> ChallengePrompt:
        return ChallengePrompt(
            title=self.title,
            original_text=self.original_text,
            context_text=self.context_text,
            rules_text=self.rules_text,
        )


class SeedTestWeekRequest(BaseModel):
    voter_user_id: str | None = Field(None, description="Cast sample votes as this user")
