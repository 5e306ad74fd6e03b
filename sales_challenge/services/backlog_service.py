"""BacklogService: picks the prompt a new week starts with."""

import uuid
from dataclasses import dataclass

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sales_challenge.core.config import Settings
from sales_challenge.db.models.backlog_item import SalesBacklogItem

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChallengePrompt:
    title: str
    original_text: str
    context_text: str | None = None
    rules_text: str | None = None
    backlog_item_id: uuid.UUID | None = None


def placeholder_prompt(week_key: str, settings: Settings) -> ChallengePrompt:
    return ChallengePrompt(
        title=settings.placeholder_title_template.format(week_key=week_key),
        original_text=settings.placeholder_original_text,
        context_text=settings.placeholder_context_text,
        rules_text=settings.placeholder_rules_text,
    )


class BacklogService:
    """Backlog lookups inside a caller-owned session."""

    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings

    async def next_item(self, week_key: str) -> SalesBacklogItem | None:
        """The item planned for ``week_key``, else the oldest draft, else None."""
        result = await self.session.execute(
            select(SalesBacklogItem)
            .where(
                SalesBacklogItem.status == "planned",
                SalesBacklogItem.planned_week_key == week_key,
            )
            .order_by(SalesBacklogItem.created_at)
            .limit(1)
        )
        planned = result.scalar_one_or_none()
        if planned is not None:
            return planned

        result = await self.session.execute(
            select(SalesBacklogItem)
            .where(SalesBacklogItem.status == "draft")
            .order_by(SalesBacklogItem.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def resolve_prompt(self, week_key: str, provided: ChallengePrompt | None = None) -> ChallengePrompt:
        """Provided prompt first, then the backlog, then the configured placeholder."""
        if provided is not None:
            return provided

        item = await self.next_item(week_key)
        if item is None:
            logger.warning("backlog_empty_using_placeholder", week_key=week_key)
            return placeholder_prompt(week_key, self.settings)

        defaults = placeholder_prompt(week_key, self.settings)
        return ChallengePrompt(
            title=item.title,
            original_text=item.original_text,
            context_text=item.context_text if item.context_text is not None else defaults.context_text,
            rules_text=item.rules_text if item.rules_text is not None else defaults.rules_text,
            backlog_item_id=item.id,
        )

    async def mark_used(self, item_id: uuid.UUID, challenge_id: uuid.UUID) -> None:
        await self.session.execute(
            update(SalesBacklogItem)
            .where(SalesBacklogItem.id == item_id)
            .values(status="used", used_in_challenge_id=challenge_id)
        )
