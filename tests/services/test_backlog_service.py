"""Tests for BacklogService prompt selection."""

from datetime import UTC, datetime, timedelta

import pytest

from sales_challenge.db.models import SalesBacklogItem
from sales_challenge.services.backlog_service import BacklogService, ChallengePrompt, placeholder_prompt

pytestmark = pytest.mark.integration

WEEK = "2026-W08"
CREATED = datetime(2026, 1, 1, tzinfo=UTC)


async def _add_items(session_factory, *items: SalesBacklogItem):
    async with session_factory() as session:
        session.add_all(items)
        await session.commit()


async def test_placeholder_when_backlog_empty(session_factory, settings):
    async with session_factory() as session:
        prompt = await BacklogService(session, settings).resolve_prompt(WEEK)

    assert prompt == placeholder_prompt(WEEK, settings)
    assert prompt.title == "Sales lines 2026-W08"
    assert prompt.backlog_item_id is None


async def test_provided_prompt_wins(session_factory, settings):
    await _add_items(session_factory, SalesBacklogItem(title="Draft", original_text="x", status="draft"))
    provided = ChallengePrompt(title="Given", original_text="given line")

    async with session_factory() as session:
        prompt = await BacklogService(session, settings).resolve_prompt(WEEK, provided)

    assert prompt is provided


async def test_planned_item_beats_older_draft(session_factory, settings):
    await _add_items(
        session_factory,
        SalesBacklogItem(title="Old draft", original_text="d", status="draft", created_at=CREATED),
        SalesBacklogItem(
            title="Planned",
            original_text="p",
            status="planned",
            planned_week_key=WEEK,
            created_at=CREATED + timedelta(days=3),
        ),
        SalesBacklogItem(title="Planned elsewhere", original_text="q", status="planned", planned_week_key="2026-W09"),
    )

    async with session_factory() as session:
        prompt = await BacklogService(session, settings).resolve_prompt(WEEK)

    assert prompt.title == "Planned"
    assert prompt.backlog_item_id is not None


async def test_oldest_draft_is_used_otherwise(session_factory, settings):
    await _add_items(
        session_factory,
        SalesBacklogItem(title="Newer", original_text="n", status="draft", created_at=CREATED + timedelta(days=1)),
        SalesBacklogItem(title="Older", original_text="o", status="draft", created_at=CREATED),
        SalesBacklogItem(title="Used", original_text="u", status="used", created_at=CREATED - timedelta(days=1)),
    )

    async with session_factory() as session:
        item = await BacklogService(session, settings).next_item(WEEK)

    assert item.title == "Older"


async def test_missing_context_and_rules_fall_back_to_placeholder(session_factory, settings):
    await _add_items(session_factory, SalesBacklogItem(title="Bare", original_text="bare line", status="draft"))

    async with session_factory() as session:
        prompt = await BacklogService(session, settings).resolve_prompt(WEEK)

    assert prompt.original_text == "bare line"
    assert prompt.rules_text == settings.placeholder_rules_text
    assert prompt.context_text == settings.placeholder_context_text
