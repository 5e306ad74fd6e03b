"""ChallengeQueries: read models for the weekly challenge screen, the archive and the admin summary."""

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sales_challenge.core.config import Settings, get_settings
from sales_challenge.db.models.bestof import SalesBestOf
from sales_challenge.db.models.challenge import SalesChallenge
from sales_challenge.db.models.entry import SalesEntry
from sales_challenge.db.models.vote import SalesVote
from sales_challenge.db.models.winner import SalesWinner
from sales_challenge.domain.status import VISIBLE_STATUSES, ChallengeStatus, EntrySource
from sales_challenge.domain.weeks import ensure_utc, week_key, week_keys_last_n
from sales_challenge.schemas.challenges import (
    BestOfResponse,
    ChallengeResponse,
    ChallengeStatsResponse,
    ChallengeViewResponse,
    EntryResponse,
    MyEntryResponse,
    StatsWeekRow,
    WinnerResponse,
)
from sales_challenge.services.entry_service import editing_open
from sales_challenge.services.vote_ledger import total_votes_in, voting_open


def _str_or_none(value: uuid.UUID | None) -> str | None:
    return str(value) if value is not None else None


def challenge_response(challenge: SalesChallenge) -> ChallengeResponse:
    return ChallengeResponse(
        id=str(challenge.id),
        week_key=challenge.week_key,
        status=challenge.status,
        title=challenge.title,
        original_text=challenge.original_text,
        context_text=challenge.context_text,
        rules_text=challenge.rules_text,
        starts_at=ensure_utc(challenge.starts_at),
        edit_deadline_at=ensure_utc(challenge.edit_deadline_at),
        vote_deadline_at=ensure_utc(challenge.vote_deadline_at),
        freeze_at=ensure_utc(challenge.freeze_at),
        reveal_at=ensure_utc(challenge.reveal_at),
        ends_at=ensure_utc(challenge.ends_at),
    )


def my_entry_response(entry: SalesEntry) -> MyEntryResponse:
    return MyEntryResponse(
        id=str(entry.id),
        challenge_id=str(entry.challenge_id),
        text=entry.text,
        draft_text=entry.draft_text,
        author_initials=entry.author_initials,
        is_published=entry.is_published,
        published_at=ensure_utc(entry.published_at) if entry.published_at else None,
        winner_notes=entry.winner_notes,
    )


def bestof_response(row: SalesBestOf) -> BestOfResponse:
    return BestOfResponse(
        id=str(row.id),
        week_key=row.week_key,
        place=row.place,
        category=row.category,
        entry_text=row.entry_text,
        original_text=row.original_text,
        context_text=row.context_text,
        author_initials=row.author_initials,
        source=row.source,
        votes=row.votes,
        winner_notes=row.winner_notes,
        created_at=ensure_utc(row.created_at) if row.created_at else None,
    )


class ChallengeQueries:
    """Assembles viewer-specific read models. Never writes."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    async def current_view(self, now: datetime, viewer_id: str | None = None) -> ChallengeViewResponse | None:
        """The visible challenge for ``week_key(now)``, or None if there is none."""
        return await self.by_week(week_key(now), now, viewer_id)

    async def by_week(
        self,
        key: str,
        now: datetime,
        viewer_id: str | None = None,
    ) -> ChallengeViewResponse | None:
        """Same view for an explicit week. Archived weeks are served from ``best_of``."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(SalesChallenge).where(
                    SalesChallenge.week_key == key,
                    SalesChallenge.status.in_([s.value for s in VISIBLE_STATUSES]),
                )
            )
            challenge = result.scalar_one_or_none()
            if challenge is None:
                return None
            return await self._view(session, challenge, now, viewer_id)

    async def _view(
        self,
        session: AsyncSession,
        challenge: SalesChallenge,
        now: datetime,
        viewer_id: str | None,
    ) -> ChallengeViewResponse:
        result = await session.execute(
            select(SalesEntry)
            .where(
                SalesEntry.challenge_id == challenge.id,
                SalesEntry.is_published.is_(True),
            )
            .order_by(SalesEntry.published_at, SalesEntry.id)
        )
        entries = [
            EntryResponse(
                id=str(entry.id),
                source=entry.source,
                author_initials=entry.author_initials,
                text=entry.text,
                published_at=ensure_utc(entry.published_at) if entry.published_at else None,
                winner_notes=entry.winner_notes,
                is_mine=viewer_id is not None and entry.author_user_id == viewer_id,
            )
            for entry in result.scalars().all()
        ]

        my_votes: dict[str, int] = {}
        my_entry = None
        if viewer_id is not None:
            result = await session.execute(
                select(SalesVote.entry_id, SalesVote.weight).where(
                    SalesVote.challenge_id == challenge.id,
                    SalesVote.voter_user_id == viewer_id,
                )
            )
            my_votes = {str(row.entry_id): row.weight for row in result}

            result = await session.execute(
                select(SalesEntry).where(
                    SalesEntry.challenge_id == challenge.id,
                    SalesEntry.author_user_id == viewer_id,
                )
            )
            own = result.scalar_one_or_none()
            my_entry = my_entry_response(own) if own is not None else None

        winner = None
        status = ChallengeStatus(challenge.status)
        if status.is_at_or_past(ChallengeStatus.REVEALED):
            result = await session.execute(select(SalesWinner).where(SalesWinner.challenge_id == challenge.id))
            row = result.scalar_one_or_none()
            if row is not None:
                winner = WinnerResponse(
                    place1_entry_id=_str_or_none(row.place1_entry_id),
                    place2_entry_id=_str_or_none(row.place2_entry_id),
                    place3_entry_id=_str_or_none(row.place3_entry_id),
                    total_votes=row.total_votes,
                )

        total = winner.total_votes if winner is not None else await total_votes_in(session, challenge.id)
        used = sum(my_votes.values())

        return ChallengeViewResponse(
            challenge=challenge_response(challenge),
            entries=entries,
            total_votes=total,
            my_votes=my_votes,
            votes_used=used,
            votes_remaining=max(self.settings.vote_budget - used, 0) if viewer_id is not None else 0,
            my_entry=my_entry,
            can_edit=viewer_id is not None and editing_open(challenge, now) and not (my_entry and my_entry.is_published),
            can_vote=viewer_id is not None and voting_open(challenge, now),
            winner=winner,
        )

    async def best_of(self, key: str | None = None, limit: int = 30) -> list[BestOfResponse]:
        """Archive rows, newest week first, then by place."""
        async with self.session_factory() as session:
            stmt = select(SalesBestOf)
            if key is not None:
                stmt = stmt.where(SalesBestOf.week_key == key)
            stmt = stmt.order_by(SalesBestOf.week_key.desc(), SalesBestOf.place).limit(limit)
            result = await session.execute(stmt)
            return [bestof_response(row) for row in result.scalars().all()]

    async def stats(self, now: datetime, weeks: int = 12) -> ChallengeStatsResponse:
        """Summary over archived challenges whose week is among the last ``weeks`` weeks."""
        keys = week_keys_last_n(now, weeks)

        async with self.session_factory() as session:
            result = await session.execute(
                select(SalesChallenge.id, SalesChallenge.week_key, SalesChallenge.title).where(
                    SalesChallenge.week_key.in_(keys),
                    SalesChallenge.status == ChallengeStatus.ARCHIVED.value,
                )
            )
            challenges = sorted(result.all(), key=lambda row: row.week_key)
            if not challenges:
                return ChallengeStatsResponse(weeks=weeks)
            ids = [row.id for row in challenges]

            result = await session.execute(
                select(SalesWinner.challenge_id, SalesWinner.total_votes).where(SalesWinner.challenge_id.in_(ids))
            )
            votes_by_challenge = {row.challenge_id: row.total_votes for row in result}

            result = await session.execute(
                select(SalesEntry.author_user_id).where(
                    SalesEntry.challenge_id.in_(ids),
                    SalesEntry.is_published.is_(True),
                    SalesEntry.source == EntrySource.HUMAN.value,
                )
            )
            authors = result.scalars().all()

            result = await session.execute(
                select(SalesBestOf.week_key, SalesBestOf.place, SalesBestOf.source).where(
                    SalesBestOf.week_key.in_([row.week_key for row in challenges])
                )
            )
            podium: dict[str, dict[int, str]] = {}
            for row in result:
                podium.setdefault(row.week_key, {})[row.place] = row.source

        ai = EntrySource.AI.value
        placed = [source for places in podium.values() for source in places.values()]
        rows = []
        for challenge in challenges:
            places = podium.get(challenge.week_key, {})
            rows.append(
                StatsWeekRow(
                    week_key=challenge.week_key,
                    title=challenge.title or challenge.week_key,
                    total_votes=votes_by_challenge.get(challenge.id, 0),
                    place1_source=places.get(1),
                    place2_source=places.get(2),
                    place3_source=places.get(3),
                )
            )

        return ChallengeStatsResponse(
            weeks=weeks,
            challenges_count=len(challenges),
            total_votes=sum(votes_by_challenge.values()),
            published_entries_count=len(authors),
            unique_authors_count=len({author for author in authors if author}),
            ai_in_top3_count=sum(1 for source in placed if source == ai),
            ai_place1_count=sum(1 for places in podium.values() if places.get(1) == ai),
            rows=rows,
        )
