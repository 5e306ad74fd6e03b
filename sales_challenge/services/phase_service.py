"""PhaseService: the four scheduled, idempotent challenge transitions.

Every transition:
- derives its week key from an explicit ``now`` (never the wall clock)
- re-reads the challenge and checks the expected prior status itself
- writes dependent rows (entries, winner, archive rows) before the status
- advances status with a conditional UPDATE, so a duplicate or late
  invocation finds nothing to do and reports a no-op
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sales_challenge.core.config import Settings, get_settings
from sales_challenge.db.models.bestof import SalesBestOf
from sales_challenge.db.models.challenge import SalesChallenge
from sales_challenge.db.models.entry import SalesEntry
from sales_challenge.db.models.vote import SalesVote
from sales_challenge.db.models.winner import SalesWinner
from sales_challenge.domain.status import ChallengeStatus, EntrySource, archive_category_for, can_advance
from sales_challenge.domain.tally import TallyEntry, TallyVote, rank
from sales_challenge.domain.weeks import ensure_utc, previous_week_key, week_key, windows_for
from sales_challenge.services.backlog_service import BacklogService, ChallengePrompt
from sales_challenge.services.vote_ledger import entry_scores_in

logger = structlog.get_logger(__name__)

PHASE_START = "start"
PHASE_FREEZE = "freeze"
PHASE_REVEAL = "reveal"
PHASE_ARCHIVE = "archive-and-rollover"

PHASES = (PHASE_START, PHASE_FREEZE, PHASE_REVEAL, PHASE_ARCHIVE)


@dataclass
class PhaseResult:
    """Outcome of one transition. ``message`` is set only for no-ops."""

    phase: str
    week_key: str
    message: str | None = None
    data: dict = field(default_factory=dict)

    @property
    def noop(self) -> bool:
        return self.message is not None

    def to_response(self) -> dict:
        body: dict = {"ok": True, "week_key": self.week_key}
        if self.message is not None:
            body["message"] = self.message
        body.update(self.data)
        return body


def target_week_key(phase: str, now: datetime) -> str:
    """The week a phase acts on: archive looks back one week, the rest at ``now``."""
    if phase == PHASE_ARCHIVE:
        return previous_week_key(now)
    return week_key(now)


async def _advance_status(
    session: AsyncSession,
    challenge_id: uuid.UUID,
    from_statuses: Iterable[ChallengeStatus],
    to_status: ChallengeStatus,
) -> bool:
    """Conditionally move a challenge forward. False if it was not in ``from_statuses``.

    Raises:
        ValueError: a source status would not be a forward step to ``to_status``
    """
    from_statuses = list(from_statuses)
    backwards = [s.value for s in from_statuses if not can_advance(s, to_status)]
    if backwards:
        raise ValueError(f"Cannot move {backwards} to {to_status.value}")

    result = await session.execute(
        update(SalesChallenge)
        .where(
            SalesChallenge.id == challenge_id,
            SalesChallenge.status.in_([s.value for s in from_statuses]),
        )
        .values(status=to_status.value)
    )
    await session.commit()
    return result.rowcount > 0


class PhaseService:
    """Orchestrates the weekly lifecycle over the challenge, entry, vote and archive stores."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    @property
    def _skew(self) -> timedelta:
        return timedelta(seconds=self.settings.phase_skew_tolerance_seconds)

    async def run(self, phase: str, now: datetime, prompt: ChallengePrompt | None = None) -> PhaseResult:
        """Dispatch one phase by name and log its outcome."""
        now = ensure_utc(now)
        if phase == PHASE_START:
            result = await self.start(now, prompt=prompt)
        elif phase == PHASE_FREEZE:
            result = await self.freeze(now)
        elif phase == PHASE_REVEAL:
            result = await self.reveal(now)
        elif phase == PHASE_ARCHIVE:
            result = await self.archive_and_rollover(now)
        else:
            raise ValueError(f"Unknown phase: {phase}")

        if result.noop:
            logger.info("phase_noop", phase=phase, week_key=result.week_key, reason=result.message)
        else:
            logger.info("phase_completed", phase=phase, week_key=result.week_key, **result.data)
        return result

    async def _challenge_for_week(self, session: AsyncSession, key: str) -> SalesChallenge | None:
        result = await session.execute(select(SalesChallenge).where(SalesChallenge.week_key == key))
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # start
    # ------------------------------------------------------------------

    async def start(self, now: datetime, prompt: ChallengePrompt | None = None) -> PhaseResult:
        """Create this week's challenge in ``active`` with AI seed entries.

        No-op if the week already has a challenge. Seed insert failures are
        logged and leave the challenge with fewer seeds.
        """
        key = week_key(now)
        windows = windows_for(key, self.settings.civil_utc_offset_hours)

        async with self.session_factory() as session:
            existing = await self._challenge_for_week(session, key)
            if existing is not None:
                return PhaseResult(
                    PHASE_START, key, "Challenge already exists", {"challenge_id": str(existing.id)}
                )

            backlog = BacklogService(session, self.settings)
            resolved = await backlog.resolve_prompt(key, prompt)

            challenge = SalesChallenge(
                week_key=key,
                status=ChallengeStatus.ACTIVE.value,
                title=resolved.title,
                original_text=resolved.original_text,
                context_text=resolved.context_text,
                rules_text=resolved.rules_text,
                **windows.as_dict(),
            )
            session.add(challenge)
            try:
                await session.commit()
            except IntegrityError:
                # Concurrent start for the same week inserted first
                await session.rollback()
                return PhaseResult(PHASE_START, key, "Challenge already exists")
            challenge_id = challenge.id

            if resolved.backlog_item_id is not None:
                try:
                    await backlog.mark_used(resolved.backlog_item_id, challenge_id)
                    await session.commit()
                except SQLAlchemyError as exc:
                    await session.rollback()
                    logger.error(
                        "backlog_mark_used_failed",
                        week_key=key,
                        backlog_item_id=str(resolved.backlog_item_id),
                        error=str(exc),
                    )

            seeded = 0
            for text in self.settings.seed_entry_texts:
                session.add(
                    SalesEntry(
                        challenge_id=challenge_id,
                        author_user_id=None,
                        author_initials=None,
                        source=EntrySource.AI.value,
                        text=text,
                        is_published=True,
                        published_at=windows.starts_at,
                    )
                )
                try:
                    await session.commit()
                    seeded += 1
                except SQLAlchemyError as exc:
                    await session.rollback()
                    logger.error("seed_entry_insert_failed", week_key=key, challenge_id=str(challenge_id), error=str(exc))

        return PhaseResult(
            PHASE_START,
            key,
            data={
                "challenge_id": str(challenge_id),
                "seeded_entries": seeded,
                "prompt_source": "backlog" if resolved.backlog_item_id else ("provided" if prompt else "placeholder"),
            },
        )

    # ------------------------------------------------------------------
    # freeze
    # ------------------------------------------------------------------

    async def freeze(self, now: datetime) -> PhaseResult:
        """Close voting: ``active`` -> ``frozen`` for this week's challenge."""
        key = week_key(now)

        async with self.session_factory() as session:
            challenge = await self._challenge_for_week(session, key)
            if challenge is None:
                return PhaseResult(PHASE_FREEZE, key, "No challenge for this week")
            challenge_id = challenge.id
            if challenge.status != ChallengeStatus.ACTIVE.value:
                return PhaseResult(PHASE_FREEZE, key, "Challenge already frozen or revealed")
            if now < ensure_utc(challenge.freeze_at) - self._skew:
                return PhaseResult(PHASE_FREEZE, key, "Freeze not yet (freeze_at in future)")

            advanced = await _advance_status(session, challenge_id, [ChallengeStatus.ACTIVE], ChallengeStatus.FROZEN)
            if not advanced:
                return PhaseResult(PHASE_FREEZE, key, "Challenge already frozen or revealed")

        return PhaseResult(PHASE_FREEZE, key, data={"challenge_id": str(challenge_id)})

    # ------------------------------------------------------------------
    # reveal
    # ------------------------------------------------------------------

    async def reveal(self, now: datetime) -> PhaseResult:
        """Tally votes, write the single Winner row, then mark ``revealed``.

        A still-active challenge is frozen first so the tally reads a closed
        ledger. An existing Winner row is kept as-is (never recomputed).
        """
        key = week_key(now)

        async with self.session_factory() as session:
            challenge = await self._challenge_for_week(session, key)
            if challenge is None:
                return PhaseResult(PHASE_REVEAL, key, "Challenge not found")
            challenge_id = challenge.id
            status = ChallengeStatus(challenge.status)
            if status.is_at_or_past(ChallengeStatus.REVEALED):
                return PhaseResult(PHASE_REVEAL, key, "Challenge already revealed", {"challenge_id": str(challenge_id)})
            if now < ensure_utc(challenge.reveal_at) - self._skew:
                return PhaseResult(PHASE_REVEAL, key, "Reveal not yet (reveal_at in future)")

            if status == ChallengeStatus.ACTIVE:
                await _advance_status(session, challenge_id, [ChallengeStatus.ACTIVE], ChallengeStatus.FROZEN)
                logger.info("reveal_closed_voting", week_key=key, challenge_id=str(challenge_id))

            winner = await self._winner(session, challenge_id)
            created = False
            if winner is None:
                winner = await self._tally(session, challenge_id)
                session.add(winner)
                try:
                    await session.commit()
                    created = True
                except IntegrityError:
                    # Concurrent reveal wrote it first; use theirs
                    await session.rollback()
                    winner = await self._winner(session, challenge_id)

            places = [winner.place1_entry_id, winner.place2_entry_id, winner.place3_entry_id]
            total_votes = winner.total_votes

            advanced = await _advance_status(
                session,
                challenge_id,
                [ChallengeStatus.ACTIVE, ChallengeStatus.FROZEN],
                ChallengeStatus.REVEALED,
            )
            if not advanced and not created:
                return PhaseResult(PHASE_REVEAL, key, "Challenge already revealed", {"challenge_id": str(challenge_id)})

        return PhaseResult(
            PHASE_REVEAL,
            key,
            data={
                "challenge_id": str(challenge_id),
                "place1": str(places[0]) if places[0] else None,
                "place2": str(places[1]) if places[1] else None,
                "place3": str(places[2]) if places[2] else None,
                "total_votes": total_votes,
            },
        )

    async def _winner(self, session: AsyncSession, challenge_id: uuid.UUID) -> SalesWinner | None:
        result = await session.execute(select(SalesWinner).where(SalesWinner.challenge_id == challenge_id))
        return result.scalar_one_or_none()

    async def _tally(self, session: AsyncSession, challenge_id: uuid.UUID) -> SalesWinner:
        """Build (not persist) the Winner row from published entries and all votes."""
        result = await session.execute(
            select(SalesEntry.id, SalesEntry.published_at).where(
                SalesEntry.challenge_id == challenge_id,
                SalesEntry.is_published.is_(True),
            )
        )
        entries = [TallyEntry(id=str(row.id), published_at=row.published_at) for row in result]

        result = await session.execute(
            select(SalesVote.entry_id, SalesVote.weight).where(SalesVote.challenge_id == challenge_id)
        )
        votes = [TallyVote(entry_id=str(row.entry_id), weight=row.weight) for row in result]
        total_votes = sum(v.weight for v in votes)

        # Without any votes there is nothing to rank
        ranking = rank(entries, votes) if total_votes > 0 else []
        place_ids = [uuid.UUID(r.entry_id) for r in ranking] + [None] * (3 - len(ranking))

        return SalesWinner(
            challenge_id=challenge_id,
            place1_entry_id=place_ids[0],
            place2_entry_id=place_ids[1],
            place3_entry_id=place_ids[2],
            total_votes=total_votes,
        )

    # ------------------------------------------------------------------
    # archive-and-rollover
    # ------------------------------------------------------------------

    async def archive_and_rollover(self, now: datetime) -> PhaseResult:
        """Copy last week's podium into the archive, then mark it ``archived``.

        Archive rows already present for a place (from an interrupted earlier
        run) are skipped. Failed inserts are logged and counted; the status
        still advances so one bad row cannot block every later week.
        """
        key = previous_week_key(now)

        async with self.session_factory() as session:
            result = await session.execute(
                select(SalesChallenge).where(
                    SalesChallenge.week_key == key,
                    SalesChallenge.status == ChallengeStatus.REVEALED.value,
                )
            )
            challenge = result.scalar_one_or_none()
            if challenge is None:
                return PhaseResult(PHASE_ARCHIVE, key, "No revealed challenge to archive")

            challenge_id = challenge.id
            original_text = challenge.original_text
            context_text = challenge.context_text

            winner = await self._winner(session, challenge_id)
            if winner is None:
                await _advance_status(session, challenge_id, [ChallengeStatus.REVEALED], ChallengeStatus.ARCHIVED)
                return PhaseResult(PHASE_ARCHIVE, key, "No winners row, challenge archived", {"challenge_id": str(challenge_id)})

            podium = [
                (place, entry_id)
                for place, entry_id in enumerate(
                    (winner.place1_entry_id, winner.place2_entry_id, winner.place3_entry_id), start=1
                )
                if entry_id is not None
            ]
            if not podium:
                await _advance_status(session, challenge_id, [ChallengeStatus.REVEALED], ChallengeStatus.ARCHIVED)
                return PhaseResult(PHASE_ARCHIVE, key, "No top3 entries, challenge archived", {"challenge_id": str(challenge_id)})

            rows = await self._bestof_rows(session, key, challenge_id, podium, original_text, context_text)

            result = await session.execute(select(SalesBestOf.place).where(SalesBestOf.week_key == key))
            already = set(result.scalars().all())

            archived = failed = skipped = 0
            for row in rows:
                if row["place"] in already:
                    skipped += 1
                    continue
                session.add(SalesBestOf(**row))
                try:
                    await session.commit()
                    archived += 1
                except SQLAlchemyError as exc:
                    await session.rollback()
                    failed += 1
                    logger.error(
                        "bestof_insert_failed",
                        week_key=key,
                        challenge_id=str(challenge_id),
                        place=row["place"],
                        error=str(exc),
                    )

            await _advance_status(session, challenge_id, [ChallengeStatus.REVEALED], ChallengeStatus.ARCHIVED)

        return PhaseResult(
            PHASE_ARCHIVE,
            key,
            data={
                "challenge_id": str(challenge_id),
                "archived_count": archived,
                "skipped_count": skipped,
                "failed_count": failed,
            },
        )

    async def _bestof_rows(
        self,
        session: AsyncSession,
        key: str,
        challenge_id: uuid.UUID,
        podium: list[tuple[int, uuid.UUID]],
        original_text: str | None,
        context_text: str | None,
    ) -> list[dict]:
        """Plain column dicts for each placed entry (no ORM objects survive a rollback)."""
        result = await session.execute(
            select(
                SalesEntry.id,
                SalesEntry.text,
                SalesEntry.author_initials,
                SalesEntry.source,
                SalesEntry.winner_notes,
            ).where(SalesEntry.id.in_([entry_id for _, entry_id in podium]))
        )
        entries = {row.id: row for row in result}
        scores = await entry_scores_in(session, challenge_id)
        categories = {
            EntrySource.HUMAN: self.settings.archive_category_human,
            EntrySource.AI: self.settings.archive_category_ai,
        }

        rows = []
        for place, entry_id in podium:
            entry = entries.get(entry_id)
            source = EntrySource(entry.source) if entry is not None else EntrySource.HUMAN
            rows.append(
                {
                    "week_key": key,
                    "place": place,
                    "category": archive_category_for(source, categories),
                    "entry_text": entry.text if entry is not None else "",
                    "original_text": original_text,
                    "context_text": context_text,
                    "author_initials": entry.author_initials if entry is not None else None,
                    "source": source.value,
                    "votes": scores.get(entry_id, 0),
                    "winner_notes": entry.winner_notes if entry is not None else None,
                }
            )
        return rows
