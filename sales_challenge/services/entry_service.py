"""EntryService: human entries: drafts, one-way publish, winner notes."""

import uuid
from datetime import UTC, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sales_challenge.core.exceptions import (
    ChallengeNotFoundError,
    EditingClosedError,
    EntryLockedError,
    EntryNotFoundError,
    ForbiddenError,
    InvalidEntryError,
)
from sales_challenge.db.models.challenge import SalesChallenge
from sales_challenge.db.models.entry import SalesEntry
from sales_challenge.db.models.winner import SalesWinner
from sales_challenge.domain.status import ChallengeStatus, EntrySource
from sales_challenge.domain.weeks import ensure_utc

logger = structlog.get_logger(__name__)

MAX_INITIALS_LENGTH = 10


def editing_open(challenge: SalesChallenge, now: datetime) -> bool:
    return challenge.status == ChallengeStatus.ACTIVE.value and now < ensure_utc(challenge.edit_deadline_at)


def _clean_initials(initials: str | None) -> str | None:
    if initials is None:
        return None
    initials = initials.strip()[:MAX_INITIALS_LENGTH]
    return initials or None


class EntryService:
    """Service layer for entries owned by a single user."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _challenge(self, session: AsyncSession, challenge_id: uuid.UUID) -> SalesChallenge:
        challenge = await session.get(SalesChallenge, challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError()
        return challenge

    async def _own_entry(
        self, session: AsyncSession, challenge_id: uuid.UUID, user_id: str
    ) -> SalesEntry | None:
        result = await session.execute(
            select(SalesEntry).where(
                SalesEntry.challenge_id == challenge_id,
                SalesEntry.author_user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def my_entry(self, challenge_id: uuid.UUID, user_id: str) -> SalesEntry | None:
        """The user's own entry for a challenge, draft included."""
        async with self.session_factory() as session:
            return await self._own_entry(session, challenge_id, user_id)

    async def save_draft(
        self,
        challenge_id: uuid.UUID,
        user_id: str,
        text: str,
        author_initials: str | None = None,
        now: datetime | None = None,
    ) -> SalesEntry:
        """Create or update the user's unpublished entry.

        Raises:
            ChallengeNotFoundError: unknown challenge
            EditingClosedError: challenge no longer active or edit deadline passed
            EntryLockedError: entry already published
            InvalidEntryError: blank text
        """
        now = now or datetime.now(UTC)
        if not text or not text.strip():
            raise InvalidEntryError("Entry text must not be empty")

        async with self.session_factory() as session:
            challenge = await self._challenge(session, challenge_id)
            if not editing_open(challenge, now):
                raise EditingClosedError()

            entry = await self._own_entry(session, challenge_id, user_id)
            if entry is not None and entry.is_published:
                raise EntryLockedError()

            if entry is None:
                entry = SalesEntry(
                    challenge_id=challenge_id,
                    author_user_id=user_id,
                    author_initials=_clean_initials(author_initials),
                    source=EntrySource.HUMAN.value,
                    text=text,
                    draft_text=text,
                    is_published=False,
                )
                session.add(entry)
            else:
                entry.draft_text = text
                if author_initials is not None:
                    entry.author_initials = _clean_initials(author_initials)

            try:
                await session.commit()
            except IntegrityError:
                # Concurrent first save from the same user; theirs won
                await session.rollback()
                raise EntryLockedError("Entry was created concurrently, reload and retry")
            await session.refresh(entry)

        logger.info("entry_draft_saved", challenge_id=str(challenge_id), entry_id=str(entry.id), user_id=user_id)
        return entry

    async def publish(
        self,
        challenge_id: uuid.UUID,
        user_id: str,
        now: datetime | None = None,
    ) -> SalesEntry:
        """Publish the user's draft. One-way; publishing again returns the entry unchanged.

        Raises:
            ChallengeNotFoundError: unknown challenge
            EntryNotFoundError: user has no entry in this challenge
            EditingClosedError: edit window over (only checked for unpublished entries)
            InvalidEntryError: draft and text are both blank
        """
        now = now or datetime.now(UTC)
        async with self.session_factory() as session:
            challenge = await self._challenge(session, challenge_id)
            entry = await self._own_entry(session, challenge_id, user_id)
            if entry is None:
                raise EntryNotFoundError()
            if entry.is_published:
                return entry
            if not editing_open(challenge, now):
                raise EditingClosedError()

            text = (entry.draft_text or "").strip() or (entry.text or "").strip()
            if not text:
                raise InvalidEntryError("Entry text must not be empty")

            entry.text = text
            entry.draft_text = None
            entry.is_published = True
            entry.published_at = now
            await session.commit()
            await session.refresh(entry)

        logger.info("entry_published", challenge_id=str(challenge_id), entry_id=str(entry.id), user_id=user_id)
        return entry

    async def set_winner_notes(
        self,
        entry_id: uuid.UUID,
        user_id: str,
        notes: str | None,
        now: datetime | None = None,
    ) -> SalesEntry:
        """Attach notes to a placed entry, by its author, after reveal and before the week ends.

        Raises:
            EntryNotFoundError: unknown entry
            ForbiddenError: caller is not the author, or the entry did not place
            EditingClosedError: not yet revealed, or the week has ended
        """
        now = now or datetime.now(UTC)
        async with self.session_factory() as session:
            entry = await session.get(SalesEntry, entry_id)
            if entry is None:
                raise EntryNotFoundError()
            if entry.author_user_id is None or entry.author_user_id != user_id:
                raise ForbiddenError("Only the entry's author can add winner notes")

            challenge = await self._challenge(session, entry.challenge_id)
            status = ChallengeStatus(challenge.status)
            if not status.is_at_or_past(ChallengeStatus.REVEALED) or now >= ensure_utc(challenge.ends_at):
                raise EditingClosedError("Winner notes can only be written between reveal and week end")

            result = await session.execute(
                select(SalesWinner).where(SalesWinner.challenge_id == challenge.id)
            )
            winner = result.scalar_one_or_none()
            if winner is None or entry.id not in winner.placed_entry_ids():
                raise ForbiddenError("Only placed entries can carry winner notes")

            entry.winner_notes = notes.strip() if notes and notes.strip() else None
            await session.commit()
            await session.refresh(entry)

        logger.info("winner_notes_saved", entry_id=str(entry_id), user_id=user_id)
        return entry
