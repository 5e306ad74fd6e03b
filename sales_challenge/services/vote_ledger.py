"""VoteLedger: budget-constrained weighted voting.

Every mutation runs as one transaction: check the challenge and entry, then
create-or-lock the voter's budget row, re-read the voter's votes, check the
budget and write. Two concurrent calls for the same voter therefore
serialize on the budget row instead of both passing a stale read, and a
rejected call rolls back without leaving a row behind. The budget row's
check constraint is the last line of defence if a write ever slips past
the check.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sales_challenge.core.config import Settings, get_settings
from sales_challenge.core.exceptions import (
    BudgetExceededError,
    ChallengeNotFoundError,
    EntryNotFoundError,
    InvalidVoteWeightError,
    VotingClosedError,
)
from sales_challenge.db.models.challenge import SalesChallenge
from sales_challenge.db.models.entry import SalesEntry
from sales_challenge.db.models.vote import SalesVote, SalesVoteBudget
from sales_challenge.domain.status import ChallengeStatus
from sales_challenge.domain.weeks import ensure_utc

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VoteReceipt:
    """Result of an accepted vote."""

    entry_id: uuid.UUID
    weight: int
    voter_total: int
    remaining: int


def voting_open(challenge: SalesChallenge, now: datetime) -> bool:
    """Status gate first: a frozen challenge is closed even before its deadline."""
    return challenge.status == ChallengeStatus.ACTIVE.value and now < ensure_utc(challenge.vote_deadline_at)


class VoteLedger:
    """Service layer for vote mutations and vote totals."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    async def set_vote(
        self,
        challenge_id: uuid.UUID,
        entry_id: uuid.UUID,
        voter_user_id: str,
        weight: int,
        now: datetime | None = None,
    ) -> VoteReceipt:
        """Set the voter's weight on one entry (0 removes the vote).

        Args:
            challenge_id: Challenge the entry belongs to
            entry_id: Published entry to vote on
            voter_user_id: Opaque user id from the identity provider
            weight: New weight, 0..max_vote_weight
            now: Current time (for deterministic testing)

        Returns:
            VoteReceipt with the accepted weight and the voter's new total

        Raises:
            InvalidVoteWeightError: weight outside 0..max_vote_weight
            ChallengeNotFoundError: unknown challenge
            VotingClosedError: challenge not active or vote deadline passed
            EntryNotFoundError: entry unknown, unpublished or in another challenge
            BudgetExceededError: new total would exceed the vote budget
        """
        now = now or datetime.now(UTC)
        max_weight = self.settings.max_vote_weight
        budget = self.settings.vote_budget

        if isinstance(weight, bool) or not isinstance(weight, int) or not 0 <= weight <= max_weight:
            raise InvalidVoteWeightError(f"Weight must be between 0 and {max_weight}")

        async with self.session_factory() as session:
            async with session.begin():
                # FOR SHARE: a concurrent freeze waits for in-flight votes and vice versa
                result = await session.execute(
                    select(SalesChallenge)
                    .where(SalesChallenge.id == challenge_id)
                    .with_for_update(read=True)
                )
                challenge = result.scalar_one_or_none()
                if challenge is None:
                    raise ChallengeNotFoundError()
                if not voting_open(challenge, now):
                    logger.info(
                        "vote_rejected",
                        reason="voting_closed",
                        challenge_id=str(challenge_id),
                        voter_user_id=voter_user_id,
                    )
                    raise VotingClosedError()

                result = await session.execute(
                    select(SalesEntry.id).where(
                        SalesEntry.id == entry_id,
                        SalesEntry.challenge_id == challenge_id,
                        SalesEntry.is_published.is_(True),
                    )
                )
                if result.scalar_one_or_none() is None:
                    raise EntryNotFoundError()

                # Takes the budget row lock (the write lock on SQLite) before the
                # voter's votes are read; a later rejection rolls the row back
                await self._lock_budget_row(session, challenge_id, voter_user_id, now)

                result = await session.execute(
                    select(SalesVote.entry_id, SalesVote.weight).where(
                        SalesVote.challenge_id == challenge_id,
                        SalesVote.voter_user_id == voter_user_id,
                    )
                )
                weights = {row.entry_id: row.weight for row in result}
                used = sum(weights.values())
                current = weights.get(entry_id, 0)
                new_total = used - current + weight

                if new_total > budget:
                    logger.info(
                        "vote_rejected",
                        reason="budget_exceeded",
                        challenge_id=str(challenge_id),
                        voter_user_id=voter_user_id,
                        used=used,
                        requested_total=new_total,
                    )
                    raise BudgetExceededError(used=used, requested_total=new_total, budget=budget)

                await self._write_vote(session, challenge_id, entry_id, voter_user_id, current, weight)
                await session.execute(
                    update(SalesVoteBudget)
                    .where(
                        SalesVoteBudget.challenge_id == challenge_id,
                        SalesVoteBudget.voter_user_id == voter_user_id,
                    )
                    .values(used=new_total)
                )

        logger.info(
            "vote_recorded",
            challenge_id=str(challenge_id),
            entry_id=str(entry_id),
            voter_user_id=voter_user_id,
            weight=weight,
            voter_total=new_total,
        )
        return VoteReceipt(
            entry_id=entry_id,
            weight=weight,
            voter_total=new_total,
            remaining=budget - new_total,
        )

    async def _lock_budget_row(
        self,
        session: AsyncSession,
        challenge_id: uuid.UUID,
        voter_user_id: str,
        now: datetime,
    ) -> None:
        """Create the voter's budget row if missing, then lock it with an UPDATE.

        Runs inside the caller's transaction. A concurrent first vote that
        inserted the row already makes the insert a no-op.
        """
        if session.get_bind().dialect.name == "postgresql":
            stmt = pg_insert(SalesVoteBudget)
        else:
            stmt = sqlite_insert(SalesVoteBudget)
        await session.execute(
            stmt.values(challenge_id=challenge_id, voter_user_id=voter_user_id, used=0).on_conflict_do_nothing(
                index_elements=[SalesVoteBudget.challenge_id, SalesVoteBudget.voter_user_id]
            )
        )
        await session.execute(
            update(SalesVoteBudget)
            .where(
                SalesVoteBudget.challenge_id == challenge_id,
                SalesVoteBudget.voter_user_id == voter_user_id,
            )
            .values(updated_at=now)
        )

    async def _write_vote(
        self,
        session: AsyncSession,
        challenge_id: uuid.UUID,
        entry_id: uuid.UUID,
        voter_user_id: str,
        current: int,
        weight: int,
    ) -> None:
        """Exactly one insert, update or delete of the vote row."""
        if weight == 0:
            if current:
                await session.execute(
                    delete(SalesVote).where(
                        SalesVote.challenge_id == challenge_id,
                        SalesVote.entry_id == entry_id,
                        SalesVote.voter_user_id == voter_user_id,
                    )
                )
            return

        vote = await session.get(SalesVote, (challenge_id, entry_id, voter_user_id))
        if vote is None:
            session.add(
                SalesVote(
                    challenge_id=challenge_id,
                    entry_id=entry_id,
                    voter_user_id=voter_user_id,
                    weight=weight,
                )
            )
        else:
            vote.weight = weight

    async def votes_of(self, challenge_id: uuid.UUID, voter_user_id: str) -> dict[uuid.UUID, int]:
        """Map of entry id -> weight for one voter."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(SalesVote.entry_id, SalesVote.weight).where(
                    SalesVote.challenge_id == challenge_id,
                    SalesVote.voter_user_id == voter_user_id,
                )
            )
            return {row.entry_id: row.weight for row in result}

    async def total_votes(self, challenge_id: uuid.UUID) -> int:
        """Sum of all weights across all voters and entries (live counter)."""
        async with self.session_factory() as session:
            return await total_votes_in(session, challenge_id)


async def total_votes_in(session: AsyncSession, challenge_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.coalesce(func.sum(SalesVote.weight), 0)).where(SalesVote.challenge_id == challenge_id)
    )
    return int(result.scalar_one())


async def entry_scores_in(session: AsyncSession, challenge_id: uuid.UUID) -> dict[uuid.UUID, int]:
    """Sum of weights per entry for one challenge."""
    result = await session.execute(
        select(SalesVote.entry_id, func.sum(SalesVote.weight))
        .where(SalesVote.challenge_id == challenge_id)
        .group_by(SalesVote.entry_id)
    )
    return {entry_id: int(total) for entry_id, total in result}
