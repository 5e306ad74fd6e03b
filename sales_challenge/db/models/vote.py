"""Vote models: weighted votes plus the per-voter budget row."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Uuid

from sales_challenge.db.base import Base

# Hard ceilings enforced by the database; the configured budget may be lower.
MAX_WEIGHT = 2
MAX_BUDGET = 3


class SalesVote(Base):
    __tablename__ = "sales_votes"
    __table_args__ = (
        CheckConstraint(f"weight >= 1 AND weight <= {MAX_WEIGHT}", name="ck_sales_votes_weight"),
    )

    # Composite primary key doubles as the (challenge, entry, voter) uniqueness constraint
    challenge_id = Column(Uuid, ForeignKey("sales_challenges.id"), primary_key=True)
    entry_id = Column(Uuid, ForeignKey("sales_entries.id"), primary_key=True, index=True)
    voter_user_id = Column(String(255), primary_key=True, index=True)

    weight = Column(Integer, nullable=False)  # absent row == weight 0

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class SalesVoteBudget(Base):
    """Committed budget use of one voter in one challenge.

    Locked before any vote write so concurrent votes of the same voter
    serialize; ``used`` always equals the sum of that voter's vote weights.
    """

    __tablename__ = "sales_vote_budgets"
    __table_args__ = (
        CheckConstraint(f"used >= 0 AND used <= {MAX_BUDGET}", name="ck_sales_vote_budgets_used"),
    )

    challenge_id = Column(Uuid, ForeignKey("sales_challenges.id"), primary_key=True)
    voter_user_id = Column(String(255), primary_key=True)
    used = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
