"""SalesChallenge model: one weekly challenge per ISO week key."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text, Uuid

from sales_challenge.db.base import Base


class SalesChallenge(Base):
    __tablename__ = "sales_challenges"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'frozen', 'revealed', 'archived')",
            name="ck_sales_challenges_status",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    week_key = Column(String(10), nullable=False, unique=True, index=True)  # "2026-W08"
    status = Column(String(20), nullable=False, default="active")  # ChallengeStatus values

    # Prompt
    title = Column(String(255), nullable=False)
    original_text = Column(Text, nullable=True)
    context_text = Column(Text, nullable=True)
    rules_text = Column(Text, nullable=True)

    # Phase windows (UTC): starts <= edit <= vote <= freeze <= reveal <= ends
    starts_at = Column(DateTime(timezone=True), nullable=False)
    edit_deadline_at = Column(DateTime(timezone=True), nullable=False)
    vote_deadline_at = Column(DateTime(timezone=True), nullable=False)
    freeze_at = Column(DateTime(timezone=True), nullable=False)
    reveal_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)

    # Audit
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
