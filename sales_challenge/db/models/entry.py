"""SalesEntry model: a candidate line attached to a challenge."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from sales_challenge.db.base import Base


class SalesEntry(Base):
    __tablename__ = "sales_entries"
    __table_args__ = (
        # One human entry per author per week; AI entries have no author (NULLs never collide)
        UniqueConstraint("challenge_id", "author_user_id", name="uq_sales_entries_challenge_author"),
        CheckConstraint("source IN ('human', 'ai')", name="ck_sales_entries_source"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    challenge_id = Column(Uuid, ForeignKey("sales_challenges.id"), nullable=False, index=True)

    author_user_id = Column(String(255), nullable=True, index=True)  # null for AI entries
    author_initials = Column(String(10), nullable=True)  # display only
    source = Column(String(10), nullable=False, default="human")  # EntrySource values

    text = Column(Text, nullable=False)  # published / visible text
    draft_text = Column(Text, nullable=True)  # editable until edit deadline
    is_published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True), nullable=True)

    winner_notes = Column(Text, nullable=True)  # set by the author after reveal

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
