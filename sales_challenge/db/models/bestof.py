"""SalesBestOf model: append-only archive of each week's podium."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text, UniqueConstraint, Uuid

from sales_challenge.db.base import Base


class SalesBestOf(Base):
    __tablename__ = "sales_bestof"
    __table_args__ = (
        UniqueConstraint("week_key", "place", name="uq_sales_bestof_week_place"),
        CheckConstraint("place >= 1 AND place <= 3", name="ck_sales_bestof_place"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # No FK to the challenge: archive rows outlive challenge deletion
    week_key = Column(String(10), nullable=False, index=True)
    place = Column(Integer, nullable=False)
    category = Column(String(100), nullable=False)

    entry_text = Column(Text, nullable=False)
    original_text = Column(Text, nullable=True)
    context_text = Column(Text, nullable=True)
    author_initials = Column(String(10), nullable=True)
    source = Column(String(10), nullable=False)
    votes = Column(Integer, nullable=False, default=0)
    winner_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    # NO updated_at -- archive rows are immutable
