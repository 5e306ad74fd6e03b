"""SalesBacklogItem model: queued prompts for upcoming weeks."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from sales_challenge.db.base import Base


class SalesBacklogItem(Base):
    __tablename__ = "sales_backlog"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    original_text = Column(Text, nullable=False)
    context_text = Column(Text, nullable=True)
    rules_text = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="draft")  # draft, planned, used
    planned_week_key = Column(String(10), nullable=True, index=True)
    used_in_challenge_id = Column(Uuid, ForeignKey("sales_challenges.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
