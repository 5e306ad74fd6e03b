"""SalesWinner model: frozen tally snapshot, one per challenge."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Uuid

from sales_challenge.db.base import Base


class SalesWinner(Base):
    __tablename__ = "sales_winners"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    challenge_id = Column(Uuid, ForeignKey("sales_challenges.id"), nullable=False, unique=True)

    # Null when fewer than three published entries existed
    place1_entry_id = Column(Uuid, ForeignKey("sales_entries.id"), nullable=True)
    place2_entry_id = Column(Uuid, ForeignKey("sales_entries.id"), nullable=True)
    place3_entry_id = Column(Uuid, ForeignKey("sales_entries.id"), nullable=True)

    total_votes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    # NO updated_at -- written once at reveal

    def placed_entry_ids(self) -> list[uuid.UUID]:
        """Non-null place ids in podium order."""
        return [e for e in (self.place1_entry_id, self.place2_entry_id, self.place3_entry_id) if e]
