"""Re-export all models so Base.metadata sees them."""

from sales_challenge.db.models.backlog_item import SalesBacklogItem
from sales_challenge.db.models.bestof import SalesBestOf
from sales_challenge.db.models.challenge import SalesChallenge
from sales_challenge.db.models.entry import SalesEntry
from sales_challenge.db.models.vote import SalesVote, SalesVoteBudget
from sales_challenge.db.models.winner import SalesWinner

__all__ = [
    "SalesBacklogItem",
    "SalesBestOf",
    "SalesChallenge",
    "SalesEntry",
    "SalesVote",
    "SalesVoteBudget",
    "SalesWinner",
]
