"""Challenge status ordering and entry source registry.

Pure domain logic with no external dependencies.
"""
from enum import Enum


class ChallengeStatus(str, Enum):
    """Weekly challenge lifecycle. Only ever advances in declaration order."""

    ACTIVE = "active"
    FROZEN = "frozen"
    REVEALED = "revealed"
    ARCHIVED = "archived"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def is_at_or_past(self, target: "ChallengeStatus") -> bool:
        return self.rank >= target.rank


_STATUS_ORDER = [
    ChallengeStatus.ACTIVE,
    ChallengeStatus.FROZEN,
    ChallengeStatus.REVEALED,
    ChallengeStatus.ARCHIVED,
]

# Statuses the client UI shows as "this week"
VISIBLE_STATUSES = (ChallengeStatus.ACTIVE, ChallengeStatus.FROZEN, ChallengeStatus.REVEALED)


def can_advance(current: ChallengeStatus, target: ChallengeStatus) -> bool:
    """True if moving from ``current`` to ``target`` is a forward step.

    Skipping intermediate states is allowed (a late reveal may go straight
    from active to revealed); staying put or going back is not.
    """
    return target.rank > current.rank


class EntrySource(str, Enum):
    HUMAN = "human"
    AI = "ai"


def archive_category_for(source: EntrySource, categories: dict[EntrySource, str]) -> str:
    """Look up the archive category for an entry source.

    Unknown sources fall back to the human category.
    """
    return categories.get(source, categories[EntrySource.HUMAN])
