"""Vote tally: rank entries by total vote weight.

Pure function -- no side effects, no DB access.
"""
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sales_challenge.domain.weeks import ensure_utc

PODIUM_SIZE = 3


@dataclass(frozen=True)
class TallyEntry:
    """The parts of an entry the tally needs."""

    id: str
    published_at: datetime | None = None


@dataclass(frozen=True)
class TallyVote:
    entry_id: str
    weight: int


@dataclass(frozen=True)
class RankedEntry:
    entry_id: str
    score: int
    place: int


def scores(votes: Iterable[TallyVote]) -> dict[str, int]:
    """Sum vote weights per entry id."""
    totals: dict[str, int] = {}
    for vote in votes:
        totals[vote.entry_id] = totals.get(vote.entry_id, 0) + (vote.weight or 0)
    return totals


def _sort_key(entry: TallyEntry, score: int) -> tuple:
    # Unpublished timestamps sort last among equal scores
    published = entry.published_at
    return (
        -score,
        published is None,
        ensure_utc(published) if published is not None else datetime.min,
        entry.id,
    )


def rank(
    entries: Iterable[TallyEntry],
    votes: Iterable[TallyVote],
    limit: int = PODIUM_SIZE,
) -> list[RankedEntry]:
    """Rank entries for the podium.

    Order: higher score first, then earlier ``published_at``, then smaller id.
    Entries without votes score 0 and still place. Votes for ids that are not
    in ``entries`` are ignored. Returns at most ``limit`` results; an empty
    entry set yields an empty ranking.
    """
    totals = scores(votes)
    unique = {entry.id: entry for entry in entries}
    ordered = sorted(unique.values(), key=lambda e: _sort_key(e, totals.get(e.id, 0)))
    return [
        RankedEntry(entry_id=entry.id, score=totals.get(entry.id, 0), place=index + 1)
        for index, entry in enumerate(ordered[:limit])
    ]
