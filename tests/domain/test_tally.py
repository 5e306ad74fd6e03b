"""Tests for the vote tally."""

import random
from datetime import UTC, datetime, timedelta

import pytest

from sales_challenge.domain.tally import TallyEntry, TallyVote, rank, scores

pytestmark = pytest.mark.unit

T1 = datetime(2026, 2, 16, 10, 0, tzinfo=UTC)
T2 = T1 + timedelta(hours=1)
T3 = T1 + timedelta(hours=2)


def _votes(weights: dict[str, list[int]]) -> list[TallyVote]:
    return [TallyVote(entry_id=eid, weight=w) for eid, ws in weights.items() for w in ws]


def test_equal_scores_rank_by_earlier_publication():
    entries = [
        TallyEntry(id="c", published_at=T3),
        TallyEntry(id="b", published_at=T2),
        TallyEntry(id="a", published_at=T1),
    ]
    votes = _votes({"a": [2, 2, 1], "b": [2, 1, 2], "c": [2, 1]})

    ranking = rank(entries, votes)

    assert [r.entry_id for r in ranking] == ["a", "b", "c"]
    assert [r.score for r in ranking] == [5, 5, 3]
    assert [r.place for r in ranking] == [1, 2, 3]


def test_rank_is_independent_of_input_order():
    entries = [TallyEntry(id=f"e{i}", published_at=T1 + timedelta(minutes=i % 3)) for i in range(8)]
    votes = _votes({"e1": [2, 1], "e2": [1], "e5": [2, 1], "e7": [2]})
    expected = rank(entries, votes)

    rng = random.Random(7)
    for _ in range(20):
        shuffled_entries = entries[:]
        shuffled_votes = votes[:]
        rng.shuffle(shuffled_entries)
        rng.shuffle(shuffled_votes)
        assert rank(shuffled_entries, shuffled_votes) == expected


def test_full_tie_breaks_by_smaller_id():
    entries = [TallyEntry(id="b", published_at=T1), TallyEntry(id="a", published_at=T1)]
    assert [r.entry_id for r in rank(entries, [])] == ["a", "b"]


def test_unpublished_timestamp_sorts_after_published():
    entries = [TallyEntry(id="a", published_at=None), TallyEntry(id="b", published_at=T2)]
    assert [r.entry_id for r in rank(entries, [])] == ["b", "a"]


def test_entries_without_votes_are_eligible():
    entries = [TallyEntry(id="a", published_at=T1), TallyEntry(id="b", published_at=T2)]
    ranking = rank(entries, _votes({"b": [1]}))

    assert [(r.entry_id, r.score) for r in ranking] == [("b", 1), ("a", 0)]


def test_empty_entry_set_yields_empty_ranking():
    assert rank([], []) == []
    assert rank([], _votes({"ghost": [2]})) == []


def test_fewer_than_three_entries():
    ranking = rank([TallyEntry(id="only", published_at=T1)], _votes({"only": [2]}))
    assert len(ranking) == 1
    assert ranking[0].place == 1


def test_votes_for_unknown_entries_are_ignored():
    ranking = rank([TallyEntry(id="a", published_at=T1)], _votes({"zzz": [2, 2], "a": [1]}))
    assert [(r.entry_id, r.score) for r in ranking] == [("a", 1)]


def test_duplicate_entries_are_counted_once():
    entry = TallyEntry(id="a", published_at=T1)
    assert len(rank([entry, entry], [])) == 1


def test_limit_caps_the_podium():
    entries = [TallyEntry(id=str(i), published_at=T1) for i in range(5)]
    assert len(rank(entries, [])) == 3
    assert len(rank(entries, [], limit=5)) == 5


def test_naive_and_aware_timestamps_compare_as_utc():
    entries = [
        TallyEntry(id="naive", published_at=datetime(2026, 2, 16, 11, 0)),
        TallyEntry(id="aware", published_at=T1),
    ]
    assert [r.entry_id for r in rank(entries, [])] == ["aware", "naive"]


def test_scores_sum_weights_per_entry():
    assert scores(_votes({"a": [1, 2], "b": [2]})) == {"a": 3, "b": 2}
