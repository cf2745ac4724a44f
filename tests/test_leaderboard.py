from __future__ import annotations

import json
import random

import pytest

from algebra_speed.leaderboard import (
    Leaderboard,
    LeaderboardEntry,
    decode_entries,
    encode_entries,
    maybe_record,
)
from algebra_speed.persistence import MemoryBlobStore

KEY = "algebraLeaderboard"


class FailingStore(MemoryBlobStore):
    def set(self, key: str, value: str) -> bool:
        return False


def _is_ranked(entries: tuple[LeaderboardEntry, ...]) -> bool:
    pairs = [(-e.score, e.time) for e in entries]
    return pairs == sorted(pairs)


def _full_board() -> tuple[LeaderboardEntry, ...]:
    return tuple(LeaderboardEntry(name=f"p{i}", score=10, time=60 + i) for i in range(10))


def test_ordering_and_size_hold_for_random_inserts() -> None:
    rng = random.Random(4)
    board: tuple[LeaderboardEntry, ...] = ()
    for i in range(200):
        entry = LeaderboardEntry(name=f"p{i}", score=rng.randint(0, 15), time=rng.randint(0, 299))
        board, _ = maybe_record(entry, board)
        assert len(board) <= 10
        assert _is_ranked(board)


def test_time_cap_is_exclusive() -> None:
    at_cap = LeaderboardEntry(name="slow", score=15, time=300)
    over_cap = LeaderboardEntry(name="slower", score=15, time=301)
    under_cap = LeaderboardEntry(name="quick", score=0, time=299)

    assert maybe_record(at_cap, ()) == ((), False)
    assert maybe_record(over_cap, ()) == ((), False)
    assert maybe_record(under_cap, ()) == ((under_cap,), True)


def test_entry_that_misses_the_cut_is_not_inserted() -> None:
    board = _full_board()
    worse = LeaderboardEntry(name="late", score=9, time=10)
    updated, inserted = maybe_record(worse, board)
    assert updated == board
    assert inserted is False


def test_better_entry_pushes_out_the_last_place() -> None:
    board = _full_board()
    better = LeaderboardEntry(name="ace", score=11, time=200)
    updated, inserted = maybe_record(better, board)
    assert inserted is True
    assert updated[0] == better
    assert board[-1] not in updated
    assert len(updated) == 10


def test_faster_time_breaks_score_ties() -> None:
    board = (LeaderboardEntry(name="a", score=12, time=90),)
    quicker = LeaderboardEntry(name="b", score=12, time=80)
    updated, _ = maybe_record(quicker, board)
    assert [e.name for e in updated] == ["b", "a"]


def test_identical_values_count_as_inserted() -> None:
    twin = LeaderboardEntry(name="Ada", score=10, time=45)
    updated, inserted = maybe_record(twin, (twin,))
    assert inserted is True
    assert updated == (twin, twin)


def test_round_trip_through_store() -> None:
    store = MemoryBlobStore()
    board = Leaderboard(store, key=KEY)
    for i, (score, time_s) in enumerate([(12, 80), (15, 200), (12, 60), (3, 10)]):
        board.record(LeaderboardEntry(name=f"p{i}", score=score, time=time_s))

    reloaded = Leaderboard(store, key=KEY)
    assert reloaded.load() == board.entries
    assert [(e.score, e.time) for e in reloaded.entries] == [(15, 200), (12, 60), (12, 80), (3, 10)]


def test_blob_format_is_plain_json_list() -> None:
    entries = (LeaderboardEntry(name="Ada", score=10, time=45),)
    assert json.loads(encode_entries(entries)) == [{"name": "Ada", "score": 10, "time": 45}]


def test_missing_blob_loads_empty() -> None:
    assert Leaderboard(MemoryBlobStore(), key=KEY).load() == ()


@pytest.mark.parametrize("raw", ["{not json", '{"name": "Ada"}', "42", pytest.param("[" * 200000, id="deep-nesting")])
def test_unparseable_blob_loads_empty(raw: str) -> None:
    board = Leaderboard(MemoryBlobStore({KEY: raw}), key=KEY)
    assert board.load() == ()


def test_malformed_items_are_skipped_and_survivors_ranked() -> None:
    raw = json.dumps(
        [
            {"name": "slow", "score": 5, "time": 100},
            {"name": "", "score": 15, "time": 1},
            {"name": "bad", "score": "15", "time": 1},
            {"name": "neg", "score": 3, "time": -1},
            {"name": "cheat", "score": 999, "time": 1},
            "junk",
            {"name": "fast", "score": 5, "time": 20},
        ]
    )
    assert [e.name for e in decode_entries(raw)] == ["fast", "slow"]


def test_load_truncates_oversized_blob() -> None:
    raw = json.dumps([{"name": f"p{i}", "score": i, "time": 10} for i in range(14)])
    board = Leaderboard(MemoryBlobStore({KEY: raw}), key=KEY)
    loaded = board.load()
    assert len(loaded) == 10
    assert loaded[0].score == 13


def test_write_failure_keeps_board_in_memory() -> None:
    board = Leaderboard(FailingStore(), key=KEY)
    entry = LeaderboardEntry(name="Ada", score=10, time=45)
    assert board.record(entry) is True
    assert board.entries == (entry,)
    assert board.save() is False


def test_over_cap_record_leaves_store_untouched() -> None:
    store = MemoryBlobStore()
    board = Leaderboard(store, key=KEY)
    assert board.record(LeaderboardEntry(name="Ada", score=15, time=301)) is False
    assert store.get(KEY) is None
    assert board.entries == ()


def test_leaderboard_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        Leaderboard(MemoryBlobStore(), size=0)


def test_score_above_question_count_is_dropped_on_load() -> None:
    raw = json.dumps([{"name": "cheat", "score": 16, "time": 1}, {"name": "Ada", "score": 15, "time": 40}])
    assert [e.name for e in Leaderboard(MemoryBlobStore({KEY: raw}), key=KEY).load()] == ["Ada"]

    short_quiz = Leaderboard(MemoryBlobStore({KEY: raw}), key=KEY, max_score=3)
    assert short_quiz.load() == ()
