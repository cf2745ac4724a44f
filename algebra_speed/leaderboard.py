"""Top-N leaderboard: ranking rule plus its persisted blob.

Entries rank by score (highest first), then time (fastest first). Only
attempts finished under the time cap are eligible. The board is stored as a
JSON list of ``{"name", "score", "time"}`` objects under one blob key.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from .config import LEADERBOARD_KEY, LEADERBOARD_MAX_TIME, LEADERBOARD_SIZE, TOTAL_QUESTIONS
from .persistence import BlobStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    name: str
    score: int
    time: int  # whole seconds

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "score": int(self.score), "time": int(self.time)}

    @classmethod
    def from_dict(cls, data: object, *, max_score: int = TOTAL_QUESTIONS) -> "LeaderboardEntry | None":
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        score = data.get("score")
        time_s = data.get("time")
        if not isinstance(name, str) or name.strip() == "":
            return None
        # bool is an int subclass; reject it explicitly.
        if not isinstance(score, int) or isinstance(score, bool) or not 0 <= score <= max_score:
            return None
        if not isinstance(time_s, int) or isinstance(time_s, bool) or time_s < 0:
            return None
        return cls(name=name, score=score, time=time_s)


def rank_key(entry: LeaderboardEntry) -> tuple[int, int]:
    return (-entry.score, entry.time)


def maybe_record(
    entry: LeaderboardEntry,
    entries: tuple[LeaderboardEntry, ...] | list[LeaderboardEntry],
    *,
    size: int = LEADERBOARD_SIZE,
    max_time_s: int = LEADERBOARD_MAX_TIME,
) -> tuple[tuple[LeaderboardEntry, ...], bool]:
    """Rank ``entry`` against ``entries``; return the new board and whether it made the cut.

    Entries at or over ``max_time_s`` are never recorded. Identical entries
    are indistinguishable, so "made the cut" means the value is present in the
    truncated board.
    """

    current = tuple(entries)
    if entry.time >= max_time_s:
        return current, False
    ranked = sorted([*current, entry], key=rank_key)[:size]
    return tuple(ranked), entry in ranked


def encode_entries(entries: tuple[LeaderboardEntry, ...]) -> str:
    return json.dumps([e.to_dict() for e in entries])


def decode_entries(
    raw: str,
    *,
    size: int = LEADERBOARD_SIZE,
    max_score: int = TOTAL_QUESTIONS,
) -> tuple[LeaderboardEntry, ...]:
    """Parse a stored board. Raises ``ValueError`` if the blob is not a JSON list."""

    payload = json.loads(raw)
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON list, got {type(payload).__name__}")
    loaded: list[LeaderboardEntry] = []
    for item in payload:
        entry = LeaderboardEntry.from_dict(item, max_score=max_score)
        if entry is None:
            logger.warning("Skipping malformed leaderboard entry: %r", item)
            continue
        loaded.append(entry)
    return tuple(sorted(loaded, key=rank_key)[:size])


class Leaderboard:
    """Persisted leaderboard state, owned by the application host.

    ``load`` is called once at startup and ``record`` after each finished
    attempt. A failed write keeps the updated board in memory for the rest
    of the session.
    """

    def __init__(
        self,
        store: BlobStore,
        *,
        key: str = LEADERBOARD_KEY,
        size: int = LEADERBOARD_SIZE,
        max_time_s: int = LEADERBOARD_MAX_TIME,
        max_score: int = TOTAL_QUESTIONS,
    ) -> None:
        if size <= 0:
            raise ValueError("size must be > 0")
        self._store = store
        self._key = key
        self._size = int(size)
        self._max_time_s = int(max_time_s)
        self._max_score = int(max_score)
        self._entries: tuple[LeaderboardEntry, ...] = ()

    @property
    def entries(self) -> tuple[LeaderboardEntry, ...]:
        return self._entries

    def load(self) -> tuple[LeaderboardEntry, ...]:
        raw = self._store.get(self._key)
        if raw is None:
            self._entries = ()
            return self._entries
        try:
            self._entries = decode_entries(raw, size=self._size, max_score=self._max_score)
        except (ValueError, RecursionError) as exc:
            # JSONDecodeError is a ValueError; very deep nesting overflows the decoder.
            logger.warning("Failed to load leaderboard: %s", exc)
            self._entries = ()
        return self._entries

    def save(self) -> bool:
        ok = self._store.set(self._key, encode_entries(self._entries))
        if not ok:
            logger.warning("Failed to save leaderboard; keeping it in memory only")
        return ok

    def record(self, entry: LeaderboardEntry) -> bool:
        """Rank ``entry`` and persist the board. Returns True if the entry made the board."""

        if entry.time >= self._max_time_s:
            logger.info("%s finished in %ss; over the %ss leaderboard cap", entry.name, entry.time, self._max_time_s)
            return False
        updated, inserted = maybe_record(
            entry,
            self._entries,
            size=self._size,
            max_time_s=self._max_time_s,
        )
        self._entries = updated
        self.save()
        return inserted
