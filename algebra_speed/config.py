"""Quiz constants and runtime configuration.

Everything tunable about an attempt lives on ``QuizConfig``; the module level
constants are its defaults. Filesystem locations and the log level can be
overridden through environment variables so headless runs (CI, tests) never
touch the player's real leaderboard.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

TOTAL_QUESTIONS = 15
LEADERBOARD_SIZE = 10
LEADERBOARD_MAX_TIME = 300  # seconds; attempts at or over this never rank
LEADERBOARD_KEY = "algebraLeaderboard"
TICK_INTERVAL_S = 1.0
MAX_NAME_LENGTH = 24

DB_PATH_ENV = "ALGEBRA_SPEED_DB_PATH"
LOG_LEVEL_ENV = "ALGEBRA_SPEED_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class QuizConfig:
    total_questions: int = TOTAL_QUESTIONS
    leaderboard_size: int = LEADERBOARD_SIZE
    leaderboard_max_time_s: int = LEADERBOARD_MAX_TIME
    leaderboard_key: str = LEADERBOARD_KEY
    tick_interval_s: float = TICK_INTERVAL_S

    def __post_init__(self) -> None:
        if self.total_questions <= 0:
            raise ValueError("total_questions must be > 0")
        if self.leaderboard_size <= 0:
            raise ValueError("leaderboard_size must be > 0")
        if self.leaderboard_max_time_s <= 0:
            raise ValueError("leaderboard_max_time_s must be > 0")
        if self.leaderboard_key.strip() == "":
            raise ValueError("leaderboard_key must be non-empty")
        if self.tick_interval_s <= 0:
            raise ValueError("tick_interval_s must be > 0")


def default_db_path() -> Path:
    explicit = os.environ.get(DB_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".algebra_speed_test.sqlite3"


def log_level_from_env(default: int = logging.INFO) -> int:
    raw = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if raw == "":
        return default
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default
