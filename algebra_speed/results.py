from __future__ import annotations

import re
from dataclasses import dataclass

from .question_generator import Question

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_answer(raw: str) -> int | None:
    """Lenient integer parse: leading sign and digits, trailing text ignored.

    ``"12abc"`` -> 12, ``" -3"`` -> -3, ``"abc"`` -> None. ``None`` never equals
    a question's answer, so unparseable input scores as incorrect.
    """

    m = _LEADING_INT.match(raw)
    if m is None:
        return None
    return int(m.group(1))


def format_time(seconds: int) -> str:
    """``MM:SS``; minutes are zero-padded to two digits but not capped."""

    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass(frozen=True, slots=True)
class AnsweredQuestion:
    question: Question
    submitted: str

    @property
    def parsed(self) -> int | None:
        return parse_answer(self.submitted)

    @property
    def is_correct(self) -> bool:
        return self.parsed == self.question.answer


@dataclass(frozen=True, slots=True)
class AttemptResult:
    """Summary of a finished attempt, as shown on the results screen."""

    player_name: str
    correct: int
    total: int
    total_time_s: int
    made_leaderboard: bool
    review: tuple[AnsweredQuestion, ...]

    @property
    def score_text(self) -> str:
        return f"{self.correct}/{self.total}"

    @property
    def time_text(self) -> str:
        return format_time(self.total_time_s)
