"""Quiz session state machine: not started -> in progress -> finished.

A session owns at most one attempt at a time. ``start`` deals a fresh batch
of questions and starts the attempt timer; each non-empty ``submit_answer``
scores the current question and advances; the last answer stops the timer
and records the result on the leaderboard exactly once. ``restart`` (or a
new ``start``) throws the attempt away.

The UI reads state through ``view()``, which returns one payload type per
state, so there is never a finished-only field to read while a quiz is
running (or vice versa).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from .clock import Clock
from .config import QuizConfig
from .leaderboard import Leaderboard, LeaderboardEntry
from .question_generator import Question, QuestionGenerator
from .results import AnsweredQuestion, AttemptResult, format_time, parse_answer
from .timer import AttemptTimer, Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class QuizState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass(frozen=True, slots=True)
class NotStartedView:
    state: ClassVar[QuizState] = QuizState.NOT_STARTED

    leaderboard: tuple[LeaderboardEntry, ...]


@dataclass(frozen=True, slots=True)
class InProgressView:
    state: ClassVar[QuizState] = QuizState.IN_PROGRESS

    player_name: str
    question: Question
    question_number: int  # 1-based
    total_questions: int
    correct_count: int
    elapsed_s: int

    @property
    def progress_text(self) -> str:
        return f"Question {self.question_number}/{self.total_questions}"

    @property
    def elapsed_text(self) -> str:
        return format_time(self.elapsed_s)


@dataclass(frozen=True, slots=True)
class FinishedView:
    state: ClassVar[QuizState] = QuizState.FINISHED

    result: AttemptResult
    leaderboard: tuple[LeaderboardEntry, ...]


QuizView = NotStartedView | InProgressView | FinishedView


@dataclass(slots=True)
class QuizAttempt:
    player_name: str
    questions: tuple[Question, ...]
    timer: TimerHandle
    current_index: int = 0
    correct_count: int = 0
    history: list[AnsweredQuestion] = field(default_factory=list)

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def on_last_question(self) -> bool:
        return self.current_index >= len(self.questions) - 1


class QuizSession:
    def __init__(
        self,
        *,
        leaderboard: Leaderboard,
        clock: Clock,
        scheduler: Scheduler,
        config: QuizConfig | None = None,
        generator_factory: Callable[[], QuestionGenerator] | None = None,
    ) -> None:
        self._config = config or QuizConfig()
        self._leaderboard = leaderboard
        self._timer = AttemptTimer(clock=clock, scheduler=scheduler, interval_s=self._config.tick_interval_s)
        self._generator_factory = generator_factory or QuestionGenerator

        # At most one of these is set; neither means NOT_STARTED.
        self._attempt: QuizAttempt | None = None
        self._result: AttemptResult | None = None

    @property
    def config(self) -> QuizConfig:
        return self._config

    @property
    def state(self) -> QuizState:
        if self._attempt is not None:
            return QuizState.IN_PROGRESS
        if self._result is not None:
            return QuizState.FINISHED
        return QuizState.NOT_STARTED

    @property
    def attempt(self) -> QuizAttempt | None:
        return self._attempt

    def start(self, name: str) -> bool:
        """Begin a new attempt for ``name``. Returns False if the name is blank."""

        player = name.strip()
        if player == "":
            return False
        if self.state is not QuizState.NOT_STARTED:
            self.restart()

        questions = tuple(self._generator_factory().generate(self._config.total_questions))
        self._attempt = QuizAttempt(
            player_name=player,
            questions=questions,
            timer=self._timer.start(),
        )
        logger.info("Attempt started for %s (%d questions)", player, len(questions))
        return True

    def submit_answer(self, text: str) -> bool:
        """Score ``text`` against the current question. Returns True if accepted."""

        attempt = self._attempt
        if attempt is None:
            return False
        if text.strip() == "":
            return False

        question = attempt.current_question
        if parse_answer(text) == question.answer:
            attempt.correct_count += 1
        attempt.history.append(AnsweredQuestion(question=question, submitted=text))

        if attempt.on_last_question:
            self._finish(attempt)
        else:
            attempt.current_index += 1
        return True

    def restart(self) -> None:
        if self._attempt is not None:
            self._timer.stop(self._attempt.timer)
            logger.debug("Discarding in-progress attempt for %s", self._attempt.player_name)
        self._attempt = None
        self._result = None

    def close(self) -> None:
        """Teardown hook: make sure no timer tick outlives the session."""

        self._timer.stop_all()

    def view(self) -> QuizView:
        attempt = self._attempt
        if attempt is not None:
            return InProgressView(
                player_name=attempt.player_name,
                question=attempt.current_question,
                question_number=attempt.current_index + 1,
                total_questions=len(attempt.questions),
                correct_count=attempt.correct_count,
                elapsed_s=attempt.timer.elapsed_s,
            )
        if self._result is not None:
            return FinishedView(result=self._result, leaderboard=self._leaderboard.entries)
        return NotStartedView(leaderboard=self._leaderboard.entries)

    def _finish(self, attempt: QuizAttempt) -> None:
        self._timer.stop(attempt.timer)
        total_time_s = self._timer.total_seconds(attempt.timer)
        entry = LeaderboardEntry(
            name=attempt.player_name,
            score=attempt.correct_count,
            time=total_time_s,
        )
        made = self._leaderboard.record(entry)
        self._result = AttemptResult(
            player_name=attempt.player_name,
            correct=attempt.correct_count,
            total=len(attempt.questions),
            total_time_s=total_time_s,
            made_leaderboard=made,
            review=tuple(attempt.history),
        )
        self._attempt = None
        logger.info(
            "Attempt finished for %s: %s in %s%s",
            attempt.player_name,
            self._result.score_text,
            self._result.time_text,
            " (leaderboard)" if made else "",
        )
