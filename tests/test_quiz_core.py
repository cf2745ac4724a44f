from __future__ import annotations

from dataclasses import dataclass

import pytest

from algebra_speed.config import QuizConfig
from algebra_speed.leaderboard import Leaderboard, LeaderboardEntry
from algebra_speed.persistence import MemoryBlobStore
from algebra_speed.question_generator import QuestionGenerator
from algebra_speed.quiz import FinishedView, InProgressView, NotStartedView, QuizSession, QuizState
from algebra_speed.results import format_time, parse_answer
from algebra_speed.timer import FrameScheduler

SEED = 2024


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


class CountingStore(MemoryBlobStore):
    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def set(self, key: str, value: str) -> bool:
        self.writes += 1
        return super().set(key, value)


def _session(clock: FakeClock, store: MemoryBlobStore | None = None, **config: int) -> tuple[QuizSession, FrameScheduler]:
    scheduler = FrameScheduler(clock)
    board = Leaderboard(store if store is not None else MemoryBlobStore())
    board.load()
    session = QuizSession(
        leaderboard=board,
        clock=clock,
        scheduler=scheduler,
        config=QuizConfig(**config),
        generator_factory=lambda: QuestionGenerator(seed=SEED),
    )
    return session, scheduler


def _current(session: QuizSession) -> InProgressView:
    view = session.view()
    assert isinstance(view, InProgressView)
    return view


def test_initial_state_is_not_started() -> None:
    session, _ = _session(FakeClock())
    assert session.state is QuizState.NOT_STARTED
    view = session.view()
    assert isinstance(view, NotStartedView)
    assert view.leaderboard == ()


@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
def test_blank_name_is_refused(name: str) -> None:
    session, scheduler = _session(FakeClock())
    assert session.start(name) is False
    assert session.state is QuizState.NOT_STARTED
    assert scheduler.pending() == 0


def test_start_deals_seeded_questions_and_starts_timer() -> None:
    session, scheduler = _session(FakeClock())
    assert session.start("  Ada  ") is True
    assert session.state is QuizState.IN_PROGRESS

    attempt = session.attempt
    assert attempt is not None
    assert attempt.player_name == "Ada"
    assert list(attempt.questions) == QuestionGenerator(seed=SEED).generate(15)
    assert (attempt.current_index, attempt.correct_count, attempt.history) == (0, 0, [])
    assert scheduler.pending() == 1

    view = _current(session)
    assert view.progress_text == "Question 1/15"
    assert view.elapsed_text == "00:00"


def test_submit_is_rejected_outside_an_attempt() -> None:
    session, _ = _session(FakeClock())
    assert session.submit_answer("12") is False
    assert session.state is QuizState.NOT_STARTED


def test_empty_submission_changes_nothing() -> None:
    session, _ = _session(FakeClock())
    session.start("Ada")
    first = _current(session)

    assert session.submit_answer("") is False
    assert session.submit_answer("   ") is False

    attempt = session.attempt
    assert attempt is not None
    assert attempt.current_index == 0
    assert attempt.correct_count == 0
    assert attempt.history == []
    assert _current(session).question == first.question


def test_scoring_and_history() -> None:
    session, _ = _session(FakeClock())
    session.start("Ada")

    q1 = _current(session).question
    assert session.submit_answer(str(q1.answer)) is True
    q2 = _current(session).question
    assert session.submit_answer(str(q2.answer + 1)) is True
    q3 = _current(session).question
    assert session.submit_answer("abc") is True

    attempt = session.attempt
    assert attempt is not None
    assert attempt.current_index == 3
    assert attempt.correct_count == 1
    assert [(h.question, h.submitted, h.is_correct) for h in attempt.history] == [
        (q1, str(q1.answer), True),
        (q2, str(q2.answer + 1), False),
        (q3, "abc", False),
    ]


def test_elapsed_time_follows_timer_ticks() -> None:
    clock = FakeClock()
    session, scheduler = _session(clock)
    session.start("Ada")

    clock.advance(1.0)
    scheduler.run_pending()
    clock.advance(1.0)
    scheduler.run_pending()
    assert _current(session).elapsed_s == 2

    # Between ticks the published value holds.
    clock.advance(0.7)
    assert _current(session).elapsed_s == 2


def test_finishing_stops_timer_and_records_once() -> None:
    clock = FakeClock()
    store = CountingStore()
    session, scheduler = _session(clock, store, total_questions=3)
    session.start("Ada")

    for _ in range(3):
        clock.advance(5.0)
        session.submit_answer(str(_current(session).question.answer))

    assert session.state is QuizState.FINISHED
    assert scheduler.pending() == 0
    assert store.writes == 1

    view = session.view()
    assert isinstance(view, FinishedView)
    assert view.result.score_text == "3/3"
    assert view.result.total_time_s == 15
    assert view.result.made_leaderboard is True
    assert view.leaderboard == (LeaderboardEntry(name="Ada", score=3, time=15),)

    # Further reads and stray submissions do not record again.
    session.view()
    assert session.submit_answer("1") is False
    assert store.writes == 1


def test_restart_discards_attempt_from_any_state() -> None:
    clock = FakeClock()
    session, scheduler = _session(clock, total_questions=2)

    session.start("Ada")
    session.restart()
    assert session.state is QuizState.NOT_STARTED
    assert session.attempt is None
    assert scheduler.pending() == 0

    session.start("Ada")
    session.submit_answer("1")
    session.submit_answer("1")
    assert session.state is QuizState.FINISHED
    session.restart()
    assert session.state is QuizState.NOT_STARTED
    assert isinstance(session.view(), NotStartedView)


def test_start_during_attempt_replaces_it() -> None:
    session, scheduler = _session(FakeClock())
    session.start("Ada")
    session.submit_answer("1")

    assert session.start("Grace") is True
    attempt = session.attempt
    assert attempt is not None
    assert attempt.player_name == "Grace"
    assert attempt.current_index == 0
    assert scheduler.pending() == 1


def test_close_cancels_running_timer() -> None:
    clock = FakeClock()
    session, scheduler = _session(clock)
    session.start("Ada")

    session.close()
    session.close()
    assert scheduler.pending() == 0


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("12", 12), ("-7", -7), ("+3", 3), ("  42", 42), ("12abc", 12), ("3.9", 3), ("abc", None), ("-", None)],
)
def test_parse_answer_is_lenient(raw: str, expected: int | None) -> None:
    assert parse_answer(raw) == expected


@pytest.mark.parametrize(("seconds", "text"), [(0, "00:00"), (45, "00:45"), (61, "01:01"), (6000, "100:00")])
def test_format_time(seconds: int, text: str) -> None:
    assert format_time(seconds) == text


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        QuizConfig(total_questions=0)
    with pytest.raises(ValueError):
        QuizConfig(leaderboard_key=" ")
    with pytest.raises(ValueError):
        QuizConfig(tick_interval_s=0.0)
