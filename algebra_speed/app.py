"""Pygame UI shell for the Algebra Speed Test.

One screen follows the quiz session through its three states: name entry
with the leaderboard, the timed questions, and the results review.

Deterministic question/timing/scoring/leaderboard logic lives in
algebra_speed/* (core modules); this module only renders and collects input.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

import pygame

from .clock import RealClock
from .config import MAX_NAME_LENGTH, QuizConfig, default_db_path
from .leaderboard import Leaderboard, LeaderboardEntry
from .logging_config import configure_logging
from .persistence import SqliteBlobStore
from .quiz import FinishedView, InProgressView, NotStartedView, QuizSession, QuizState
from .results import format_time
from .timer import FrameScheduler

logger = logging.getLogger(__name__)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


WINDOW_SIZE = (960, 640)
TARGET_FPS = 60

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
HEADER_BG = (18, 30, 118)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
GOOD = (120, 226, 140)
BAD = (238, 110, 110)
GOLD = (250, 220, 110)
BOX_FILL = (246, 250, 255)
BOX_BORDER = (142, 168, 210)
INPUT_COLOR = (12, 26, 88)


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class QuizScreen:
    def __init__(self, app: App, *, session: QuizSession) -> None:
        self._app = app
        self._session = session
        self._input = ""

        self._header_font = pygame.font.Font(None, 30)
        self._small_font = pygame.font.Font(None, 26)
        self._tiny_font = pygame.font.Font(None, 21)
        self._big_font = pygame.font.Font(None, 64)
        self._prompt_fonts = [
            pygame.font.Font(None, 104),
            pygame.font.Font(None, 88),
            pygame.font.Font(None, 72),
            pygame.font.Font(None, 58),
        ]
        self._input_font = pygame.font.Font(None, 56)

    @property
    def pending_input(self) -> str:
        return self._input

    # -- Event handling -----------------------------------------------------
    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        state = self._session.state
        if state is QuizState.NOT_STARTED:
            self._handle_name_entry(event)
        elif state is QuizState.IN_PROGRESS:
            self._handle_answer_entry(event)
        else:
            self._handle_results(event)

    def _handle_name_entry(self, event: pygame.event.Event) -> None:
        key = event.key
        if key == pygame.K_ESCAPE:
            self._app.quit()
            return
        if key == pygame.K_BACKSPACE:
            self._input = self._input[:-1]
            return
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            # Blank names are refused by the session; keep what was typed.
            if self._session.start(self._input):
                self._input = ""
            return
        ch = getattr(event, "unicode", "")
        if ch and ch.isprintable() and len(self._input) < MAX_NAME_LENGTH:
            self._input += ch

    def _handle_answer_entry(self, event: pygame.event.Event) -> None:
        key = event.key
        # Emergency exit back to the start screen; Esc alone is ignored mid-attempt.
        if key == pygame.K_F12 or (key == pygame.K_ESCAPE and (event.mod & pygame.KMOD_SHIFT)):
            self._session.restart()
            self._input = ""
            return
        if key == pygame.K_BACKSPACE:
            self._input = self._input[:-1]
            return
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            if self._session.submit_answer(self._input):
                self._input = ""
            return
        ch = getattr(event, "unicode", "")
        if ch and (ch in "0123456789" or (ch == "-" and self._input == "")):
            self._input += ch

    def _handle_results(self, event: pygame.event.Event) -> None:
        if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._session.restart()
            self._input = ""
        elif event.key == pygame.K_ESCAPE:
            self._app.quit()

    # -- Rendering ----------------------------------------------------------
    def render(self, surface: pygame.Surface) -> None:
        view = self._session.view()
        if isinstance(view, InProgressView):
            self._render_question(surface, view)
        elif isinstance(view, FinishedView):
            self._render_results(surface, view)
        else:
            self._render_start(surface, view)

    def _frame(self, surface: pygame.Surface, title: str) -> pygame.Rect:
        w, h = surface.get_size()
        surface.fill(BG)

        margin = max(10, min(24, w // 34))
        frame = pygame.Rect(margin, margin, max(280, w - margin * 2), max(220, h - margin * 2))
        pygame.draw.rect(surface, PANEL_BG, frame)
        pygame.draw.rect(surface, BORDER, frame, 2)

        header_h = max(40, min(56, h // 9))
        header = pygame.Rect(frame.x + 2, frame.y + 2, frame.w - 4, header_h)
        pygame.draw.rect(surface, HEADER_BG, header)
        pygame.draw.line(surface, BORDER, (header.x, header.bottom), (header.right, header.bottom), 1)

        text = self._header_font.render(title, True, TEXT_MAIN)
        surface.blit(text, text.get_rect(center=header.center))
        return pygame.Rect(frame.x, header.bottom, frame.w, frame.bottom - header.bottom)

    def _render_input_box(self, surface: pygame.Surface, *, label: str, center_x: int, top: int) -> pygame.Rect:
        w, h = surface.get_size()
        box_w = max(220, min(380, int(w * 0.42)))
        box_h = max(48, min(62, int(h * 0.1)))
        box = pygame.Rect(center_x - box_w // 2, top, box_w, box_h)

        caption = self._small_font.render(label, True, TEXT_MAIN)
        surface.blit(caption, caption.get_rect(midbottom=(center_x, box.y - 6)))
        pygame.draw.rect(surface, BOX_FILL, box)
        pygame.draw.rect(surface, BOX_BORDER, box, 2)

        caret = "|" if (pygame.time.get_ticks() // 500) % 2 == 0 else ""
        entry = self._input_font.render(self._input + caret, True, INPUT_COLOR)
        surface.blit(entry, (box.x + 12, box.y + max(2, (box.h - entry.get_height()) // 2)))
        return box

    def _render_leaderboard(
        self,
        surface: pygame.Surface,
        entries: tuple[LeaderboardEntry, ...],
        rect: pygame.Rect,
    ) -> None:
        pygame.draw.rect(surface, (6, 13, 92), rect)
        pygame.draw.rect(surface, (78, 102, 170), rect, 1)
        title = self._small_font.render("Leaderboard", True, TEXT_MAIN)
        surface.blit(title, title.get_rect(midtop=(rect.centerx, rect.y + 8)))

        y = rect.y + 36
        if not entries:
            empty = self._tiny_font.render("No scores yet. Be the first!", True, TEXT_MUTED)
            surface.blit(empty, empty.get_rect(midtop=(rect.centerx, y)))
            return

        row_h = max(16, min(24, (rect.bottom - y - 6) // max(1, len(entries))))
        for idx, entry in enumerate(entries):
            if y + row_h > rect.bottom:
                break
            rank = self._tiny_font.render(f"#{idx + 1}", True, TEXT_MAIN)
            name = self._tiny_font.render(entry.name, True, TEXT_MUTED)
            score = self._tiny_font.render(f"{entry.score} pts", True, GOOD)
            elapsed = self._tiny_font.render(format_time(entry.time), True, GOLD)
            surface.blit(rank, (rect.x + 12, y))
            surface.blit(name, (rect.x + 56, y))
            surface.blit(score, score.get_rect(topright=(rect.right - 90, y)))
            surface.blit(elapsed, elapsed.get_rect(topright=(rect.right - 14, y)))
            y += row_h

    def _render_start(self, surface: pygame.Surface, view: NotStartedView) -> None:
        body = self._frame(surface, "Algebra Speed Test")
        cx = body.centerx

        max_min = self._session.config.leaderboard_max_time_s // 60
        intro = self._small_font.render(
            f"Enter your name. Finish in under {max_min} minutes to make the leaderboard!",
            True,
            TEXT_MUTED,
        )
        surface.blit(intro, intro.get_rect(midtop=(cx, body.y + 18)))

        box = self._render_input_box(surface, label="Your Name:", center_x=cx, top=body.y + 86)
        hint_text = "Enter: Start Quiz  |  Esc: Quit"
        if self._input.strip() == "":
            hint_text = "Type a name to start  |  Esc: Quit"
        hint = self._tiny_font.render(hint_text, True, TEXT_MUTED)
        surface.blit(hint, hint.get_rect(midtop=(cx, box.bottom + 8)))

        board_w = max(300, min(520, int(body.w * 0.6)))
        board_top = box.bottom + 40
        board = pygame.Rect(cx - board_w // 2, board_top, board_w, max(80, body.bottom - board_top - 16))
        self._render_leaderboard(surface, view.leaderboard, board)

    def _render_question(self, surface: pygame.Surface, view: InProgressView) -> None:
        body = self._frame(surface, "Algebra Speed Test")
        w, h = surface.get_size()

        progress = self._header_font.render(view.progress_text, True, TEXT_MUTED)
        surface.blit(progress, (body.x + 16, body.y + 12))
        timer = self._header_font.render(view.elapsed_text, True, TEXT_MAIN)
        surface.blit(timer, timer.get_rect(topright=(body.right - 16, body.y + 12)))

        given = self._header_font.render(f"For x = {view.question.x_value}", True, TEXT_MUTED)
        surface.blit(given, given.get_rect(center=(body.centerx, body.y + int(body.h * 0.18))))

        prompt = f"{view.question.display_text} = ?"
        prompt_surface = None
        for f in self._prompt_fonts:
            candidate = f.render(prompt, True, TEXT_MAIN)
            if candidate.get_width() <= int(body.w * 0.9):
                prompt_surface = candidate
                break
        if prompt_surface is None:
            prompt_surface = self._prompt_fonts[-1].render(prompt, True, TEXT_MAIN)
        surface.blit(prompt_surface, prompt_surface.get_rect(center=(body.centerx, body.y + int(body.h * 0.36))))

        box = self._render_input_box(surface, label="Your Answer:", center_x=w // 2, top=int(h * 0.62))
        hint = self._tiny_font.render("Type answer then Enter", True, TEXT_MUTED)
        surface.blit(hint, hint.get_rect(midtop=(w // 2, box.bottom + 10)))

    def _render_results(self, surface: pygame.Surface, view: FinishedView) -> None:
        body = self._frame(surface, "Quiz Complete!")
        result = view.result
        left = pygame.Rect(body.x + 16, body.y + 12, int(body.w * 0.56) - 24, body.h - 56)
        right = pygame.Rect(left.right + 16, body.y + 12, body.right - left.right - 32, body.h - 56)

        y = left.y
        if result.made_leaderboard:
            made = self._header_font.render("You made the leaderboard!", True, GOOD)
            surface.blit(made, (left.x, y))
            y += 32
        score = self._big_font.render(result.score_text, True, GOOD)
        surface.blit(self._small_font.render("You scored:", True, TEXT_MUTED), (left.x, y))
        surface.blit(score, (left.x + 150, y - 12))
        y += 52
        elapsed = self._big_font.render(result.time_text, True, GOLD)
        surface.blit(self._small_font.render("Total time:", True, TEXT_MUTED), (left.x, y))
        surface.blit(elapsed, (left.x + 150, y - 12))
        y += 60

        surface.blit(self._small_font.render("Answer Review", True, TEXT_MAIN), (left.x, y))
        y += 28
        row_h = max(14, min(20, (left.bottom - y) // max(1, len(result.review))))
        for row in result.review:
            if y + row_h > left.bottom:
                break
            colour = GOOD if row.is_correct else BAD
            question = self._tiny_font.render(row.question.review_text, True, TEXT_MAIN)
            given = self._tiny_font.render(row.submitted, True, colour)
            expected = self._tiny_font.render(str(row.question.answer), True, GOLD)
            surface.blit(question, (left.x, y))
            surface.blit(given, given.get_rect(topright=(left.right - 70, y)))
            surface.blit(expected, expected.get_rect(topright=(left.right - 6, y)))
            y += row_h

        self._render_leaderboard(surface, view.leaderboard, right)

        foot = self._tiny_font.render("Enter/Space: Play Again  |  Esc: Quit", True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(body.centerx, body.bottom - 12)))


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    configure_logging()
    pygame.init()

    pygame.display.set_caption("Algebra Speed Test")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    frame_clock = pygame.time.Clock()

    app = App(surface=surface)

    config = QuizConfig()
    store = SqliteBlobStore(default_db_path())
    leaderboard = Leaderboard(
        store,
        key=config.leaderboard_key,
        size=config.leaderboard_size,
        max_time_s=config.leaderboard_max_time_s,
        max_score=config.total_questions,
    )
    leaderboard.load()
    logger.info("Loaded %d leaderboard entries from %s", len(leaderboard.entries), store.path)

    real_clock = RealClock()
    scheduler = FrameScheduler(real_clock)
    session = QuizSession(
        leaderboard=leaderboard,
        clock=real_clock,
        scheduler=scheduler,
        config=config,
    )
    app.push(QuizScreen(app, session=session))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            scheduler.run_pending()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            frame_clock.tick(TARGET_FPS)
    finally:
        session.close()
        scheduler.cancel_all()
        pygame.quit()

    return 0
