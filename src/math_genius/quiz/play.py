"""Synchronous terminal host for a quiz session.

The host owns a :class:`ManualTicker` and feeds it the wall-clock time spent
waiting on each line of input, so the controller's countdown, timeouts and
response times all run on the same clock without background threads. An
answer typed after the countdown reached zero is ignored; the question has
already been scored as a timeout.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Literal, Optional

from rich.console import Console

from .controller import (
    Phase,
    QuestionSource,
    QuizSessionController,
    SessionFeatures,
)
from .events import EventKind, GameEvent
from .models import SessionSettings
from .session import QuizResults
from .timer import ManualTicker
from .view import (
    OPTION_KEYS,
    event_message,
    render_feedback,
    render_question,
    render_results,
)

__all__ = [
    "InputProvider",
    "PlayerCommand",
    "parse_player_command",
    "run_terminal_game",
]


logger = logging.getLogger(__name__)

InputProvider = Callable[[], str]
CommandType = Literal["answer", "hint", "quit"]


@dataclass(frozen=True)
class PlayerCommand:
    type: CommandType
    option_index: Optional[int] = None


def parse_player_command(raw: str | None) -> PlayerCommand | None:
    """Map a line of input to a command; ``None`` when unrecognised.

    Options are accepted as letters (``a``-``d``) or numbers (``1``-``4``).
    """

    text = (raw or "").strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"q", "quit", "exit"}:
        return PlayerCommand("quit")
    if lowered in {"h", "hint", "?"}:
        return PlayerCommand("hint")
    if len(text) != 1:
        return None
    key = text.upper()
    if key in OPTION_KEYS:
        return PlayerCommand("answer", OPTION_KEYS.index(key))
    if key.isdigit() and 1 <= int(key) <= len(OPTION_KEYS):
        return PlayerCommand("answer", int(key) - 1)
    return None


def run_terminal_game(
    settings: SessionSettings,
    console: Console,
    input_provider: InputProvider,
    *,
    source: Optional[QuestionSource] = None,
    features: Optional[SessionFeatures] = None,
    sound_enabled: bool = False,
    clock: Callable[[], float] = time.monotonic,
) -> Optional[QuizResults]:
    """Play one session to completion and return its results.

    Returns ``None`` when the player quits or input ends early.
    """

    ticker = ManualTicker()
    # Feedback is advanced by the loop once it has been rendered.
    features = replace(features or SessionFeatures(), auto_advance=False)
    controller = QuizSessionController(
        source=source,
        ticker=ticker,
        features=features,
        clock=lambda: ticker.now,
        default_time_limit=settings.time_limit_seconds,
    )

    def _announce(event: GameEvent) -> None:
        if sound_enabled and event.kind in (
            EventKind.CORRECT,
            EventKind.INCORRECT,
            EventKind.ACHIEVEMENT,
        ):
            console.bell()
        message = event_message(event)
        if message is not None:
            console.print(message)

    controller.subscribe(_announce)
    controller.start_session(
        settings.request, time_limit=settings.time_limit_seconds
    )
    try:
        return _play(controller, ticker, console, input_provider, clock)
    finally:
        controller.close()


def _play(
    controller: QuizSessionController,
    ticker: ManualTicker,
    console: Console,
    input_provider: InputProvider,
    clock: Callable[[], float],
) -> Optional[QuizResults]:
    show_question = True
    while controller.phase is not Phase.RESULTS:
        session = controller.session
        question = controller.current_question
        if session is None or question is None:  # pragma: no cover - guard
            return None

        if controller.phase is Phase.FEEDBACK:
            record = session.last_answer
            if record is not None:
                render_feedback(console, question, record)
            controller.advance()
            show_question = True
            continue

        if show_question:
            render_question(
                console,
                question,
                number=session.current_index + 1,
                total=session.total_questions,
                time_remaining=session.time_remaining_seconds,
                score=session.score,
                streak=session.streak,
            )
        started = clock()
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return None
        ticker.advance(max(0.0, clock() - started))
        if controller.phase is not Phase.ANSWERING:
            show_question = True
            continue

        command = parse_player_command(raw)
        if command is None:
            console.print(
                f"[red]Unrecognized input. Choose "
                f"{', '.join(OPTION_KEYS)}, h or q.[/]"
            )
            show_question = False
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending session early.[/]")
            logger.info(
                "Quiz session abandoned",
                extra={"question": session.current_index + 1},
            )
            return None
        if command.type == "hint":
            hint = question.hint or "No hint for this one."
            console.print(f"[cyan]Hint:[/] {hint}")
            show_question = False
            continue
        controller.submit_answer(command.option_index)

    results = controller.results()
    session = controller.session
    render_results(
        console,
        results,
        session.questions if session else (),
        session.answers if session else (),
    )
    return results
