from __future__ import annotations

import pytest
from rich.console import Console

from math_genius.quiz.controller import SessionFeatures
from math_genius.quiz.models import GenerationRequest, SessionSettings
from math_genius.quiz.play import (
    PlayerCommand,
    parse_player_command,
    run_terminal_game,
)
from quiz_helpers import fixed_source


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def scripted(clock: FakeClock, steps: list[tuple[float, str]]):
    """Return an input provider that lets ``seconds`` pass before each line."""

    iterator = iter(steps)

    def _provider() -> str:
        seconds, text = next(iterator)
        clock.now += seconds
        return text

    return _provider


def _settings(count: int = 3, time_limit: int = 10) -> SessionSettings:
    return SessionSettings(
        GenerationRequest(count=count), time_limit_seconds=time_limit
    )


def _console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


def test_parse_player_command_variants():
    assert parse_player_command("a") == PlayerCommand("answer", 0)
    assert parse_player_command(" D ") == PlayerCommand("answer", 3)
    assert parse_player_command("2") == PlayerCommand("answer", 1)
    assert parse_player_command("hint") == PlayerCommand("hint")
    assert parse_player_command("Q") == PlayerCommand("quit")
    assert parse_player_command("5") is None
    assert parse_player_command("e") is None
    assert parse_player_command("ab") is None
    assert parse_player_command(None) is None


def test_game_scores_answers_and_timeouts():
    clock = FakeClock()
    console = _console()

    results = run_terminal_game(
        _settings(),
        console,
        scripted(clock, [(1, "a"), (2, "b"), (12, "a")]),
        source=fixed_source,
        clock=clock,
    )

    assert results is not None
    assert results.score == 1
    assert results.answer_history == (True, False, False)
    assert results.timeouts == 1
    assert results.average_response_time_ms == pytest.approx(13000 / 3)
    output = console.export_text()
    assert "Question 1" in output
    assert "Time's up" in output
    assert "Incorrect" in output
    assert "Results" in output


def test_hint_and_unknown_input_keep_the_question_open():
    clock = FakeClock()
    console = _console()

    results = run_terminal_game(
        _settings(count=1),
        console,
        scripted(clock, [(0, "h"), (0, "zz"), (1, "1")]),
        source=fixed_source,
        clock=clock,
    )

    assert results is not None
    assert results.score == 1
    output = console.export_text()
    assert "Hint:" in output
    assert "Think." in output
    assert "Unrecognized input" in output


def test_quit_returns_none():
    clock = FakeClock()
    console = _console()

    results = run_terminal_game(
        _settings(),
        console,
        scripted(clock, [(0, "a"), (0, "q")]),
        source=fixed_source,
        clock=clock,
    )

    assert results is None
    assert "Ending session early" in console.export_text()


def test_input_ending_interrupts_session():
    clock = FakeClock()
    console = _console()

    results = run_terminal_game(
        _settings(),
        console,
        scripted(clock, []),
        source=fixed_source,
        clock=clock,
    )

    assert results is None
    assert "Session interrupted" in console.export_text()


def test_streak_announcements_and_auto_advance_setting_are_safe():
    clock = FakeClock()
    console = _console()

    results = run_terminal_game(
        _settings(count=3),
        console,
        scripted(clock, [(0, "a"), (0, "a"), (0, "a")]),
        source=fixed_source,
        features=SessionFeatures(auto_advance=True),
        sound_enabled=True,
        clock=clock,
    )

    assert results is not None
    assert results.is_perfect
    output = console.export_text()
    assert "3 in a row" in output
    assert "Perfect Score!" in output
