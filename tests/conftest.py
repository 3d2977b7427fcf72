from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from math_genius.core.logging import reset_logger  # noqa: E402
from math_genius.quiz.controller import QuizSessionController  # noqa: E402
from math_genius.quiz.timer import ManualTicker  # noqa: E402
from quiz_helpers import fixed_source  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_math_genius_logger() -> Iterator[None]:
    yield
    reset_logger()


@pytest.fixture
def data_home(tmp_path: Path, monkeypatch) -> Path:
    """Point the data home at a per-test directory."""

    home = tmp_path / "data-home"
    monkeypatch.setenv("MATH_GENIUS_DATA_HOME", str(home))
    monkeypatch.delenv("MATH_GENIUS_CONFIG", raising=False)
    return home


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def controller_factory(
    ticker: ManualTicker,
) -> Callable[..., QuizSessionController]:
    """Build controllers on the shared manual ticker and its virtual clock."""

    def _factory(**kwargs) -> QuizSessionController:
        kwargs.setdefault("source", fixed_source)
        kwargs.setdefault("clock", lambda: ticker.now)
        return QuizSessionController(ticker=ticker, **kwargs)

    return _factory
