"""Core value types shared by the question generator and quiz controller."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "Category",
    "Difficulty",
    "Question",
    "GenerationRequest",
    "SessionSettings",
    "OPTION_COUNT",
    "MIN_QUESTION_COUNT",
    "MAX_QUESTION_COUNT",
    "MIN_TIME_LIMIT_SECONDS",
    "MAX_TIME_LIMIT_SECONDS",
    "DEFAULT_QUESTION_COUNT",
    "DEFAULT_TIME_LIMIT_SECONDS",
    "clamp_question_count",
    "clamp_time_limit",
]


OPTION_COUNT = 4
MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 50
MIN_TIME_LIMIT_SECONDS = 5
MAX_TIME_LIMIT_SECONDS = 300
DEFAULT_QUESTION_COUNT = 10
DEFAULT_TIME_LIMIT_SECONDS = 30


class _ParsableEnum(str, Enum):
    @classmethod
    def parse(cls, value: object):
        """Resolve ``value`` (member, name or value) into a member.

        Accepts ``snake_case``, ``kebab-case`` and ``camelCase`` spellings so
        preference files written by other clients still resolve.
        """

        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        if not text:
            raise ValueError(f"Empty {cls.__name__.lower()} value.")
        if text != text.lower() and text != text.upper():
            text = re.sub(r"(?<!^)(?=[A-Z])", "_", text)
        normalized = re.sub(r"[\s_-]+", "_", text).lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown {cls.__name__.lower()} '{value}'. "
                f"Expected one of: {choices}."
            ) from exc


class Category(_ParsableEnum):
    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    MULTIPLICATION = "multiplication"
    DIVISION = "division"
    ALGEBRA = "algebra"
    GEOMETRY = "geometry"
    CALCULUS = "calculus"
    FRACTIONS = "fractions"
    DECIMALS = "decimals"
    PERCENTAGES = "percentages"
    WORD_PROBLEMS = "word_problems"
    PATTERNS = "patterns"
    MEASUREMENT = "measurement"
    DATA_ANALYSIS = "data_analysis"


class Difficulty(_ParsableEnum):
    """Difficulty tiers ordered by increasing operand magnitude."""

    EASY = "easy"
    NORMAL = "normal"
    GENIUS = "genius"
    QUANTUM = "quantum"


def clamp_question_count(count: int) -> int:
    """Clamp ``count`` into the supported ``[1, 50]`` range."""

    return max(MIN_QUESTION_COUNT, min(MAX_QUESTION_COUNT, int(count)))


def clamp_time_limit(seconds: int) -> int:
    """Clamp ``seconds`` into the supported per-question time range."""

    return max(
        MIN_TIME_LIMIT_SECONDS, min(MAX_TIME_LIMIT_SECONDS, int(seconds))
    )


@dataclass(frozen=True)
class Question:
    """Multiple-choice arithmetic question with exactly four options.

    ``options`` are frozen in display order; ``correct_option_index`` points
    at the option holding ``answer``.
    """

    prompt: str
    options: tuple[str, ...]
    correct_option_index: int
    category: Category = Category.ADDITION
    difficulty: Difficulty = Difficulty.EASY
    explanation: str | None = None
    hint: str | None = None

    def __post_init__(self) -> None:
        options = tuple(str(option) for option in self.options)
        object.__setattr__(self, "options", options)
        if len(options) != OPTION_COUNT:
            raise ValueError(
                f"Question requires exactly {OPTION_COUNT} options, "
                f"got {len(options)}."
            )
        if len(set(options)) != OPTION_COUNT:
            raise ValueError(f"Question options must be unique: {options}.")
        if not 0 <= self.correct_option_index < OPTION_COUNT:
            raise ValueError(
                "correct_option_index must be between 0 and "
                f"{OPTION_COUNT - 1}, got {self.correct_option_index}."
            )

    @property
    def answer(self) -> str:
        return self.options[self.correct_option_index]

    def is_correct(self, option_index: int) -> bool:
        return option_index == self.correct_option_index

    def to_dict(self) -> dict[str, object]:
        return {
            "prompt": self.prompt,
            "options": list(self.options),
            "correct_option_index": self.correct_option_index,
            "answer": self.answer,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
            "explanation": self.explanation,
            "hint": self.hint,
        }


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable description of one question batch.

    ``count`` is clamped into ``[1, 50]`` rather than rejected.
    """

    category: Category = Category.ADDITION
    difficulty: Difficulty = Difficulty.NORMAL
    count: int = DEFAULT_QUESTION_COUNT

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", Category.parse(self.category))
        object.__setattr__(
            self, "difficulty", Difficulty.parse(self.difficulty)
        )
        object.__setattr__(self, "count", clamp_question_count(self.count))


@dataclass(frozen=True)
class SessionSettings:
    """A generation request paired with the per-question time limit."""

    request: GenerationRequest
    time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "time_limit_seconds", clamp_time_limit(self.time_limit_seconds)
        )
