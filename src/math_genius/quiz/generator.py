"""Procedural arithmetic question generation.

Questions are built from difficulty-specific operand ranges, padded with
near-miss distractors and shuffled once. The generator holds no state beyond
its random source: pass a seeded :class:`random.Random` for reproducible
batches, or leave it unset for system entropy at runtime.

A failure while building one slot never aborts the batch; that slot degrades
to a trivial doubling question instead.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from .models import Category, Difficulty, GenerationRequest, Question
from .options import distractor_candidates, shuffle_options, unique_option_values

__all__ = [
    "OPERAND_RANGES",
    "SUPPORTED_CATEGORIES",
    "QuestionGenerator",
    "generate_questions",
]


logger = logging.getLogger(__name__)

Range = tuple[int, int]

# Inclusive ranges keyed by difficulty. Subtraction's second operand and
# division's dividend are derived from the first draw.
OPERAND_RANGES: Mapping[Category, Mapping[Difficulty, tuple[Range, Range]]] = {
    Category.ADDITION: {
        Difficulty.EASY: ((1, 9), (1, 9)),
        Difficulty.NORMAL: ((10, 59), (10, 59)),
        Difficulty.GENIUS: ((50, 149), (50, 149)),
        Difficulty.QUANTUM: ((100, 599), (100, 599)),
    },
    Category.SUBTRACTION: {
        Difficulty.EASY: ((10, 24), (1, 24)),
        Difficulty.NORMAL: ((20, 99), (1, 99)),
        Difficulty.GENIUS: ((50, 199), (1, 199)),
        Difficulty.QUANTUM: ((200, 999), (1, 999)),
    },
    Category.MULTIPLICATION: {
        Difficulty.EASY: ((1, 10), (1, 10)),
        Difficulty.NORMAL: ((1, 12), (1, 12)),
        Difficulty.GENIUS: ((1, 20), (1, 15)),
        Difficulty.QUANTUM: ((1, 50), (1, 25)),
    },
    # (quotient, divisor)
    Category.DIVISION: {
        Difficulty.EASY: ((1, 10), (2, 6)),
        Difficulty.NORMAL: ((5, 24), (2, 9)),
        Difficulty.GENIUS: ((10, 59), (3, 14)),
        Difficulty.QUANTUM: ((20, 119), (5, 24)),
    },
    # (coefficient, unknown); the constant term reuses the addition range
    Category.ALGEBRA: {
        Difficulty.EASY: ((1, 5), (1, 5)),
        Difficulty.NORMAL: ((2, 11), (1, 10)),
        Difficulty.GENIUS: ((5, 24), (1, 20)),
        Difficulty.QUANTUM: ((10, 59), (1, 50)),
    },
    # (first term, common difference)
    Category.PATTERNS: {
        Difficulty.EASY: ((1, 10), (1, 3)),
        Difficulty.NORMAL: ((1, 30), (2, 9)),
        Difficulty.GENIUS: ((10, 99), (5, 19)),
        Difficulty.QUANTUM: ((50, 499), (11, 49)),
    },
}

_PERCENT_CHOICES: Mapping[Difficulty, tuple[tuple[int, ...], int]] = {
    Difficulty.EASY: ((10, 50, 100), 10),
    Difficulty.NORMAL: ((10, 20, 25, 50, 75), 20),
    Difficulty.GENIUS: ((5, 15, 30, 40, 60, 80), 40),
    Difficulty.QUANTUM: ((12, 35, 45, 65, 85, 95), 60),
}

_FALLBACK_RANGE: Range = (1, 9)


@dataclass(frozen=True)
class _Draft:
    prompt: str
    correct: int
    explanation: str
    hint: str
    spread: int = 5


def _draw(rng: random.Random, bounds: Range) -> int:
    low, high = bounds
    return rng.randint(low, high)


def _addition(difficulty: Difficulty, rng: random.Random) -> _Draft:
    first, second = OPERAND_RANGES[Category.ADDITION][difficulty]
    a, b = _draw(rng, first), _draw(rng, second)
    correct = a + b
    return _Draft(
        prompt=f"What is {a} + {b}?",
        correct=correct,
        explanation=f"{a} + {b} = {correct}",
        hint=f"Start at {a} and count up {b}.",
    )


def _subtraction(difficulty: Difficulty, rng: random.Random) -> _Draft:
    first, _ = OPERAND_RANGES[Category.SUBTRACTION][difficulty]
    a = _draw(rng, first)
    b = rng.randint(1, a)
    correct = a - b
    return _Draft(
        prompt=f"What is {a} - {b}?",
        correct=correct,
        explanation=f"{a} - {b} = {correct}",
        hint=f"Start at {a} and count back {b}.",
    )


def _multiplication(difficulty: Difficulty, rng: random.Random) -> _Draft:
    first, second = OPERAND_RANGES[Category.MULTIPLICATION][difficulty]
    a, b = _draw(rng, first), _draw(rng, second)
    correct = a * b
    return _Draft(
        prompt=f"What is {a} × {b}?",
        correct=correct,
        explanation=f"{a} × {b} = {correct}",
        hint=f"Add {a} to itself {b} times.",
        spread=10,
    )


def _division(difficulty: Difficulty, rng: random.Random) -> _Draft:
    quotient_range, divisor_range = OPERAND_RANGES[Category.DIVISION][
        difficulty
    ]
    quotient = _draw(rng, quotient_range)
    divisor = _draw(rng, divisor_range)
    dividend = quotient * divisor
    return _Draft(
        prompt=f"What is {dividend} ÷ {divisor}?",
        correct=quotient,
        explanation=f"{dividend} ÷ {divisor} = {quotient}",
        hint=f"How many groups of {divisor} make {dividend}?",
    )


def _algebra(difficulty: Difficulty, rng: random.Random) -> _Draft:
    coefficient_range, unknown_range = OPERAND_RANGES[Category.ALGEBRA][
        difficulty
    ]
    constant_range, _ = OPERAND_RANGES[Category.ADDITION][difficulty]
    a = _draw(rng, coefficient_range)
    x = _draw(rng, unknown_range)
    b = _draw(rng, constant_range)
    c = a * x + b
    return _Draft(
        prompt=f"Solve for x: {a} × x + {b} = {c}",
        correct=x,
        explanation=f"x = ({c} - {b}) ÷ {a} = {x}",
        hint=f"Subtract {b} from both sides, then divide by {a}.",
    )


def _percentages(difficulty: Difficulty, rng: random.Random) -> _Draft:
    percents, max_multiple = _PERCENT_CHOICES[difficulty]
    percent = rng.choice(percents)
    # Keep the whole a multiple of the smallest value that yields an integer.
    step = 100 // math.gcd(percent, 100)
    whole = step * rng.randint(1, max_multiple)
    correct = percent * whole // 100
    return _Draft(
        prompt=f"What is {percent}% of {whole}?",
        correct=correct,
        explanation=f"{percent}% of {whole} = {whole} × {percent} ÷ 100 "
        f"= {correct}",
        hint=f"Find 1% of {whole}, then multiply by {percent}.",
    )


def _patterns(difficulty: Difficulty, rng: random.Random) -> _Draft:
    start_range, step_range = OPERAND_RANGES[Category.PATTERNS][difficulty]
    start = _draw(rng, start_range)
    step = _draw(rng, step_range)
    terms = [start + step * offset for offset in range(4)]
    correct = start + step * 4
    shown = ", ".join(str(term) for term in terms)
    return _Draft(
        prompt=f"What comes next? {shown}, ?",
        correct=correct,
        explanation=f"Add {step} each time: {terms[-1]} + {step} = {correct}",
        hint="Look at the difference between neighbouring numbers.",
    )


_BUILDERS: Mapping[
    Category, Callable[[Difficulty, random.Random], _Draft]
] = {
    Category.ADDITION: _addition,
    Category.SUBTRACTION: _subtraction,
    Category.MULTIPLICATION: _multiplication,
    Category.DIVISION: _division,
    Category.ALGEBRA: _algebra,
    Category.PERCENTAGES: _percentages,
    Category.PATTERNS: _patterns,
}

SUPPORTED_CATEGORIES: tuple[Category, ...] = tuple(_BUILDERS)


def _finalize(
    draft: _Draft,
    *,
    category: Category,
    difficulty: Difficulty,
    rng: random.Random,
) -> Question:
    distractors = distractor_candidates(
        draft.correct, rng, spread=draft.spread
    )
    values = unique_option_values(draft.correct, distractors)
    options, correct_index = shuffle_options(values, str(draft.correct), rng)
    return Question(
        prompt=draft.prompt,
        options=options,
        correct_option_index=correct_index,
        category=category,
        difficulty=difficulty,
        explanation=draft.explanation,
        hint=draft.hint,
    )


class QuestionGenerator:
    """Build batches of multiple-choice arithmetic questions."""

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> None:
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both.")
        self._rng = rng if rng is not None else random.Random(seed)

    def generate(self, request: GenerationRequest) -> list[Question]:
        """Return exactly ``request.count`` questions for ``request``."""

        category = request.category
        if category not in _BUILDERS:
            logger.debug(
                "No builder for category; using addition",
                extra={"category": category.value},
            )
            category = Category.ADDITION
        questions = [
            self._generate_slot(category, request.difficulty, index)
            for index in range(request.count)
        ]
        logger.debug(
            "Generated question batch",
            extra={
                "category": category.value,
                "difficulty": request.difficulty.value,
                "count": len(questions),
            },
        )
        return questions

    def generate_one(
        self, category: Category, difficulty: Difficulty
    ) -> Question:
        """Build a single question, propagating any builder failure."""

        builder = _BUILDERS.get(category, _addition)
        draft = builder(difficulty, self._rng)
        return _finalize(
            draft,
            category=category if category in _BUILDERS else Category.ADDITION,
            difficulty=difficulty,
            rng=self._rng,
        )

    def fallback_question(self, difficulty: Difficulty) -> Question:
        """Return the trivial doubling question used for failed slots."""

        n = _draw(self._rng, _FALLBACK_RANGE)
        draft = _Draft(
            prompt=f"What is {n}+{n}?",
            correct=n + n,
            explanation=f"{n}+{n} = {n + n}",
            hint=f"Double {n}.",
        )
        return _finalize(
            draft,
            category=Category.ADDITION,
            difficulty=difficulty,
            rng=self._rng,
        )

    def _generate_slot(
        self, category: Category, difficulty: Difficulty, index: int
    ) -> Question:
        try:
            return self.generate_one(category, difficulty)
        except Exception:
            logger.warning(
                "Question slot failed; substituting fallback question",
                exc_info=True,
                extra={
                    "slot": index,
                    "category": category.value,
                    "difficulty": difficulty.value,
                },
            )
            return self.fallback_question(difficulty)

    def __call__(self, request: GenerationRequest) -> list[Question]:
        return self.generate(request)


def generate_questions(
    request: GenerationRequest, *, seed: Optional[int] = None
) -> list[Question]:
    """Generate a batch with a fresh generator, optionally seeded."""

    return QuestionGenerator(seed=seed).generate(request)
