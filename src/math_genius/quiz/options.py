"""Answer option construction: distractors, padding and shuffling."""

from __future__ import annotations

import random
from typing import Sequence

from .models import OPTION_COUNT

__all__ = [
    "PAD_OFFSET",
    "distractor_candidates",
    "unique_option_values",
    "shuffle_options",
]


PAD_OFFSET = 10


def distractor_candidates(
    correct: int, rng: random.Random, *, spread: int = 5
) -> list[int]:
    """Return three near-miss values around ``correct``.

    The offsets are ``+k``, ``-k`` and ``+2k`` for one small ``k`` drawn
    from ``[1, spread]``. :func:`unique_option_values` resolves collisions
    with ``correct`` and pads the set.
    """

    spread = max(1, int(spread))
    k = rng.randint(1, spread)
    return [correct + k, correct - k, correct + 2 * k]


def unique_option_values(correct: int, distractors: Sequence[int]) -> list[int]:
    """Deduplicate ``distractors`` and pad until four unique values exist.

    ``correct`` is always the first entry. Padding uses
    ``correct + n + PAD_OFFSET`` for increasing ``n``.
    """

    values = [correct]
    for candidate in distractors:
        if candidate not in values:
            values.append(candidate)
        if len(values) == OPTION_COUNT:
            return values
    n = 1
    while len(values) < OPTION_COUNT:
        candidate = correct + n + PAD_OFFSET
        if candidate not in values:
            values.append(candidate)
        n += 1
    return values


def shuffle_options(
    values: Sequence[object], correct_text: str, rng: random.Random
) -> tuple[tuple[str, ...], int]:
    """Shuffle option values once and locate ``correct_text`` afterwards.

    The correct index is recovered by exact string match against the shuffled
    options, never recomputed from operands.
    """

    options = [str(value) for value in values]
    rng.shuffle(options)
    try:
        index = options.index(correct_text)
    except ValueError as exc:
        raise ValueError(
            f"Correct answer '{correct_text}' missing from options {options}."
        ) from exc
    return tuple(options), index
