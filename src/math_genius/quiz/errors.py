"""Exception taxonomy for question generation and quiz sessions."""

from __future__ import annotations

__all__ = [
    "QuizError",
    "GenerationError",
    "InvalidStateError",
    "ConfigurationError",
]


class QuizError(RuntimeError):
    """Base class for errors raised by the quiz core."""


class GenerationError(QuizError):
    """Raised when a question batch cannot be produced, even after fallback."""


class InvalidStateError(QuizError):
    """Raised when an operation is invoked in a phase that forbids it."""


class ConfigurationError(QuizError):
    """Raised when preferences or configuration choices fail validation."""
