"""Timed multiple-choice arithmetic quizzes."""

from .quiz import (
    Category,
    Difficulty,
    GenerationRequest,
    Question,
    QuestionGenerator,
    QuizSessionController,
    generate_questions,
)

__all__ = [
    "Category",
    "Difficulty",
    "GenerationRequest",
    "Question",
    "QuestionGenerator",
    "QuizSessionController",
    "generate_questions",
]
