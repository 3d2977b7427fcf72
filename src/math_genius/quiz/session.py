"""Quiz session state and the summary produced when a session completes.

A :class:`QuizSession` is owned by exactly one controller for its whole
lifetime. Its question sequence never changes; scoring fields only move
forward. Restarting a game builds a new session instead of resetting this one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .events import Achievement
from .models import DEFAULT_TIME_LIMIT_SECONDS, Question, clamp_time_limit

__all__ = [
    "TIMEOUT_ANSWER",
    "ON_FIRE_STREAK",
    "AnswerRecord",
    "QuizResults",
    "QuizSession",
]


TIMEOUT_ANSWER = -1
ON_FIRE_STREAK = 5


@dataclass(frozen=True)
class AnswerRecord:
    """The single scored submission for one question."""

    question_index: int
    selected_index: int
    correct_index: int
    is_correct: bool
    timed_out: bool
    response_time_ms: Optional[float] = None


@dataclass(frozen=True)
class QuizResults:
    """Immutable end-of-game summary."""

    total_questions: int
    score: int
    accuracy: float
    best_streak: int
    answer_history: tuple[bool, ...]
    average_response_time_ms: Optional[float]
    timeouts: int = 0
    achievements: tuple[Achievement, ...] = ()

    @property
    def is_perfect(self) -> bool:
        return self.total_questions > 0 and self.score == self.total_questions


@dataclass
class QuizSession:
    questions: tuple[Question, ...]
    time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS
    current_index: int = 0
    score: int = 0
    answer_history: list[bool] = field(default_factory=list)
    answers: list[AnswerRecord] = field(default_factory=list)
    streak: int = 0
    best_streak: int = 0
    time_remaining_seconds: int = 0
    submitted_answer_index: Optional[int] = None
    achievements: list[Achievement] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.questions = tuple(self.questions)
        self.time_limit_seconds = clamp_time_limit(self.time_limit_seconds)
        if not self.time_remaining_seconds:
            self.time_remaining_seconds = self.time_limit_seconds

    @classmethod
    def create(
        cls,
        questions: Sequence[Question],
        *,
        time_limit_seconds: int = DEFAULT_TIME_LIMIT_SECONDS,
    ) -> "QuizSession":
        return cls(tuple(questions), time_limit_seconds=time_limit_seconds)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.current_index >= len(self.questions):
            return None
        return self.questions[self.current_index]

    @property
    def is_answered(self) -> bool:
        return self.submitted_answer_index is not None

    @property
    def is_last_question(self) -> bool:
        return self.current_index + 1 >= len(self.questions)

    @property
    def is_complete(self) -> bool:
        return self.current_index >= len(self.questions)

    @property
    def accuracy(self) -> float:
        """Percentage of all questions answered correctly."""

        if not self.questions:
            return 0.0
        return self.score / len(self.questions) * 100

    @property
    def average_response_time_ms(self) -> Optional[float]:
        timings = [
            record.response_time_ms
            for record in self.answers
            if record.response_time_ms is not None
        ]
        if not timings:
            return None
        return sum(timings) / len(timings)

    @property
    def is_on_fire(self) -> bool:
        return self.streak >= ON_FIRE_STREAK

    @property
    def last_answer(self) -> Optional[AnswerRecord]:
        return self.answers[-1] if self.answers else None

    def record_answer(
        self,
        selected_index: int,
        *,
        response_time_ms: Optional[float] = None,
        track_streaks: bool = True,
    ) -> AnswerRecord:
        """Score ``selected_index`` for the current question.

        Callers guarantee this runs at most once per question; the controller
        returns the stored record for duplicate submissions instead.
        """

        question = self.current_question
        if question is None:
            raise IndexError("Session has no current question to answer.")
        timed_out = selected_index == TIMEOUT_ANSWER
        is_correct = not timed_out and question.is_correct(selected_index)
        record = AnswerRecord(
            question_index=self.current_index,
            selected_index=selected_index,
            correct_index=question.correct_option_index,
            is_correct=is_correct,
            timed_out=timed_out,
            response_time_ms=response_time_ms,
        )
        self.submitted_answer_index = selected_index
        self.answers.append(record)
        self.answer_history.append(is_correct)
        if is_correct:
            self.score += 1
        if track_streaks:
            if is_correct:
                self.streak += 1
                self.best_streak = max(self.best_streak, self.streak)
            else:
                self.streak = 0
        return record

    def move_next(self) -> None:
        """Advance to the next question and reset its countdown."""

        self.current_index += 1
        self.submitted_answer_index = None
        self.time_remaining_seconds = self.time_limit_seconds

    def unlock(self, achievement: Achievement) -> bool:
        if achievement in self.achievements:
            return False
        self.achievements.append(achievement)
        return True

    def results(self) -> QuizResults:
        return QuizResults(
            total_questions=len(self.questions),
            score=self.score,
            accuracy=self.accuracy,
            best_streak=self.best_streak,
            answer_history=tuple(self.answer_history),
            average_response_time_ms=self.average_response_time_ms,
            timeouts=sum(1 for record in self.answers if record.timed_out),
            achievements=tuple(self.achievements),
        )
