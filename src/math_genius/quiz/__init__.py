from .controller import (
    ConfigStep,
    ConfigurationDraft,
    LoadTicket,
    Phase,
    QuizSessionController,
    SessionFeatures,
)
from .errors import (
    ConfigurationError,
    GenerationError,
    InvalidStateError,
    QuizError,
)
from .events import Achievement, EventBus, EventKind, GameEvent
from .generator import (
    SUPPORTED_CATEGORIES,
    QuestionGenerator,
    generate_questions,
)
from .models import (
    Category,
    Difficulty,
    GenerationRequest,
    Question,
    SessionSettings,
)
from .session import AnswerRecord, QuizResults, QuizSession
from .timer import ManualTicker, Subscription, ThreadingTicker, Ticker

__all__ = [
    "ConfigStep",
    "ConfigurationDraft",
    "LoadTicket",
    "Phase",
    "QuizSessionController",
    "SessionFeatures",
    "ConfigurationError",
    "GenerationError",
    "InvalidStateError",
    "QuizError",
    "Achievement",
    "EventBus",
    "EventKind",
    "GameEvent",
    "SUPPORTED_CATEGORIES",
    "QuestionGenerator",
    "generate_questions",
    "Category",
    "Difficulty",
    "GenerationRequest",
    "Question",
    "SessionSettings",
    "AnswerRecord",
    "QuizResults",
    "QuizSession",
    "ManualTicker",
    "Subscription",
    "ThreadingTicker",
    "Ticker",
]
