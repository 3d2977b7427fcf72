"""Quiz session controller: configuration, loading, answering and results.

The controller is the only writer of a :class:`QuizSession`. Hosts drive it
with plain method calls and observe it through :meth:`subscribe`. Phases move
strictly forward::

    AWAITING_FIRST_INPUT -> CONFIGURING -> LOADING -> ANSWERING
    ANSWERING -> FEEDBACK -> ANSWERING | RESULTS

``restart`` discards the session and returns to ``AWAITING_FIRST_INPUT``.

The per-question countdown is a ticker subscription. Every transition out of
``ANSWERING`` cancels it before anything else happens, and callbacks from a
superseded subscription are dropped, so two countdowns can never run at once.
Question loads carry a ticket; a load that resolves after a restart (or after
a newer load started) is ignored.

Events raised during a transition are queued and delivered once the
outermost transition has finished, in the order they were raised. A listener
that calls back into the controller therefore always sees the state after
the whole transition, and its own events follow the ones already queued.
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterator,
    Optional,
    Sequence,
    Union,
)

from .errors import ConfigurationError, GenerationError, InvalidStateError
from .events import Achievement, EventBus, EventKind, Listener
from .generator import QuestionGenerator
from .models import (
    DEFAULT_TIME_LIMIT_SECONDS,
    OPTION_COUNT,
    Category,
    Difficulty,
    GenerationRequest,
    Question,
    SessionSettings,
    clamp_question_count,
    clamp_time_limit,
)
from .session import TIMEOUT_ANSWER, AnswerRecord, QuizResults, QuizSession
from .timer import ManualTicker, Subscription, Ticker

__all__ = [
    "Phase",
    "ConfigStep",
    "ConfigurationDraft",
    "SessionFeatures",
    "LoadTicket",
    "QuestionSource",
    "AsyncQuestionSource",
    "QuizSessionController",
    "FALLBACK_CATEGORY",
    "FALLBACK_DIFFICULTY",
]


logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = Category.ADDITION
FALLBACK_DIFFICULTY = Difficulty.NORMAL

QuestionSource = Callable[[GenerationRequest], Sequence[Question]]
AsyncQuestionSource = Callable[
    [GenerationRequest],
    Union[Awaitable[Sequence[Question]], Sequence[Question]],
]


class Phase(str, Enum):
    AWAITING_FIRST_INPUT = "awaiting_first_input"
    CONFIGURING = "configuring"
    LOADING = "loading"
    ANSWERING = "answering"
    FEEDBACK = "feedback"
    RESULTS = "results"


class ConfigStep(str, Enum):
    """Configuration sub-steps, in the only order they may be completed."""

    DIFFICULTY = "difficulty"
    TOPIC = "topic"
    QUESTION_COUNT = "question_count"
    TIME_LIMIT = "time_limit"
    READY = "ready"


_STEP_ORDER = tuple(ConfigStep)


@dataclass(frozen=True)
class ConfigurationDraft:
    """Selections gathered during ``CONFIGURING``."""

    difficulty: Optional[Difficulty] = None
    category: Optional[Category] = None
    question_count: Optional[int] = None
    time_limit_seconds: Optional[int] = None

    def to_settings(self) -> SessionSettings:
        if (
            self.difficulty is None
            or self.category is None
            or self.question_count is None
            or self.time_limit_seconds is None
        ):
            raise InvalidStateError("Configuration is incomplete.")
        return SessionSettings(
            GenerationRequest(
                category=self.category,
                difficulty=self.difficulty,
                count=self.question_count,
            ),
            time_limit_seconds=self.time_limit_seconds,
        )


@dataclass(frozen=True)
class SessionFeatures:
    """Behaviours a host may switch on or off per run."""

    track_streaks: bool = True
    track_response_time: bool = True
    auto_advance: bool = False
    feedback_delay_seconds: float = 0.8
    time_warning_seconds: int = 10
    streak_event_threshold: int = 3


@dataclass(frozen=True)
class LoadTicket:
    """Identifies one question load; stale tickets are ignored."""

    token: int
    settings: SessionSettings


class QuizSessionController:
    """Finite state machine driving a single player's quiz."""

    def __init__(
        self,
        *,
        source: Optional[QuestionSource] = None,
        ticker: Optional[Ticker] = None,
        features: Optional[SessionFeatures] = None,
        clock: Callable[[], float] = time.monotonic,
        default_time_limit: int = DEFAULT_TIME_LIMIT_SECONDS,
    ) -> None:
        self._source: QuestionSource = source or QuestionGenerator()
        self._ticker: Ticker = ticker if ticker is not None else ManualTicker()
        self._features = features or SessionFeatures()
        self._clock = clock
        self._default_time_limit = clamp_time_limit(default_time_limit)
        self._events = EventBus()
        self._lock = threading.RLock()
        self._pending: deque[tuple[EventKind, dict[str, Any]]] = deque()
        self._depth = 0
        self._flushing = False

        self._phase = Phase.AWAITING_FIRST_INPUT
        self._step = ConfigStep.DIFFICULTY
        self._draft = ConfigurationDraft()
        self._session: Optional[QuizSession] = None

        self._load_token = 0
        self._resume_phase = Phase.AWAITING_FIRST_INPUT
        self._timer: Optional[Subscription] = None
        self._timer_token = 0
        self._advance_timer: Optional[Subscription] = None
        self._advance_token = 0
        self._question_started_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Observation

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def config_step(self) -> ConfigStep:
        return self._step

    @property
    def draft(self) -> ConfigurationDraft:
        return self._draft

    @property
    def features(self) -> SessionFeatures:
        return self._features

    @property
    def session(self) -> Optional[QuizSession]:
        return self._session

    @property
    def current_question(self) -> Optional[Question]:
        if self._session is None:
            return None
        return self._session.current_question

    @property
    def time_remaining(self) -> Optional[int]:
        if self._session is None:
            return None
        return self._session.time_remaining_seconds

    @property
    def has_active_timer(self) -> bool:
        return self._timer is not None and not self._timer.cancelled

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for :class:`GameEvent` notifications."""

        return self._events.subscribe(listener)

    # ------------------------------------------------------------------
    # Configuration

    def select_difficulty(self, difficulty: Union[Difficulty, str]) -> None:
        with self._transition():
            self._require_step(ConfigStep.DIFFICULTY)
            value = _parse_choice(Difficulty, difficulty)
            self._draft = replace(self._draft, difficulty=value)
            self._complete_step()

    def select_topic(self, category: Union[Category, str]) -> None:
        with self._transition():
            self._require_step(ConfigStep.TOPIC)
            value = _parse_choice(Category, category)
            self._draft = replace(self._draft, category=value)
            self._complete_step()

    def select_question_count(self, count: int) -> None:
        with self._transition():
            self._require_step(ConfigStep.QUESTION_COUNT)
            self._draft = replace(
                self._draft, question_count=clamp_question_count(count)
            )
            self._complete_step()

    def select_time_limit(self, seconds: int) -> None:
        with self._transition():
            self._require_step(ConfigStep.TIME_LIMIT)
            self._draft = replace(
                self._draft, time_limit_seconds=clamp_time_limit(seconds)
            )
            self._complete_step()

    # ------------------------------------------------------------------
    # Loading

    def start_session(
        self,
        request: Optional[GenerationRequest] = None,
        *,
        time_limit: Optional[int] = None,
    ) -> QuizSession:
        """Generate questions and enter ``ANSWERING`` on the first one.

        Without ``request`` the completed configuration is used. A failing or
        empty generation is retried once with the fallback request before
        :class:`GenerationError` is raised.
        """

        ticket = self.begin_loading(request, time_limit=time_limit)
        try:
            questions = self._generate_with_fallback(ticket.settings.request)
        except GenerationError as exc:
            self.fail_loading(ticket, exc)
            raise
        session = self.complete_loading(ticket, questions)
        if session is None:  # pragma: no cover - only reachable via listeners
            raise GenerationError("Question load was superseded.")
        return session

    async def start_session_async(
        self,
        request: Optional[GenerationRequest] = None,
        fetch: Optional[AsyncQuestionSource] = None,
        *,
        time_limit: Optional[int] = None,
    ) -> Optional[QuizSession]:
        """Load questions from a possibly slow ``fetch`` callable.

        Returns ``None`` when the load was superseded by a restart or a newer
        load while ``fetch`` was pending.
        """

        ticket = self.begin_loading(request, time_limit=time_limit)
        fetcher = fetch or self._source
        try:
            questions = await self._fetch_with_fallback(
                fetcher, ticket.settings.request
            )
        except GenerationError as exc:
            if not self.fail_loading(ticket, exc):
                return None
            raise
        return self.complete_loading(ticket, questions)

    def begin_loading(
        self,
        request: Optional[GenerationRequest] = None,
        *,
        time_limit: Optional[int] = None,
    ) -> LoadTicket:
        """Enter ``LOADING`` and return the ticket for this load."""

        with self._transition():
            if self._phase not in (
                Phase.AWAITING_FIRST_INPUT,
                Phase.CONFIGURING,
                Phase.LOADING,
            ):
                raise InvalidStateError(
                    f"Cannot start a session while {self._phase.value}."
                )
            settings = self._resolve_settings(request, time_limit)
            if self._phase is not Phase.LOADING:
                self._resume_phase = self._phase
            self._cancel_timers()
            self._load_token += 1
            ticket = LoadTicket(token=self._load_token, settings=settings)
            self._set_phase(Phase.LOADING)
            return ticket

    def complete_loading(
        self, ticket: LoadTicket, questions: Sequence[Question]
    ) -> Optional[QuizSession]:
        """Install ``questions`` as a new session unless ``ticket`` is stale."""

        with self._transition():
            if not self._is_current(ticket):
                logger.debug(
                    "Ignoring stale question load",
                    extra={"ticket": ticket.token},
                )
                return None
            if not questions:
                error = GenerationError("Question source returned no questions.")
                self.fail_loading(ticket, error)
                raise error
            session = QuizSession.create(
                questions,
                time_limit_seconds=ticket.settings.time_limit_seconds,
            )
            self._session = session
            request = ticket.settings.request
            logger.info(
                "Quiz session started",
                extra={
                    "category": request.category.value,
                    "difficulty": request.difficulty.value,
                    "questions": session.total_questions,
                    "time_limit": session.time_limit_seconds,
                },
            )
            self._begin_question()
            self._set_phase(Phase.ANSWERING)
            return session

    def fail_loading(self, ticket: LoadTicket, error: Exception) -> bool:
        """Abort a load, returning to the phase it started from.

        Returns ``False`` (and changes nothing) when ``ticket`` is stale.
        """

        with self._transition():
            if not self._is_current(ticket):
                return False
            logger.warning(
                "Question load failed",
                extra={"ticket": ticket.token, "error": str(error)},
            )
            self._set_phase(self._resume_phase, error=str(error))
            return True

    # ------------------------------------------------------------------
    # Answering

    def submit_answer(self, option_index: int) -> AnswerRecord:
        """Score ``option_index`` (``-1`` for a timeout) for this question.

        Only the first submission per question is scored; later calls return
        that same record and change nothing.
        """

        with self._transition():
            session = self._session
            if self._phase is Phase.FEEDBACK and session is not None:
                record = session.last_answer
                if record is not None:
                    return record
            if self._phase is not Phase.ANSWERING or session is None:
                raise InvalidStateError(
                    f"Cannot submit an answer while {self._phase.value}."
                )
            if option_index != TIMEOUT_ANSWER and not (
                0 <= option_index < OPTION_COUNT
            ):
                raise ValueError(
                    f"Option index must be -1 or 0-{OPTION_COUNT - 1}, "
                    f"got {option_index}."
                )

            self._cancel_timer()
            response_time_ms = None
            if (
                self._features.track_response_time
                and self._question_started_at is not None
            ):
                elapsed = self._clock() - self._question_started_at
                response_time_ms = max(0.0, elapsed * 1000)
            record = session.record_answer(
                option_index,
                response_time_ms=response_time_ms,
                track_streaks=self._features.track_streaks,
            )
            self._set_phase(Phase.FEEDBACK)
            self._emit_answer_events(session, record)
            if self._features.auto_advance:
                self._schedule_advance()
            return record

    def tick(self) -> None:
        """Consume one second of the current countdown.

        At zero the question is submitted as timed out.
        """

        with self._transition():
            session = self._session
            if self._phase is not Phase.ANSWERING or session is None:
                return
            session.time_remaining_seconds = max(
                0, session.time_remaining_seconds - 1
            )
            remaining = session.time_remaining_seconds
            self._emit(EventKind.TICK, remaining=remaining)
            warning = self._features.time_warning_seconds
            if (
                remaining == warning
                and session.time_limit_seconds > warning > 0
            ):
                self._emit(EventKind.TIME_WARNING, remaining=remaining)
            if remaining == 0:
                self.submit_answer(TIMEOUT_ANSWER)

    def advance(self) -> None:
        """Leave ``FEEDBACK`` for the next question or the results."""

        with self._transition():
            session = self._session
            if self._phase is not Phase.FEEDBACK or session is None:
                raise InvalidStateError(
                    f"Cannot advance while {self._phase.value}."
                )
            self._cancel_advance()
            last = session.is_last_question
            session.move_next()
            if not last:
                self._begin_question()
                self._set_phase(Phase.ANSWERING)
                return
            self._finish(session)

    def results(self) -> QuizResults:
        with self._lock:
            if self._phase is not Phase.RESULTS or self._session is None:
                raise InvalidStateError(
                    f"Results are unavailable while {self._phase.value}."
                )
            return self._session.results()

    # ------------------------------------------------------------------
    # Lifecycle

    def restart(
        self,
        request: Optional[GenerationRequest] = None,
        *,
        time_limit: Optional[int] = None,
    ) -> Optional[QuizSession]:
        """Discard the current session and return to the first input.

        With ``request`` a brand-new session is started immediately.
        """

        with self._transition():
            self._cancel_timers()
            self._load_token += 1
            self._session = None
            self._draft = ConfigurationDraft()
            self._step = ConfigStep.DIFFICULTY
            self._resume_phase = Phase.AWAITING_FIRST_INPUT
            self._set_phase(Phase.AWAITING_FIRST_INPUT)
        if request is None:
            return None
        return self.start_session(request, time_limit=time_limit)

    def close(self) -> None:
        """Cancel timers and pending loads; the host is going away."""

        with self._transition():
            self._cancel_timers()
            self._load_token += 1

    # ------------------------------------------------------------------
    # Internals

    def _require_step(self, step: ConfigStep) -> None:
        allowed = {Phase.CONFIGURING}
        if step is ConfigStep.DIFFICULTY:
            allowed.add(Phase.AWAITING_FIRST_INPUT)
        if self._phase not in allowed:
            raise InvalidStateError(
                f"Cannot select {step.value} while {self._phase.value}."
            )
        if self._step is not step:
            raise InvalidStateError(
                f"Expected {self._step.value} selection, not {step.value}."
            )

    def _complete_step(self) -> None:
        self._step = _STEP_ORDER[_STEP_ORDER.index(self._step) + 1]
        if self._phase is Phase.CONFIGURING:
            self._emit(
                EventKind.STATE_CHANGED,
                phase=self._phase,
                step=self._step,
            )
        else:
            self._set_phase(Phase.CONFIGURING)

    def _resolve_settings(
        self,
        request: Optional[GenerationRequest],
        time_limit: Optional[int],
    ) -> SessionSettings:
        if request is None:
            if self._step is not ConfigStep.READY:
                raise InvalidStateError(
                    "Configuration is incomplete; next step is "
                    f"{self._step.value}."
                )
            settings = self._draft.to_settings()
            if time_limit is not None:
                settings = replace(settings, time_limit_seconds=time_limit)
            return settings
        if time_limit is None:
            time_limit = (
                self._draft.time_limit_seconds or self._default_time_limit
            )
        return SessionSettings(request, time_limit_seconds=time_limit)

    def _generate_with_fallback(
        self, request: GenerationRequest
    ) -> list[Question]:
        try:
            questions = list(self._source(request))
        except Exception:
            logger.warning(
                "Question generation failed; retrying with fallback request",
                exc_info=True,
            )
            questions = []
        if questions:
            return questions
        fallback = _fallback_request(request)
        try:
            questions = list(self._source(fallback))
        except Exception as exc:
            raise GenerationError(
                "Unable to generate questions, even with the fallback request."
            ) from exc
        if not questions:
            raise GenerationError("Question generation produced no questions.")
        return questions

    async def _fetch_with_fallback(
        self, fetch: AsyncQuestionSource, request: GenerationRequest
    ) -> list[Question]:
        try:
            questions = list(await _resolve(fetch(request)))
        except Exception:
            logger.warning(
                "Question fetch failed; retrying with fallback request",
                exc_info=True,
            )
            questions = []
        if questions:
            return questions
        try:
            questions = list(await _resolve(fetch(_fallback_request(request))))
        except Exception as exc:
            raise GenerationError(
                "Unable to fetch questions, even with the fallback request."
            ) from exc
        if not questions:
            raise GenerationError("Question fetch produced no questions.")
        return questions

    def _is_current(self, ticket: LoadTicket) -> bool:
        return (
            ticket.token == self._load_token and self._phase is Phase.LOADING
        )

    @contextmanager
    def _transition(self) -> Iterator[None]:
        with self._lock:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._flush_events()

    def _emit(self, kind: EventKind, **payload: Any) -> None:
        self._pending.append((kind, payload))

    def _flush_events(self) -> None:
        if self._flushing:
            return
        self._flushing = True
        try:
            while self._pending:
                kind, payload = self._pending.popleft()
                self._events.emit(kind, **payload)
        finally:
            self._flushing = False

    def _set_phase(self, phase: Phase, **payload: object) -> None:
        self._phase = phase
        self._emit(
            EventKind.STATE_CHANGED,
            phase=phase,
            step=self._step,
            **payload,
        )

    def _begin_question(self) -> None:
        self._question_started_at = self._clock()
        self._start_timer()

    def _start_timer(self) -> None:
        self._cancel_timer()
        self._timer_token += 1
        token = self._timer_token

        def _on_tick() -> None:
            with self._lock:
                if token != self._timer_token:
                    return
                self.tick()

        self._timer = self._ticker.every(1.0, _on_tick)

    def _cancel_timer(self) -> None:
        self._timer_token += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_advance(self) -> None:
        self._cancel_advance()
        self._advance_token += 1
        token = self._advance_token

        def _on_delay() -> None:
            with self._lock:
                if token != self._advance_token:
                    return
                if self._phase is Phase.FEEDBACK:
                    self.advance()

        self._advance_timer = self._ticker.after(
            self._features.feedback_delay_seconds, _on_delay
        )

    def _cancel_advance(self) -> None:
        self._advance_token += 1
        if self._advance_timer is not None:
            self._advance_timer.cancel()
            self._advance_timer = None

    def _cancel_timers(self) -> None:
        self._cancel_timer()
        self._cancel_advance()

    def _emit_answer_events(
        self, session: QuizSession, record: AnswerRecord
    ) -> None:
        kind = EventKind.CORRECT if record.is_correct else EventKind.INCORRECT
        self._emit(
            kind,
            record=record,
            score=session.score,
            streak=session.streak,
        )
        if not record.is_correct:
            return
        if session.score == 1 and session.unlock(Achievement.FIRST_SUCCESS):
            self._emit(
                EventKind.ACHIEVEMENT, achievement=Achievement.FIRST_SUCCESS
            )
        if not self._features.track_streaks:
            return
        threshold = self._features.streak_event_threshold
        if threshold > 0 and session.streak >= threshold:
            self._emit(
                EventKind.STREAK,
                streak=session.streak,
                on_fire=session.is_on_fire,
            )
        milestones = {5: Achievement.STREAK_MASTER, 10: Achievement.ON_FIRE}
        achievement = milestones.get(session.streak)
        if achievement is not None and session.unlock(achievement):
            self._emit(EventKind.ACHIEVEMENT, achievement=achievement)

    def _finish(self, session: QuizSession) -> None:
        self._cancel_timers()
        if session.score == session.total_questions and session.unlock(
            Achievement.PERFECT_SCORE
        ):
            self._emit(
                EventKind.ACHIEVEMENT, achievement=Achievement.PERFECT_SCORE
            )
        self._set_phase(Phase.RESULTS)
        results = session.results()
        logger.info(
            "Quiz session complete",
            extra={
                "score": results.score,
                "questions": results.total_questions,
                "accuracy": results.accuracy,
                "best_streak": results.best_streak,
                "average_response_ms": results.average_response_time_ms,
            },
        )
        self._emit(
            EventKind.GAME_COMPLETE,
            accuracy=results.accuracy,
            results=results,
        )


def _fallback_request(request: GenerationRequest) -> GenerationRequest:
    return GenerationRequest(
        category=FALLBACK_CATEGORY,
        difficulty=FALLBACK_DIFFICULTY,
        count=request.count,
    )


def _parse_choice(enum_cls, value):
    try:
        return enum_cls.parse(value)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


async def _resolve(result):
    if inspect.isawaitable(result):
        return await result
    return result
