"""Discrete controller events and the listener registry.

Hosts map these events to rendering, sound or haptics. Listeners are plain
callables; a listener that raises is logged and skipped so feedback effects
can never change the outcome of a session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

__all__ = [
    "EventKind",
    "Achievement",
    "GameEvent",
    "Listener",
    "EventBus",
]


logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    STATE_CHANGED = "state_changed"
    TICK = "tick"
    TIME_WARNING = "time_warning"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    STREAK = "streak"
    ACHIEVEMENT = "achievement"
    GAME_COMPLETE = "game_complete"


class Achievement(str, Enum):
    """Milestones unlocked at most once per session."""

    FIRST_SUCCESS = "first_success"
    STREAK_MASTER = "streak_master"
    ON_FIRE = "on_fire"
    PERFECT_SCORE = "perfect_score"

    @property
    def title(self) -> str:
        return _ACHIEVEMENT_TITLES[self]


_ACHIEVEMENT_TITLES = {
    Achievement.FIRST_SUCCESS: "First Success!",
    Achievement.STREAK_MASTER: "Streak Master!",
    Achievement.ON_FIRE: "On Fire!",
    Achievement.PERFECT_SCORE: "Perfect Score!",
}


@dataclass(frozen=True)
class GameEvent:
    """A single notification emitted by the controller."""

    kind: EventKind
    payload: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


Listener = Callable[[GameEvent], None]


class EventBus:
    """Ordered fan-out of :class:`GameEvent` objects to listeners."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit(self, kind: EventKind, **payload: Any) -> GameEvent:
        event = GameEvent(kind, dict(payload))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener failed while handling event",
                    extra={"event": kind.value},
                )
        return event
