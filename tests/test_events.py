from __future__ import annotations

from math_genius.quiz.events import (
    Achievement,
    EventBus,
    EventKind,
    GameEvent,
)


def test_emit_delivers_in_subscription_order():
    bus = EventBus()
    seen: list[tuple[str, EventKind]] = []
    bus.subscribe(lambda event: seen.append(("a", event.kind)))
    bus.subscribe(lambda event: seen.append(("b", event.kind)))

    event = bus.emit(EventKind.TICK, remaining=4)

    assert seen == [("a", EventKind.TICK), ("b", EventKind.TICK)]
    assert event.get("remaining") == 4
    assert event.get("missing", "default") == "default"


def test_unsubscribe_removes_listener():
    bus = EventBus()
    seen: list[GameEvent] = []
    unsubscribe = bus.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    bus.emit(EventKind.CORRECT)

    assert seen == []
    assert len(bus) == 0


def test_failing_listener_is_logged_and_skipped(caplog):
    bus = EventBus()
    seen: list[GameEvent] = []

    def _broken(event: GameEvent) -> None:
        raise RuntimeError("speaker unplugged")

    bus.subscribe(_broken)
    bus.subscribe(seen.append)

    with caplog.at_level("ERROR", logger="math_genius.quiz.events"):
        bus.emit(EventKind.INCORRECT)

    assert len(seen) == 1
    assert "Listener failed" in caplog.text


def test_achievement_titles():
    assert Achievement.PERFECT_SCORE.title == "Perfect Score!"
    assert Achievement.FIRST_SUCCESS.title == "First Success!"
