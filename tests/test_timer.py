from __future__ import annotations

import threading

import pytest

from math_genius.quiz.timer import ManualTicker, ThreadingTicker


def test_every_fires_once_per_interval():
    ticker = ManualTicker()
    fired: list[float] = []

    ticker.every(1.0, lambda: fired.append(ticker.now))

    assert ticker.advance(3.5) == 3
    assert fired == [1.0, 2.0, 3.0]
    assert ticker.now == 3.5


def test_cancelled_subscription_never_fires_again():
    ticker = ManualTicker()
    fired: list[int] = []
    subscription = ticker.every(1.0, lambda: fired.append(1))

    ticker.advance(2)
    subscription.cancel()
    subscription.cancel()
    ticker.advance(5)

    assert len(fired) == 2
    assert subscription.cancelled
    assert ticker.pending() == 0


def test_after_fires_once_and_releases_subscription():
    ticker = ManualTicker()
    fired: list[int] = []

    subscription = ticker.after(0.8, lambda: fired.append(1))
    ticker.advance(0.5)
    assert fired == []
    ticker.advance(0.5)
    ticker.advance(5)

    assert fired == [1]
    assert subscription.cancelled


def test_callbacks_may_reschedule_during_advance():
    ticker = ManualTicker()
    order: list[str] = []

    def _first() -> None:
        order.append("first")
        ticker.after(1.0, lambda: order.append("second"))

    ticker.after(1.0, _first)
    ticker.advance(3)

    assert order == ["first", "second"]


def test_callback_can_cancel_its_own_interval():
    ticker = ManualTicker()
    fired: list[int] = []
    holder = {}

    def _tick() -> None:
        fired.append(1)
        if len(fired) == 2:
            holder["sub"].cancel()

    holder["sub"] = ticker.every(1.0, _tick)
    ticker.advance(10)

    assert len(fired) == 2


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        ManualTicker().every(0, lambda: None)
    with pytest.raises(ValueError):
        ThreadingTicker().every(-1, lambda: None)


def test_threading_ticker_after_runs_callback():
    done = threading.Event()

    ThreadingTicker().after(0.01, done.set)

    assert done.wait(2.0)


def test_threading_ticker_cancel_prevents_callback():
    fired = threading.Event()

    subscription = ThreadingTicker().after(0.2, fired.set)
    subscription.cancel()

    assert not fired.wait(0.4)


def test_threading_ticker_every_repeats_until_cancelled():
    ticks: list[int] = []
    reached = threading.Event()

    def _tick() -> None:
        ticks.append(1)
        if len(ticks) >= 3:
            reached.set()

    subscription = ThreadingTicker().every(0.01, _tick)
    try:
        assert reached.wait(2.0)
    finally:
        subscription.cancel()
