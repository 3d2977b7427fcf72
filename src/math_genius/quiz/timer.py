"""Cancellable timer subscriptions for per-question countdowns.

The controller never sleeps. It asks a :class:`Ticker` for a subscription and
cancels it on every transition away from answering, so at most one countdown
is ever live. :class:`ManualTicker` advances a virtual clock on demand (tests
and synchronous hosts); :class:`ThreadingTicker` drives real time with daemon
``threading.Timer`` instances.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

__all__ = [
    "Callback",
    "Subscription",
    "Ticker",
    "ManualTicker",
    "ThreadingTicker",
]


Callback = Callable[[], None]


class Subscription:
    """Handle returned by a ticker; cancelling it is idempotent."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()


class Ticker(Protocol):
    def every(self, interval: float, callback: Callback) -> Subscription:
        ...

    def after(self, delay: float, callback: Callback) -> Subscription:
        ...


@dataclass
class _Scheduled:
    due: float
    order: int
    callback: Callback
    subscription: Subscription
    interval: Optional[float] = None


@dataclass
class ManualTicker:
    """Virtual-clock ticker advanced explicitly via :meth:`advance`."""

    now: float = 0.0
    _entries: list[_Scheduled] = field(default_factory=list)
    _counter: itertools.count = field(default_factory=itertools.count)

    def every(self, interval: float, callback: Callback) -> Subscription:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._schedule(interval, callback, interval=interval)

    def after(self, delay: float, callback: Callback) -> Subscription:
        return self._schedule(max(0.0, delay), callback)

    def pending(self) -> int:
        """Return the number of live (uncancelled) subscriptions."""

        self._prune()
        return len(self._entries)

    def advance(self, seconds: float = 1.0) -> int:
        """Move the clock forward, firing due callbacks in order.

        Callbacks may cancel or create subscriptions while the clock moves;
        new subscriptions fire within the same call when they fall due.
        Returns the number of callbacks fired.
        """

        target = self.now + seconds
        fired = 0
        while True:
            entry = self._next_due(target)
            if entry is None:
                break
            self.now = max(self.now, entry.due)
            if entry.interval is None:
                self._entries.remove(entry)
                entry.subscription.cancel()
            else:
                entry.due += entry.interval
            entry.callback()
            fired += 1
        self.now = target
        return fired

    def _schedule(
        self,
        delay: float,
        callback: Callback,
        *,
        interval: Optional[float] = None,
    ) -> Subscription:
        subscription = Subscription()
        self._entries.append(
            _Scheduled(
                due=self.now + delay,
                order=next(self._counter),
                callback=callback,
                subscription=subscription,
                interval=interval,
            )
        )
        return subscription

    def _prune(self) -> None:
        self._entries = [
            entry for entry in self._entries if not entry.subscription.cancelled
        ]

    def _next_due(self, target: float) -> Optional[_Scheduled]:
        self._prune()
        due = [entry for entry in self._entries if entry.due <= target]
        if not due:
            return None
        return min(due, key=lambda entry: (entry.due, entry.order))


class _ThreadedSubscription(Subscription):
    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    def _arm(self, delay: float, target: Callback) -> None:
        with self._lock:
            if self.cancelled:
                return
            timer = threading.Timer(delay, target)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        super().cancel()
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class ThreadingTicker:
    """Real-time ticker backed by daemon ``threading.Timer`` chains."""

    def every(self, interval: float, callback: Callback) -> Subscription:
        if interval <= 0:
            raise ValueError("interval must be positive")
        subscription = _ThreadedSubscription()

        def _fire() -> None:
            if subscription.cancelled:
                return
            subscription._arm(interval, _fire)
            callback()

        subscription._arm(interval, _fire)
        return subscription

    def after(self, delay: float, callback: Callback) -> Subscription:
        subscription = _ThreadedSubscription()

        def _fire() -> None:
            if subscription.cancelled:
                return
            subscription.cancel()
            callback()

        subscription._arm(max(0.0, delay), _fire)
        return subscription
