"""Per-key event counts over a sliding time window."""

from __future__ import annotations

import time
from collections import deque


class SlidingWindow:
    """Count events per key within the last *window* seconds.

    Used to throttle clients that keep failing authorization. Keys with no
    events left in the window are dropped on the next sweep, so memory stays
    proportional to the number of recently active keys.
    """

    def __init__(self, window: float = 60.0, sweep_interval: float = 60.0) -> None:
        self.window = window
        self._events: dict[str, deque[float]] = {}
        self._sweep_interval = sweep_interval
        self._last_sweep = time.monotonic()

    def record(self, key: str) -> None:
        now = time.monotonic()
        self._sweep(now)
        self._events.setdefault(key, deque()).append(now)

    def count(self, key: str) -> int:
        now = time.monotonic()
        self._sweep(now)
        events = self._events.get(key)
        if not events:
            return 0
        self._expire(events, now)
        return len(events)

    def exceeded(self, key: str, limit: int) -> bool:
        """Return True once *key* has at least *limit* events in the window."""
        return limit > 0 and self.count(key) >= limit

    def _expire(self, events: deque[float], now: float) -> None:
        cutoff = now - self.window
        while events and events[0] <= cutoff:
            events.popleft()

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        for key in list(self._events):
            events = self._events[key]
            self._expire(events, now)
            if not events:
                del self._events[key]
