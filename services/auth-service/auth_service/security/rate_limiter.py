"""In-memory sliding window limiter for authentication attempts."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from threading import Lock
from typing import Callable, Deque


class SlidingWindowRateLimiter:
    """Thread-safe per-key sliding window limiter for a single process.

    Keys whose attempts have all aged out of the window are swept at most
    once per window, so memory tracks only recently active keys.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise limiter parameters and per-key storage."""
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._events: defaultdict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()
        self._last_sweep = clock()

    def allow(self, key: str) -> bool:
        """Return ``True`` when another attempt for ``key`` fits in the window."""
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._window:
                self._sweep(now)
            queue = self._events[key]
            self._prune(queue, now)
            if len(queue) >= self._max_requests:
                return False
            queue.append(now)
            return True

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        return len(self._events)

    def _prune(self, queue: Deque[float], now: float) -> None:
        while queue and now - queue[0] >= self._window:
            queue.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._events):
            queue = self._events[key]
            self._prune(queue, now)
            if not queue:
                del self._events[key]
        self._last_sweep = now
