"""In-memory sliding window rate limiting for the credential endpoints."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from functools import wraps
from threading import Lock
from typing import Deque, Dict, Optional

from flask import request

from .errors import RateLimitError


class SlidingWindowRateLimiter:
    """Thread-safe sliding window rate limiter."""

    def __init__(self, max_requests: int, window_seconds: int, clock=time.monotonic) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._events: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        # Drop clients whose newest attempt has aged out of the window.
        stale = [
            key
            for key, queue in self._events.items()
            if not queue or now - queue[-1] >= self._window
        ]
        for key in stale:
            del self._events[key]
        self._last_sweep = now

    def allow(self, key: str) -> bool:
        """Return ``True`` when the request is within the configured rate limit."""
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._window:
                self._sweep(now)
            queue = self._events[key]
            while queue and now - queue[0] >= self._window:
                queue.popleft()
            if len(queue) >= self._max_requests:
                return False
            queue.append(now)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def reset(self) -> None:
        with self._lock:
            self._events.clear()
            self._last_sweep = self._clock()


def client_address() -> str:
    return request.remote_addr or "unknown"


def rate_limited(limiter: Optional[SlidingWindowRateLimiter], scope: str):
    """Reject the wrapped view with 429 once the caller exhausts its window."""

    def decorator(view):
        if limiter is None:
            return view

        @wraps(view)
        def wrapper(*args, **kwargs):
            if not limiter.allow(f"{scope}:{client_address()}"):
                raise RateLimitError()
            return view(*args, **kwargs)

        return wrapper

    return decorator
