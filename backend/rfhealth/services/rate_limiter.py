"""Sliding-window rate limiter for the webhook endpoint.

Each caller identity keeps a time-ordered deque of admitted request times.
Entries older than the window are dropped from the front before every
decision, and ``sweep()`` drops identities left with no entries so memory
stays bounded by the set of recently active callers.

State is process-local. One coarse lock guards the whole table; admit and
sweep are short and contention is low.
"""
import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict

logger = logging.getLogger(__name__)


@dataclass
class RateLimitDecision:
    """Outcome of one admission check, with the values exposed as headers."""
    allowed: bool
    limit: int
    remaining: int
    window_seconds: float

    @property
    def retry_after(self) -> int:
        """Whole seconds a rejected caller should wait."""
        return max(1, math.ceil(self.window_seconds))

    def headers(self) -> Dict[str, str]:
        reset_at = datetime.now(timezone.utc) + timedelta(seconds=self.window_seconds)
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset_at.isoformat().replace("+00:00", "Z"),
        }


class RateLimiter:
    """Per-identity sliding-window admission control."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def _evict(self, timestamps: Deque[float], now: float):
        window_start = now - self.window_seconds
        while timestamps and timestamps[0] < window_start:
            timestamps.popleft()

    def admit(self, identity: str) -> bool:
        """Record and allow the request if the identity is under its limit."""
        now = self._clock()
        with self._lock:
            timestamps = self._requests.setdefault(identity, deque())
            self._evict(timestamps, now)
            if len(timestamps) >= self.max_requests:
                return False
            timestamps.append(now)
            return True

    def remaining(self, identity: str) -> int:
        """Requests still available to the identity in the current window."""
        now = self._clock()
        with self._lock:
            timestamps = self._requests.get(identity)
            if timestamps is None:
                return self.max_requests
            self._evict(timestamps, now)
            return max(0, self.max_requests - len(timestamps))

    def check(self, identity: str) -> RateLimitDecision:
        """Admit or reject, returning the quota values the HTTP layer reports."""
        allowed = self.admit(identity)
        return RateLimitDecision(
            allowed=allowed,
            limit=self.max_requests,
            remaining=self.remaining(identity),
            window_seconds=self.window_seconds,
        )

    def sweep(self) -> int:
        """Evict stale timestamps everywhere and forget idle identities.

        Returns the number of identities removed.
        """
        now = self._clock()
        with self._lock:
            idle = []
            for identity, timestamps in self._requests.items():
                self._evict(timestamps, now)
                if not timestamps:
                    idle.append(identity)
            for identity in idle:
                del self._requests[identity]
            tracked = len(self._requests)

        if idle:
            logger.debug(f"Rate limiter sweep removed {len(idle)} idle identities ({tracked} tracked)")
        return len(idle)

    def dispose(self):
        """Drop all tracked state."""
        with self._lock:
            self._requests.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)
