"""
In-memory rate limiting for outbound FPL calls and inbound API endpoints.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    success: bool
    limit: int
    used: int
    remaining: int
    reset_at: float  # epoch seconds

    def retry_after(self, now: float) -> int:
        return max(0, math.ceil(self.reset_at - now))

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }


class SlidingWindowRateLimiter:
    """
    Keeps the timestamps of recent requests per key and refuses a request
    once `max_requests` already fall inside the last `window_seconds`.
    Denied requests are not recorded. There is no queueing.
    """

    def __init__(self, max_requests: int = 10, window_seconds: float = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def can_make_request(self, key: str = "default") -> bool:
        with self._lock:
            now = self._clock()
            valid = [t for t in self._requests.get(key, []) if now - t < self.window_seconds]

            if len(valid) >= self.max_requests:
                self._requests[key] = valid
                return False

            valid.append(now)
            self._requests[key] = valid
            return True


@dataclass
class RateLimitWindow:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    Per-client counter that resets when its window elapses.

    The first call after a reset opens a new window with count 1; each
    further call increments the count and succeeds while it stays within
    `max_requests`.
    """

    def __init__(self, max_requests: int, window_seconds: float,
                 clock: Callable[[], float] = time.time):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._store: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def check(self, key: str) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            window = self._store.get(key)

            if window is None or now >= window.reset_at:
                window = RateLimitWindow(count=1, reset_at=now + self.window_seconds)
                self._store[key] = window
            else:
                window.count += 1

            count, reset_at = window.count, window.reset_at

        return RateLimitResult(
            success=count <= self.max_requests,
            limit=self.max_requests,
            used=count,
            remaining=max(0, self.max_requests - count),
            reset_at=reset_at
        )

    def cleanup(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, window in self._store.items() if window.reset_at <= now]
            for key in expired:
                del self._store[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired rate limit windows")
        return len(expired)


class EndpointRateLimiter:
    """
    Named limiter classes for groups of inbound endpoints.

    Expired client windows are swept every `cleanup_interval` seconds as a
    side effect of `check`.
    """

    LIMITS = {
        "fpl": (30, 60),
        "admin": (10, 60),
        "registration": (5, 300),
        "default": (settings.RATE_LIMIT_REQUESTS, settings.RATE_LIMIT_WINDOW_SECONDS),
    }

    def __init__(self, clock: Callable[[], float] = time.time, cleanup_interval: float = 5 * 60):
        self.clock = clock
        self.cleanup_interval = cleanup_interval
        self._next_cleanup = clock() + cleanup_interval
        self._limiters: Dict[str, FixedWindowRateLimiter] = {}
        self._lock = threading.Lock()

    def get_limiter(self, endpoint: str) -> FixedWindowRateLimiter:
        with self._lock:
            limiter = self._limiters.get(endpoint)
            if limiter is None:
                max_requests, window_seconds = self.LIMITS[endpoint]
                limiter = FixedWindowRateLimiter(max_requests, window_seconds, clock=self.clock)
                self._limiters[endpoint] = limiter
            return limiter

    def check(self, endpoint: str, key: str) -> RateLimitResult:
        self._cleanup_if_due()
        result = self.get_limiter(endpoint).check(key)
        if not result.success:
            logger.info(f"Rate limit hit on '{endpoint}' for {key}")
        return result

    def cleanup(self) -> int:
        with self._lock:
            limiters = list(self._limiters.values())
        return sum(limiter.cleanup() for limiter in limiters)

    def _cleanup_if_due(self) -> None:
        with self._lock:
            now = self.clock()
            if now < self._next_cleanup:
                return
            self._next_cleanup = now + self.cleanup_interval
        self.cleanup()
