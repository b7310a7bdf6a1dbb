"""
Sliding window rate limiter for regulated external data sources.
"""

import threading
import time
from collections import deque
from typing import Deque, Dict, Optional

from shared.logging import get_logger
from shared.errors import ValidationError
from shared.metrics import MetricsCollector


def _now_ms() -> int:
    return int(time.time() * 1000)


def _require_positive_int(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer", details={name: value})
    return value


class SlidingWindowRateLimiter:
    """Bounds accepted calls within any trailing window (one second by default).

    Accepted-call timestamps are kept in order and purged lazily on each
    call. Not thread-safe: wrap in SynchronizedRateLimiter when shared.
    """

    def __init__(self, max_per_second: int, window_ms: int = 1000):
        self.max_per_second = _require_positive_int("max_per_second", max_per_second)
        self.window_ms = _require_positive_int("window_ms", window_ms)
        self._accepted: Deque[int] = deque()

    def _purge(self, now_ms: int) -> None:
        while self._accepted and now_ms - self._accepted[0] >= self.window_ms:
            self._accepted.popleft()

    def acquire(self, now_ms: Optional[int] = None) -> bool:
        """Record a call at ``now_ms`` if the window has room.

        Returns False, leaving the accepted set untouched, when the window
        is already full.
        """
        if now_ms is None:
            now_ms = _now_ms()

        self._purge(now_ms)

        if len(self._accepted) >= self.max_per_second:
            return False

        self._accepted.append(now_ms)
        return True

    def retry_after_ms(self, now_ms: Optional[int] = None) -> int:
        """Milliseconds until a call would be accepted; 0 if it would be now."""
        if now_ms is None:
            now_ms = _now_ms()

        live = [ts for ts in self._accepted if now_ms - ts < self.window_ms]
        if len(live) < self.max_per_second:
            return 0
        # The oldest call that must expire to free a slot
        blocking = live[len(live) - self.max_per_second]
        return max(0, blocking + self.window_ms - now_ms)

    @property
    def in_flight(self) -> int:
        """Accepted calls currently held, including any not yet purged."""
        return len(self._accepted)


class SynchronizedRateLimiter:
    """Serializes access to a limiter shared by several ingestion workers."""

    def __init__(self, limiter: SlidingWindowRateLimiter):
        self._limiter = limiter
        self._lock = threading.Lock()

    @property
    def max_per_second(self) -> int:
        return self._limiter.max_per_second

    def acquire(self, now_ms: Optional[int] = None) -> bool:
        with self._lock:
            return self._limiter.acquire(now_ms)

    def retry_after_ms(self, now_ms: Optional[int] = None) -> int:
        with self._lock:
            return self._limiter.retry_after_ms(now_ms)

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._limiter.in_flight


class RateLimiterRegistry:
    """One limiter per named external dependency."""

    def __init__(
        self,
        limits: Optional[Dict[str, int]] = None,
        window_ms: int = 1000,
        synchronized: bool = True,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.logger = get_logger("compliance.rate_limiter")
        # Default limits (accepted calls per window)
        self.limits = {"sec": 10}
        if limits:
            self.limits.update(limits)
        self.window_ms = window_ms
        self.synchronized = synchronized
        self.metrics = metrics
        self._limiters: Dict[str, object] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config, metrics: Optional[MetricsCollector] = None) -> "RateLimiterRegistry":
        return cls(
            limits=config.rate_limit_table(),
            window_ms=config.rate_window_ms,
            metrics=metrics,
        )

    def get(self, dependency: str):
        """Get (creating on first use) the limiter for a dependency."""
        with self._lock:
            limiter = self._limiters.get(dependency)
            if limiter is not None:
                return limiter

            if dependency not in self.limits:
                raise ValidationError(
                    f"No rate limit configured for dependency '{dependency}'",
                    details={"dependency": dependency, "known": sorted(self.limits)}
                )

            limiter = SlidingWindowRateLimiter(self.limits[dependency], self.window_ms)
            if self.synchronized:
                limiter = SynchronizedRateLimiter(limiter)
            self._limiters[dependency] = limiter
            self.logger.info(
                "Rate limiter created",
                dependency=dependency,
                max_per_window=self.limits[dependency],
                window_ms=self.window_ms
            )
            return limiter

    def acquire(self, dependency: str, now_ms: Optional[int] = None) -> bool:
        """Acquire a slot for ``dependency``; refusals are logged and counted."""
        granted = self.get(dependency).acquire(now_ms)
        if not granted:
            self.logger.debug("Rate limit refused", dependency=dependency)
            if self.metrics:
                self.metrics.record_rate_limit_refusal(dependency)
        return granted
