"""
Fixed window counter for coarse per-window quotas.
"""

import time
from dataclasses import dataclass
from typing import Optional

from shared.errors import ValidationError


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a fixed window check."""
    allowed: bool
    limit: int
    remaining: int
    window_ms: int
    window_start: int
    retry_after_ms: int


class FixedWindowRateLimiter:
    """Counts calls in aligned windows of ``window_ms``.

    Every call inside the current window increments the counter, including
    refused ones. A window allows calls while the count stays within
    ``limit``. Unlike SlidingWindowRateLimiter this permits a burst of up
    to twice the limit across a window boundary.
    """

    def __init__(self, limit: int, window_ms: int):
        for name, value in (("limit", limit), ("window_ms", window_ms)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValidationError(f"{name} must be a positive integer", details={name: value})
        self.limit = limit
        self.window_ms = window_ms
        self._window_start: Optional[int] = None
        self._count = 0

    def check(self, now_ms: Optional[int] = None) -> RateLimitDecision:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        now_ms = max(0, int(now_ms))
        window_start = now_ms - (now_ms % self.window_ms)

        if self._window_start != window_start:
            self._window_start = window_start
            self._count = 1
        else:
            self._count += 1

        allowed = self._count <= self.limit
        return RateLimitDecision(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - self._count),
            window_ms=self.window_ms,
            window_start=window_start,
            retry_after_ms=0 if allowed else max(0, window_start + self.window_ms - now_ms),
        )
