"""
Rate limiting package for regulated external data sources.

Holds the sliding window limiter (with a lock-guarded wrapper and a
per-dependency registry) and a fixed window counter for coarse quotas.
"""

from .fixed_window import FixedWindowRateLimiter, RateLimitDecision
from .sliding_window import (
    RateLimiterRegistry,
    SlidingWindowRateLimiter,
    SynchronizedRateLimiter,
)

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitDecision",
    "RateLimiterRegistry",
    "SlidingWindowRateLimiter",
    "SynchronizedRateLimiter",
]
