"""Rate limiting adapters.

This package keeps the limiter behind a small abstraction so the API layer
only depends on ``AbstractRateLimiter``. The shipped implementation keeps its
counters in the shared key-value store, so every worker enforces the same
budget.
"""

from clipcode.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from clipcode.adapters.rate_limit.fixed_window import StoreFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "RateLimitResult",
    "StoreFixedWindowRateLimiter",
]
