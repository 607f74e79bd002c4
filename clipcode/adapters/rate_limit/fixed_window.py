"""Fixed-window rate limiter on top of the shared key-value store.

Notes:
- One counter per (prefix, identity) and window: ``rl:<prefix>:<identity>``.
- The counter is created by an atomic increment; the caller that observes
  the value 1 arms the window TTL. Increment and expire are two round trips,
  so a counter found without a TTL is re-armed by the next caller.
- Bursts of up to twice the limit are possible across a window boundary.
"""

from __future__ import annotations

import time
from typing import Callable

from clipcode.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from clipcode.adapters.store.base import AbstractKVStore, StoreKeys


class StoreFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed window counter stored per key."""

    def __init__(
        self,
        store: AbstractKVStore,
        *,
        keys: StoreKeys | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared store holding the counters.
            keys: Key builder (defaults to the standard namespace).
            clock: Time source used to report ``reset_at``.
        """
        self._store = store
        self._keys = keys or StoreKeys()
        self._clock = clock

    def check(
        self,
        prefix: str,
        identity: str,
        *,
        limit: int,
        window_seconds: int,
    ) -> RateLimitResult:
        """Count one request against the current window.

        Raises:
            ValueError: If limit/window are invalid or identity is empty.
            StoreUnavailableError: If the store cannot be reached.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if not prefix or not identity:
            raise ValueError("prefix and identity must be non-empty strings")

        key = self._keys.rate_limit(prefix, identity)
        count = self._store.increment(key)
        if count == 1:
            self._store.expire(key, window_seconds)

        ttl = self._store.ttl(key)
        if ttl == -1:
            # Arming caller died between increment and expire
            self._store.expire(key, window_seconds)
            ttl = window_seconds
        reset_seconds = ttl if ttl > 0 else window_seconds
        reset_at = int(self._clock()) + reset_seconds

        return RateLimitResult(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_seconds=reset_seconds,
            reset_at=reset_at,
        )
