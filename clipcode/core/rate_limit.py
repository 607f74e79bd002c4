"""Rate limiting dependency for FastAPI routes.

This module wires the store-backed fixed-window limiter into the HTTP layer.

Design goals:
- Minimal coupling: routes declare ``Depends(rate_limit("share"))`` only.
- Shared state: counters live in the key-value store, so every instance of
  the service sees the same budget.
- Per endpoint budgets: ``(limit, window_seconds)`` pairs come from
  ``AppSettings.rate_limit_<prefix>`` and are read on every request.

Rate limiting strategy:
- Fixed window per (endpoint prefix, client IP).
- Client IP is resolved behind proxies (see ``client_ip``).
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Request

from clipcode.adapters.rate_limit.base import AbstractRateLimiter
from clipcode.adapters.rate_limit.fixed_window import StoreFixedWindowRateLimiter
from clipcode.adapters.store.base import AbstractKVStore
from clipcode.core.config import settings
from clipcode.core.dependencies import get_keys, get_store
from clipcode.core.errors import RateLimitedAppError
from clipcode.core.logging import short_hash
from clipcode.core.middleware import client_ip

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_store: AbstractKVStore | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter bound to the current store.

    If the store is swapped (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_store

    store = get_store()
    if _limiter is None or _limiter_store is not store:
        _limiter = StoreFixedWindowRateLimiter(store, keys=get_keys())
        _limiter_store = store

    return _limiter


def rate_limit(prefix: str) -> Callable[[Request], None]:
    """Build a dependency that counts one request against ``prefix``'s budget.

    Args:
        prefix: Endpoint name; selects ``settings.app.rate_limit_<prefix>``
            and namespaces the counter key.

    Returns:
        A FastAPI dependency raising ``RateLimitedAppError`` when the caller
        is over budget.
    """

    def enforce_rate_limit(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return

        limit, window_seconds = getattr(settings.app, f"rate_limit_{prefix}")
        identity = client_ip(request)
        result = get_rate_limiter().check(
            prefix,
            identity,
            limit=limit,
            window_seconds=window_seconds,
        )

        log_context = {
            "prefix": prefix,
            "key_hash": short_hash(identity),
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": window_seconds,
        }
        if result.allowed:
            logger.debug("rate_limit.allowed", extra=log_context)
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={**log_context, "retry_after_s": result.reset_seconds},
        )
        raise RateLimitedAppError(
            code="rate_limited",
            message="Rate limit exceeded. Try again later.",
            details={"retry_after": result.reset_seconds},
            reset_seconds=result.reset_seconds,
            limit=result.limit,
            reset_at=result.reset_at,
        )

    enforce_rate_limit.__name__ = f"enforce_rate_limit_{prefix}"
    return enforce_rate_limit
