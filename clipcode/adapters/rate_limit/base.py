"""Rate limiter contract used by the ``rate_limit`` route dependency."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request against a fixed window.

    ``reset_seconds`` is never below 1, so it can go straight into a
    Retry-After header.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int
    reset_at: int


class AbstractRateLimiter(ABC):
    @abstractmethod
    def check(
        self,
        prefix: str,
        identity: str,
        *,
        limit: int,
        window_seconds: int,
    ) -> RateLimitResult:
        """Count one request for ``identity`` under the ``prefix`` budget.

        Args:
            prefix: Budget name, one per route family ("share", "fetch", ...).
            identity: Caller within that budget, normally the client IP.
            limit: Requests allowed per window; must be positive.
            window_seconds: Window length; must be positive.

        Raises:
            ValueError: If ``limit`` or ``window_seconds`` is not positive.
            StoreUnavailableError: If the counter cannot be read or written.
        """
        raise NotImplementedError
