"""Error taxonomy shared by services, adapters and the HTTP layer.

Every failure the service reports on purpose is an ``AppError`` subclass;
the subclass alone decides the HTTP status (see ``exception_handlers``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional context returned to clients under ``error.details``.

    Never holds clip content or raw device ids.
    """

    field: str
    limit: int
    actual: int
    allowed_ttl_seconds: list[int]
    retry_after: int
    attempts: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base class for failures with a stable machine-readable ``code``."""

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Malformed input: missing content, bad URL, unknown TTL, bad id (400)."""


class PayloadTooLargeAppError(ValidationAppError):
    """Text longer than the configured maximum (413)."""


class NotFoundAppError(AppError):
    """Share code, pairing code or room missing, expired or already used (404)."""


@dataclass
class RateLimitedAppError(AppError):
    """Fixed-window budget exhausted for this caller (429).

    Attributes:
        reset_seconds: Seconds until the window rolls over (Retry-After).
        limit: Budget of the window that was exceeded.
        reset_at: Epoch second at which the window rolls over.
    """

    reset_seconds: int = 0
    limit: int = 0
    reset_at: int = 0


class CodeGenerationExhaustedAppError(AppError):
    """No free code found within the attempt budget (500)."""


class StoreUnavailableError(AppError):
    """Key-value store unreachable or holding an unexpected value (500)."""
