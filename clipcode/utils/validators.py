"""Input normalization helpers.

Every helper accepts arbitrary JSON values and returns a normalized string,
or an empty string when the input does not have the expected shape.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlsplit

from clipcode.core.errors import ValidationAppError

DEVICE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,64}$")
MESSAGE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,100}$")

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_NON_DIGIT = re.compile(r"\D")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_device_id(value: Any) -> str:
    """Return the trimmed device id, or "" if it is not 8-64 of [A-Za-z0-9_-].

    Examples:
        >>> normalize_device_id("  device_0001 ")
        'device_0001'
        >>> normalize_device_id("short")
        ''
    """
    normalized = _as_text(value)
    if not DEVICE_ID_PATTERN.fullmatch(normalized):
        return ""
    return normalized


def normalize_message_id(value: Any) -> str:
    normalized = _as_text(value)
    if not MESSAGE_ID_PATTERN.fullmatch(normalized):
        return ""
    return normalized


def normalize_label(value: Any, max_chars: int) -> str:
    """Trim a free-form device label and cut it to ``max_chars``."""
    return _as_text(value)[:max_chars]


def normalize_share_code(value: Any) -> str:
    return _as_text(value).upper()


def normalize_pair_code(value: Any, length: int) -> str:
    """Uppercase, drop anything but letters/digits, cut to ``length``.

    Examples:
        >>> normalize_pair_code(" 123-456 ", 6)
        '123456'
    """
    return _NON_ALNUM.sub("", _as_text(value).upper())[:length]


def normalize_room_code(value: Any, length: int) -> str:
    return _NON_DIGIT.sub("", _as_text(value))[:length]


def is_http_url(value: str) -> bool:
    """Check that value parses as an absolute http/https URL with a host."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def require_device_id(value: Any, field: str) -> str:
    """Normalize a mandatory device id.

    Raises:
        ValidationAppError: If the id is missing or malformed.
    """
    device_id = normalize_device_id(value)
    if not device_id:
        raise ValidationAppError(
            code="invalid_device_id",
            message=f"{field} is required (8-64 chars of letters, digits, '_' or '-')",
            details={"field": field},
        )
    return device_id
