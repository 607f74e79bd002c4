"""Clip persistence with put / get-once semantics.

A clip lives under ``clip:<CODE>`` until its TTL runs out or until the first
successful fetch removes it. Writes are conditional (SET NX), so a code that
already owns a live clip can never be overwritten.
"""

from __future__ import annotations

import logging
from typing import Any

from clipcode.adapters.store.base import AbstractKVStore, StoreKeys
from clipcode.core.config import settings
from clipcode.core.errors import NotFoundAppError, PayloadTooLargeAppError, ValidationAppError
from clipcode.schemas.records import Clip
from clipcode.utils.stored_values import decode_clip
from clipcode.utils.validators import is_http_url

logger = logging.getLogger(__name__)


def validate_payload(raw_links: list[Any] | None, raw_text: Any) -> tuple[list[str], str | None]:
    """Normalize and validate a share payload before it reaches the store.

    Links are trimmed and blank entries dropped; text is trimmed.

    Args:
        raw_links: Links as sent by the client.
        raw_text: Optional free text.

    Returns:
        Tuple of (links, text) where text is None when empty.

    Raises:
        ValidationAppError: Too many links, no content, or a link that is not
            a valid http/https URL within the length bound.
        PayloadTooLargeAppError: Text exceeds the configured bound.
    """
    cfg = settings.app
    links = [str(item).strip() for item in (raw_links or []) if item is not None]
    links = [link for link in links if link]
    text = "" if raw_text is None else str(raw_text).strip()

    if len(links) > cfg.max_links:
        raise ValidationAppError(
            code="too_many_links",
            message=f"Too many links. Max {cfg.max_links}",
            details={"limit": cfg.max_links, "actual": len(links)},
        )

    if not links and not text:
        raise ValidationAppError(
            code="empty_payload",
            message="At least one link or text is required",
        )

    if any(len(link) > cfg.max_link_chars or not is_http_url(link) for link in links):
        raise ValidationAppError(
            code="invalid_links",
            message="Invalid links. Use valid http/https URLs.",
            details={"limit": cfg.max_link_chars},
        )

    if len(text) > cfg.max_text_chars:
        raise PayloadTooLargeAppError(
            code="text_too_large",
            message="Text too large",
            details={"limit": cfg.max_text_chars, "actual": len(text)},
        )

    return links, text or None


class ClipStore:
    """Stores and consumes clips by code."""

    def __init__(self, store: AbstractKVStore, keys: StoreKeys) -> None:
        self.store = store
        self.keys = keys

    def put(self, code: str, clip: Clip, ttl_seconds: int) -> bool:
        """Persist a clip under a code that is not currently live.

        Returns:
            True if stored, False when the code already owns a live clip.
        """
        return self.store.set(
            self.keys.clip(code),
            clip.to_json(),
            ttl_seconds,
            only_if_absent=True,
        )

    def consume(self, code: str) -> Clip:
        """Read a clip and delete it in the same store operation.

        Raises:
            NotFoundAppError: If the code is absent, expired, already consumed
                or holds an empty record.
        """
        raw = self.store.get_and_delete(self.keys.clip(code))
        if raw is None:
            raise NotFoundAppError(code="code_not_found", message="Code not found or expired")

        clip = decode_clip(raw)
        if clip.is_empty():
            logger.warning("clip.empty_record_discarded", extra={"code_length": len(code)})
            raise NotFoundAppError(code="code_not_found", message="Code not found or expired")

        return clip
