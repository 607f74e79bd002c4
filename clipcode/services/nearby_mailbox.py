"""Per-receiver mailbox of relayed shares.

The mailbox at ``mailbox:<RECEIVER>`` is a store list of JSON messages,
oldest first. Delivery is at-least-once:

- ``publish`` appends with an atomic push and re-arms the list TTL to the
  TTL of the triggering share.
- ``poll_once`` peeks at the first deliverable message without removing it,
  so repeated polls return the same item until it is acknowledged.
- ``ack`` removes the message matching a messageId by value. Unknown ids
  are a no-op, which makes acks safe to retry.

Older releases stored a single JSON object instead of a list. A legacy value
without a messageId is consumed by the poll that returns it; one with a
messageId behaves like a one-item queue.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from clipcode.adapters.store.base import AbstractKVStore, StoreKeys
from clipcode.core.logging import short_hash
from clipcode.schemas.records import NearbyMessage
from clipcode.utils.stored_values import decode_message

logger = logging.getLogger(__name__)


def new_message_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class PollResult:
    found: bool
    item: NearbyMessage | None = None


class NearbyMailbox:
    """Publish, peek and acknowledge relayed messages."""

    def __init__(self, store: AbstractKVStore, keys: StoreKeys) -> None:
        self.store = store
        self.keys = keys

    def publish(self, receiver_device_id: str, message: NearbyMessage, ttl_seconds: int) -> None:
        """Append a message to the receiver's queue.

        Args:
            receiver_device_id: Target device.
            message: Message to deliver; it must carry a messageId.
            ttl_seconds: Lifetime applied to the whole queue.
        """
        key = self.keys.mailbox(receiver_device_id)
        if self.store.kind(key) == "string":
            self._migrate_legacy(key, ttl_seconds)

        length = self.store.list_append(key, message.to_json(), ttl_seconds)
        logger.info(
            "mailbox.published",
            extra={
                "receiver_hash": short_hash(receiver_device_id),
                "message_id": message.message_id,
                "queue_length": length,
                "ttl_s": ttl_seconds,
            },
        )

    def _migrate_legacy(self, key: str, ttl_seconds: int) -> None:
        raw = self.store.get_and_delete(key)
        legacy = decode_message(raw) if raw is not None else None
        if legacy is None or legacy.is_empty():
            return
        if legacy.message_id is None:
            legacy.message_id = new_message_id()
        self.store.list_append(key, legacy.to_json(), ttl_seconds)
        logger.info("mailbox.legacy_migrated", extra={"message_id": legacy.message_id})

    def poll_once(self, receiver_device_id: str) -> PollResult:
        """Return the first deliverable message without removing it."""
        key = self.keys.mailbox(receiver_device_id)
        kind = self.store.kind(key)

        if kind == "string":
            return self._poll_legacy(key)
        if kind == "none":
            return PollResult(found=False)

        for raw in self.store.list_items(key):
            message = decode_message(raw)
            if message is None or message.is_empty():
                self.store.list_remove(key, raw)
                logger.info("mailbox.discarded_invalid", extra={"receiver_hash": short_hash(receiver_device_id)})
                continue
            if message.message_id is None:
                # Without an id the client can't ack: hand it out once
                self.store.list_remove(key, raw)
            return PollResult(found=True, item=message)

        return PollResult(found=False)

    def _poll_legacy(self, key: str) -> PollResult:
        raw = self.store.get(key)
        message = decode_message(raw) if raw is not None else None
        if message is None or message.is_empty():
            self.store.delete(key)
            return PollResult(found=False)
        if message.message_id is None:
            self.store.delete(key)
            logger.info("mailbox.legacy_consumed", extra={"code_present": bool(message.code)})
        return PollResult(found=True, item=message)

    def ack(self, receiver_device_id: str, message_id: str) -> bool:
        """Remove the message with ``message_id`` from the receiver's queue.

        Returns:
            True if a message was removed, False if none matched.
        """
        key = self.keys.mailbox(receiver_device_id)
        kind = self.store.kind(key)

        consumed = False
        if kind == "string":
            raw = self.store.get(key)
            message = decode_message(raw) if raw is not None else None
            if message is not None and message.message_id == message_id:
                consumed = self.store.delete(key) > 0
        elif kind == "list":
            for raw in self.store.list_items(key):
                message = decode_message(raw)
                if message is not None and message.message_id == message_id:
                    consumed = self.store.list_remove(key, raw) > 0
                    break

        logger.info(
            "mailbox.acked" if consumed else "mailbox.ack_unmatched",
            extra={"receiver_hash": short_hash(receiver_device_id), "message_id": message_id},
        )
        return consumed
