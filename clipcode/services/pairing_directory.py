"""Pairing directory: pairing codes and durable sender -> receiver links.

State per device pair:
- Unlinked: no ``pair:sender:<SENDER>`` record.
- CodeIssued: the receiver holds a ``pair:code:<CODE>`` record (10 minutes).
- Linked: the sender's record names the receiver (30 days, reset by shares).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from clipcode.adapters.store.base import AbstractKVStore, StoreKeys
from clipcode.core.config import settings
from clipcode.core.errors import NotFoundAppError
from clipcode.core.logging import short_hash
from clipcode.schemas.records import PairingCode, SenderPairing
from clipcode.utils.code_generator import NUMERIC_ALPHABET, claim_unique_code
from clipcode.utils.stored_values import decode_pairing_code, decode_sender_pairing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairingLookup:
    """Outcome of resolving a sender's pairing.

    Attributes:
        pairing: The normalized pairing, None when missing or malformed.
        malformed: True when a record exists but names no valid receiver.
    """

    pairing: SenderPairing | None
    malformed: bool = False


@dataclass(frozen=True)
class UnlinkResult:
    receiver_device_id: str | None
    removed: bool
    reciprocal_removed: bool


class PairingDirectory:
    """Creates, confirms, resolves and removes device pairings."""

    def __init__(self, store: AbstractKVStore, keys: StoreKeys) -> None:
        self.store = store
        self.keys = keys

    def create_pair_code(self, receiver_device_id: str, receiver_device_label: str | None) -> tuple[str, int]:
        """Issue a one-time numeric pairing code for a receiver.

        Returns:
            Tuple of (pair_code, expires_in_seconds).

        Raises:
            CodeGenerationExhaustedAppError: If no free code was found.
        """
        cfg = settings.app
        record = PairingCode(
            receiver_device_id=receiver_device_id,
            receiver_device_label=receiver_device_label,
        ).to_json()

        pair_code = claim_unique_code(
            NUMERIC_ALPHABET,
            cfg.pair_code_length,
            attempts=cfg.pair_code_attempts,
            claim=lambda candidate: self.store.set(
                self.keys.pair_code(candidate),
                record,
                cfg.pair_code_ttl_seconds,
                only_if_absent=True,
            ),
            namespace="pair:code",
        )

        logger.info(
            "pair.code_created",
            extra={"receiver_hash": short_hash(receiver_device_id), "ttl_s": cfg.pair_code_ttl_seconds},
        )
        return pair_code, cfg.pair_code_ttl_seconds

    def confirm_pair(
        self,
        pair_code: str,
        sender_device_id: str,
        sender_device_label: str | None,
    ) -> SenderPairing:
        """Link a sender to the receiver that issued ``pair_code``.

        The code is claimed with an atomic read-and-delete, so concurrent
        confirmations of one code cannot both succeed.

        Raises:
            NotFoundAppError: If the code is unknown, expired or already used.
        """
        raw = self.store.get_and_delete(self.keys.pair_code(pair_code))
        issued = decode_pairing_code(raw) if raw is not None else None
        if issued is None:
            logger.info("pair.code_not_found", extra={"sender_hash": short_hash(sender_device_id)})
            raise NotFoundAppError(
                code="pair_code_not_found",
                message="Pair code not found or expired",
            )

        pairing = SenderPairing(
            receiver_device_id=issued.receiver_device_id,
            receiver_device_label=issued.receiver_device_label,
            sender_device_label=sender_device_label,
        )
        self.store.set(
            self.keys.sender_pairing(sender_device_id),
            pairing.to_json(),
            settings.app.pairing_ttl_seconds,
        )

        logger.info(
            "pair.confirmed",
            extra={
                "sender_hash": short_hash(sender_device_id),
                "receiver_hash": short_hash(issued.receiver_device_id),
            },
        )
        return pairing

    def resolve(self, sender_device_id: str) -> PairingLookup:
        raw = self.store.get(self.keys.sender_pairing(sender_device_id))
        if raw is None:
            return PairingLookup(pairing=None)
        pairing = decode_sender_pairing(raw)
        return PairingLookup(pairing=pairing, malformed=pairing is None)

    def refresh(self, sender_device_id: str) -> bool:
        """Reset a pairing's TTL to the full window."""
        return self.store.expire(
            self.keys.sender_pairing(sender_device_id),
            settings.app.pairing_ttl_seconds,
        )

    def unlink(self, sender_device_id: str, receiver_device_id: str | None = None) -> UnlinkResult:
        """Remove a sender's pairing and its reciprocal edge, if any.

        When ``receiver_device_id`` is omitted it is read from the sender's
        record. The receiver's own pairing is removed only when it points
        back at this sender. Missing records are not an error.
        """
        sender_key = self.keys.sender_pairing(sender_device_id)
        if not receiver_device_id:
            lookup = self.resolve(sender_device_id)
            receiver_device_id = lookup.pairing.receiver_device_id if lookup.pairing else None

        removed = self.store.delete(sender_key) > 0

        reciprocal_removed = False
        if receiver_device_id:
            reverse = self.resolve(receiver_device_id)
            if reverse.pairing and reverse.pairing.receiver_device_id == sender_device_id:
                reciprocal_removed = self.store.delete(self.keys.sender_pairing(receiver_device_id)) > 0

        logger.info(
            "pair.unlinked",
            extra={
                "sender_hash": short_hash(sender_device_id),
                "removed": removed,
                "reciprocal_removed": reciprocal_removed,
            },
        )
        return UnlinkResult(
            receiver_device_id=receiver_device_id,
            removed=removed,
            reciprocal_removed=reciprocal_removed,
        )
