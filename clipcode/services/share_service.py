"""Share and fetch orchestration.

Share validates the payload, claims a fresh clip code, stores the clip and
then relays it to every nearby target: the receiver the sender is paired
with and the other members of a room. The clip is the source of truth; a
failure while relaying is reported through ``nearby_reason`` and never undoes
the stored clip.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from clipcode.core.config import settings
from clipcode.core.errors import StoreUnavailableError, ValidationAppError
from clipcode.core.logging import short_hash
from clipcode.schemas.records import Clip, NearbyMessage
from clipcode.services.clip_store import ClipStore, validate_payload
from clipcode.services.nearby_mailbox import NearbyMailbox, new_message_id
from clipcode.services.pairing_directory import PairingDirectory
from clipcode.services.room_directory import RoomDirectory
from clipcode.utils.code_generator import SHARE_CODE_ALPHABET, claim_unique_code
from clipcode.utils.stored_values import now_ms

logger = logging.getLogger(__name__)

# Nearby reason codes reported to clients
REASON_QUEUED = "queued"
REASON_NO_SENDER_DEVICE = "no_sender_device"
REASON_NOT_PAIRED = "not_paired"
REASON_INVALID_PAIR_PAYLOAD = "invalid_pair_payload"
REASON_ROOM_NOT_FOUND = "room_not_found"
REASON_ROOM_EMPTY = "room_empty"
REASON_PUBLISH_FAILED = "publish_failed"


@dataclass(frozen=True)
class ShareOutcome:
    code: str
    expires_in: int
    nearby_queued: bool
    nearby_reason: str
    nearby_targets: int = 0


@dataclass
class _Targets:
    device_ids: list[str]
    reason: str
    sender_device_label: str | None
    paired: bool


def resolve_ttl(ttl_seconds: Any) -> int:
    """Return the requested clip lifetime, or the default when omitted.

    Raises:
        ValidationAppError: If the value is not one of the allowed durations.
    """
    cfg = settings.app
    if ttl_seconds is None:
        return cfg.default_ttl_seconds
    if isinstance(ttl_seconds, bool) or ttl_seconds not in cfg.allowed_ttl_seconds:
        raise ValidationAppError(
            code="invalid_ttl",
            message="ttlSeconds must be one of the allowed durations",
            details={"allowed_ttl_seconds": list(cfg.allowed_ttl_seconds)},
        )
    return int(ttl_seconds)


class ShareService:
    """Composes the clip store, pairing and room directories and mailbox."""

    def __init__(
        self,
        clips: ClipStore,
        pairings: PairingDirectory,
        rooms: RoomDirectory,
        mailbox: NearbyMailbox,
    ) -> None:
        self.clips = clips
        self.pairings = pairings
        self.rooms = rooms
        self.mailbox = mailbox

    def share(
        self,
        *,
        links: list[Any] | None,
        text: Any,
        ttl_seconds: Any = None,
        sender_device_id: str = "",
        sender_device_label: str | None = None,
        room_code: str | None = None,
    ) -> ShareOutcome:
        """Store a clip and relay it to nearby targets.

        Args:
            links: Raw links from the request.
            text: Optional raw text.
            ttl_seconds: Requested lifetime (None for the default).
            sender_device_id: Normalized sender id ("" when absent/invalid).
            sender_device_label: Normalized sender label.
            room_code: Normalized room code, None when not supplied.

        Returns:
            ShareOutcome with the code and the nearby relay result.

        Raises:
            ValidationAppError: Invalid payload or TTL.
            PayloadTooLargeAppError: Text over the bound.
            CodeGenerationExhaustedAppError: No free clip code.
            StoreUnavailableError: The clip could not be stored.
        """
        cfg = settings.app

        # Step 1: Validate before touching the store
        clean_links, clean_text = validate_payload(links, text)
        ttl = resolve_ttl(ttl_seconds)

        # Step 2: Claim a code and store the clip in one conditional write
        clip = Clip(links=clean_links, text=clean_text, created_at=now_ms(), reads=0)
        code = claim_unique_code(
            SHARE_CODE_ALPHABET,
            cfg.share_code_length,
            attempts=cfg.share_code_attempts,
            claim=lambda candidate: self.clips.put(candidate, clip, ttl),
            namespace="clip",
        )
        logger.info(
            "share.stored",
            extra={
                "links_count": len(clean_links),
                "has_text": clean_text is not None,
                "ttl_s": ttl,
                "sender_hash": short_hash(sender_device_id) if sender_device_id else None,
            },
        )

        # Step 3: Relay to nearby devices
        try:
            queued, reason, published = self._relay(
                code=code,
                clip=clip,
                ttl=ttl,
                sender_device_id=sender_device_id,
                sender_device_label=sender_device_label,
                room_code=room_code,
            )
        except StoreUnavailableError:
            logger.warning("share.relay_failed", extra={"stage": "resolve"})
            queued, reason, published = False, REASON_PUBLISH_FAILED, 0

        return ShareOutcome(
            code=code,
            expires_in=ttl,
            nearby_queued=queued,
            nearby_reason=reason,
            nearby_targets=published,
        )

    def _resolve_targets(
        self,
        sender_device_id: str,
        sender_device_label: str | None,
        room_code: str | None,
    ) -> _Targets:
        targets: dict[str, None] = {}
        label = sender_device_label
        paired = False

        if sender_device_id:
            lookup = self.pairings.resolve(sender_device_id)
            if lookup.pairing is not None:
                paired = True
                label = label or lookup.pairing.sender_device_label
                if lookup.pairing.receiver_device_id != sender_device_id:
                    targets[lookup.pairing.receiver_device_id] = None
                pair_reason = REASON_QUEUED
            elif lookup.malformed:
                pair_reason = REASON_INVALID_PAIR_PAYLOAD
            else:
                pair_reason = REASON_NOT_PAIRED
        else:
            pair_reason = REASON_NO_SENDER_DEVICE

        room_reason = None
        if room_code is not None:
            room = self.rooms.get_room(room_code) if room_code else None
            if room is None:
                room_reason = REASON_ROOM_NOT_FOUND
            else:
                others = [m for m in room.member_ids() if m != sender_device_id]
                if not others:
                    room_reason = REASON_ROOM_EMPTY
                for device_id in others:
                    targets[device_id] = None

        if targets:
            reason = REASON_QUEUED
        elif room_reason is not None:
            reason = room_reason
        elif pair_reason == REASON_QUEUED:
            # Paired with itself: nothing to relay
            reason = REASON_NOT_PAIRED
        else:
            reason = pair_reason

        return _Targets(device_ids=list(targets), reason=reason, sender_device_label=label, paired=paired)

    def _relay(
        self,
        *,
        code: str,
        clip: Clip,
        ttl: int,
        sender_device_id: str,
        sender_device_label: str | None,
        room_code: str | None,
    ) -> tuple[bool, str, int]:
        targets = self._resolve_targets(sender_device_id, sender_device_label, room_code)

        published = 0
        for device_id in targets.device_ids:
            message = NearbyMessage(
                message_id=new_message_id(),
                code=code,
                links=clip.links,
                text=clip.text,
                sender_device_label=targets.sender_device_label,
                created_at=now_ms(),
            )
            try:
                self.mailbox.publish(device_id, message, ttl)
                published += 1
            except StoreUnavailableError:
                logger.warning(
                    "share.publish_failed",
                    extra={"receiver_hash": short_hash(device_id)},
                )

        if targets.paired:
            try:
                self.pairings.refresh(sender_device_id)
            except StoreUnavailableError:
                logger.warning("share.pairing_refresh_failed", extra={"sender_hash": short_hash(sender_device_id)})

        if not targets.device_ids:
            return False, targets.reason, 0
        if published == 0:
            return False, REASON_PUBLISH_FAILED, 0

        logger.info(
            "share.relayed",
            extra={"targets": len(targets.device_ids), "published": published},
        )
        return True, REASON_QUEUED, published

    def fetch(self, code: str) -> Clip:
        """Consume a clip by code.

        Raises:
            NotFoundAppError: Unknown, expired or already fetched code.
        """
        clip = self.clips.consume(code)
        logger.info(
            "fetch.consumed",
            extra={"links_count": len(clip.links), "has_text": clip.text is not None},
        )
        return clip
