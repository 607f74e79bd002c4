"""Decoding of raw store values into records.

Values written by older releases come in two shapes: a JSON object
(``VersionedValue``) or a bare string such as a device id or clip text
(``LegacyValue``). ``read_stored`` tags the raw string once and the
``decode_*`` helpers normalize either variant into a single record type,
so no service code branches on the stored shape.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Union

from clipcode.core.config import settings
from clipcode.schemas.records import (
    Clip,
    NearbyMessage,
    PairingCode,
    Room,
    RoomMember,
    SenderPairing,
)
from clipcode.utils.validators import (
    normalize_device_id,
    normalize_label,
    normalize_message_id,
)


@dataclass(frozen=True)
class LegacyValue:
    """Pre-schema value stored as a plain string."""

    raw: str


@dataclass(frozen=True)
class VersionedValue:
    """JSON object record."""

    data: dict[str, Any]


StoredValue = Union[LegacyValue, VersionedValue]


def read_stored(raw: str) -> StoredValue:
    """Tag a raw store value with its shape.

    Only JSON objects count as versioned records. Anything else, including
    strings that happen to parse as JSON numbers, is legacy.
    """
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return LegacyValue(raw=raw)
    if isinstance(parsed, dict):
        return VersionedValue(data=parsed)
    return LegacyValue(raw=raw)


def now_ms() -> int:
    return int(time.time() * 1000)


def _label(value: Any) -> str | None:
    return normalize_label(value, settings.app.max_label_chars) or None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _links(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _timestamp(value: Any, default: int | None) -> int | None:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def decode_clip(raw: str) -> Clip:
    """Normalize a stored clip; a bare string is the clip's text."""
    value = read_stored(raw)
    if isinstance(value, LegacyValue):
        return Clip(links=[], text=_text(value.raw))

    data = value.data
    return Clip(
        links=_links(data.get("links")),
        text=_text(data.get("text")),
        created_at=_timestamp(data.get("createdAt"), 0) or 0,
        reads=_timestamp(data.get("reads"), 0) or 0,
    )


def decode_pairing_code(raw: str) -> PairingCode | None:
    """Normalize a pairing code record; a bare string is the receiver id."""
    value = read_stored(raw)
    if isinstance(value, LegacyValue):
        receiver_device_id = normalize_device_id(value.raw)
        return PairingCode(receiver_device_id=receiver_device_id) if receiver_device_id else None

    receiver_device_id = normalize_device_id(value.data.get("receiverDeviceId"))
    if not receiver_device_id:
        return None
    return PairingCode(
        receiver_device_id=receiver_device_id,
        receiver_device_label=_label(value.data.get("receiverDeviceLabel")),
    )


def decode_sender_pairing(raw: str) -> SenderPairing | None:
    """Normalize a sender pairing; a bare string is the receiver id.

    Returns:
        The pairing, or None when the record does not name a valid receiver.
    """
    value = read_stored(raw)
    if isinstance(value, LegacyValue):
        receiver_device_id = normalize_device_id(value.raw)
        return SenderPairing(receiver_device_id=receiver_device_id) if receiver_device_id else None

    data = value.data
    receiver_device_id = normalize_device_id(data.get("receiverDeviceId"))
    if not receiver_device_id:
        return None
    return SenderPairing(
        receiver_device_id=receiver_device_id,
        receiver_device_label=_label(data.get("receiverDeviceLabel")),
        sender_device_label=_label(data.get("senderDeviceLabel")),
    )


def _members(value: Any) -> list[RoomMember]:
    if not isinstance(value, list):
        return []
    deduped: dict[str, RoomMember] = {}
    for item in value:
        if not isinstance(item, dict):
            continue
        device_id = normalize_device_id(item.get("deviceId"))
        if not device_id:
            continue
        deduped[device_id] = RoomMember(
            device_id=device_id,
            device_label=_label(item.get("deviceLabel")),
            joined_at=_timestamp(item.get("joinedAt"), None) or now_ms(),
        )
    return list(deduped.values())


def decode_room(raw: str) -> Room | None:
    """Normalize a room record. Rooms never had a legacy shape."""
    value = read_stored(raw)
    if isinstance(value, LegacyValue):
        return None

    data = value.data
    members = _members(data.get("members"))
    host_device_id = normalize_device_id(data.get("hostDeviceId"))
    if not host_device_id and members:
        host_device_id = members[0].device_id
    if not host_device_id:
        return None
    return Room(
        host_device_id=host_device_id,
        host_device_label=_label(data.get("hostDeviceLabel")),
        created_at=_timestamp(data.get("createdAt"), None) or now_ms(),
        members=members,
    )


def decode_message(raw: str) -> NearbyMessage | None:
    """Normalize a mailbox entry.

    Returns:
        The message (``message_id`` None for legacy entries), or None when
        the value is not a JSON object.
    """
    value = read_stored(raw)
    if isinstance(value, LegacyValue):
        return None

    data = value.data
    code = _text(data.get("code"))
    return NearbyMessage(
        message_id=normalize_message_id(data.get("messageId")) or None,
        code=code.upper() if code else None,
        links=_links(data.get("links")),
        text=_text(data.get("text")),
        sender_device_label=_label(data.get("senderDeviceLabel")),
        created_at=_timestamp(data.get("createdAt"), None),
    )
