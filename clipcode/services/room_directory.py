"""Room directory: short-lived multi-device broadcast groups."""

from __future__ import annotations

import logging

from clipcode.adapters.store.base import AbstractKVStore, StoreKeys
from clipcode.core.config import settings
from clipcode.core.errors import NotFoundAppError
from clipcode.core.logging import short_hash
from clipcode.schemas.records import Room, RoomMember
from clipcode.utils.code_generator import NUMERIC_ALPHABET, claim_unique_code
from clipcode.utils.stored_values import decode_room, now_ms

logger = logging.getLogger(__name__)


def _room_not_found() -> NotFoundAppError:
    return NotFoundAppError(code="room_not_found", message="Room not found or expired")


class RoomDirectory:
    """Creates rooms and manages their member lists."""

    def __init__(self, store: AbstractKVStore, keys: StoreKeys) -> None:
        self.store = store
        self.keys = keys

    def create_room(self, host_device_id: str, host_device_label: str | None) -> tuple[str, Room, int]:
        """Create a room with the host as its only member.

        Returns:
            Tuple of (room_code, room, expires_in_seconds).

        Raises:
            CodeGenerationExhaustedAppError: If no free code was found.
        """
        cfg = settings.app
        created_at = now_ms()
        room = Room(
            host_device_id=host_device_id,
            host_device_label=host_device_label,
            created_at=created_at,
            members=[
                RoomMember(
                    device_id=host_device_id,
                    device_label=host_device_label,
                    joined_at=created_at,
                )
            ],
        )
        record = room.to_json()

        room_code = claim_unique_code(
            NUMERIC_ALPHABET,
            cfg.room_code_length,
            attempts=cfg.room_code_attempts,
            claim=lambda candidate: self.store.set(
                self.keys.room(candidate),
                record,
                cfg.room_ttl_seconds,
                only_if_absent=True,
            ),
            namespace="room",
        )

        logger.info(
            "room.created",
            extra={"host_hash": short_hash(host_device_id), "ttl_s": cfg.room_ttl_seconds},
        )
        return room_code, room, cfg.room_ttl_seconds

    def get_room(self, room_code: str) -> Room | None:
        raw = self.store.get(self.keys.room(room_code))
        return decode_room(raw) if raw is not None else None

    def _remaining_ttl(self, key: str, room: Room) -> int:
        ttl = self.store.ttl(key)
        if ttl > 0:
            return ttl
        if ttl == -2:
            raise _room_not_found()
        # No TTL on the key: derive what is left of the original budget
        elapsed = (now_ms() - room.created_at) // 1000
        remaining = settings.app.room_ttl_seconds - elapsed
        if remaining <= 0:
            raise _room_not_found()
        return remaining

    def join_room(self, room_code: str, device_id: str, device_label: str | None) -> tuple[Room, int]:
        """Add a device to a room, or update its label when already a member.

        The record is rewritten with the room's remaining TTL so joining never
        extends its lifetime.

        Returns:
            Tuple of (room, expires_in_seconds).

        Raises:
            NotFoundAppError: If the room is absent, expired or unreadable.
        """
        key = self.keys.room(room_code)
        raw = self.store.get(key)
        room = decode_room(raw) if raw is not None else None
        if room is None:
            raise _room_not_found()

        existing = next((m for m in room.members if m.device_id == device_id), None)
        if existing is not None:
            existing.device_label = device_label or existing.device_label
        else:
            room.members.append(
                RoomMember(device_id=device_id, device_label=device_label, joined_at=now_ms())
            )

        expires_in = self._remaining_ttl(key, room)
        self.store.set(key, room.to_json(), expires_in)

        logger.info(
            "room.joined",
            extra={
                "device_hash": short_hash(device_id),
                "member_count": len(room.members),
                "rejoin": existing is not None,
            },
        )
        return room, expires_in
