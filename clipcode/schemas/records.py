"""Pydantic models for records persisted in the key-value store.

Records are serialized with camelCase keys and without null fields, which
keeps them readable by clients that wrote the original JSON shapes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StoredRecord(BaseModel):
    """Base class for stored records (camelCase JSON, nulls omitted)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class Clip(StoredRecord):
    """Shared payload addressed by a clip code."""

    links: list[str] = Field(default_factory=list)
    text: str | None = None
    created_at: int = 0
    reads: int = 0

    def is_empty(self) -> bool:
        return not self.links and not self.text


class PairingCode(StoredRecord):
    """Short-lived pairing code issued by a receiver."""

    receiver_device_id: str
    receiver_device_label: str | None = None


class SenderPairing(StoredRecord):
    """Directed link from a sender device to the receiver it trusts."""

    receiver_device_id: str
    receiver_device_label: str | None = None
    sender_device_label: str | None = None


class RoomMember(StoredRecord):
    device_id: str
    device_label: str | None = None
    joined_at: int


class Room(StoredRecord):
    """Multi-device broadcast group."""

    host_device_id: str
    host_device_label: str | None = None
    created_at: int
    members: list[RoomMember] = Field(default_factory=list)

    def member_ids(self) -> list[str]:
        return [member.device_id for member in self.members]


class NearbyMessage(StoredRecord):
    """One relayed share waiting in a receiver's mailbox.

    ``message_id`` is None only for legacy single-object mailbox values.
    """

    message_id: str | None = None
    code: str | None = None
    links: list[str] = Field(default_factory=list)
    text: str | None = None
    sender_device_label: str | None = None
    created_at: int | None = None

    def is_empty(self) -> bool:
        return not self.links and not self.text
