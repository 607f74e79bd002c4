"""Pydantic schemas for the nearby mailbox."""

from __future__ import annotations

from typing import List

from pydantic import Field

from clipcode.schemas.base import ApiModel


class NearbyItem(ApiModel):
    message_id: str | None = Field(
        default=None,
        description="Ack this id to remove the item; absent for legacy items already removed.",
    )
    code: str | None = None
    links: List[str] = Field(default_factory=list)
    text: str | None = None
    sender_device_label: str | None = None
    created_at: int | None = None


class PollResponse(ApiModel):
    found: bool
    item: NearbyItem | None = None


class AckRequest(ApiModel):
    receiver_device_id: str | None = None
    message_id: str | None = None


class AckResponse(ApiModel):
    ok: bool = True
    consumed: bool
