"""Pydantic schemas for rooms."""

from __future__ import annotations

from pydantic import Field

from clipcode.schemas.base import ApiModel


class RoomCreateRequest(ApiModel):
    host_device_id: str | None = None
    host_device_label: str | None = None


class RoomJoinRequest(ApiModel):
    room_code: str | None = None
    device_id: str | None = None
    device_label: str | None = None


class RoomResponse(ApiModel):
    room_code: str
    expires_in: int = Field(..., description="Seconds left in the room's lifetime.")
    member_count: int
