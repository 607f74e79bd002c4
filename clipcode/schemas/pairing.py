"""Pydantic schemas for device pairing."""

from __future__ import annotations

from pydantic import Field

from clipcode.schemas.base import ApiModel


class PairCreateRequest(ApiModel):
    receiver_device_id: str | None = Field(default=None, description="Device that will receive shares.")
    receiver_device_label: str | None = None


class PairCreateResponse(ApiModel):
    pair_code: str = Field(..., description="One-time code to confirm on the sending device.")
    expires_in: int


class PairConfirmRequest(ApiModel):
    pair_code: str | None = None
    sender_device_id: str | None = None
    sender_device_label: str | None = None


class PairConfirmResponse(ApiModel):
    linked: bool = True
    receiver_device_id: str
    receiver_device_label: str | None = None
    expires_in: int


class PairUnlinkRequest(ApiModel):
    sender_device_id: str | None = None
    receiver_device_id: str | None = Field(
        default=None,
        description="Defaults to the receiver the sender is currently paired with.",
    )


class PairUnlinkResponse(ApiModel):
    ok: bool = True
    sender_device_id: str
    receiver_device_id: str | None = None
    removed: bool
    reciprocal_removed: bool


class PairStatusResponse(ApiModel):
    linked: bool
    receiver_device_id: str | None = None
    receiver_device_label: str | None = None
