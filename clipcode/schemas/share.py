"""Pydantic schemas for share and fetch."""

from __future__ import annotations

from typing import Any, List

from pydantic import Field

from clipcode.schemas.base import ApiModel


class ShareRequest(ApiModel):
    """Clip to store and, optionally, relay to nearby devices."""

    links: List[Any] | None = Field(
        default=None,
        description="http/https URLs (trimmed, blanks dropped, max 10).",
    )
    text: str | None = Field(default=None, description="Optional free text (max 5000 chars).")
    ttl_seconds: int | None = Field(
        default=None,
        description="Clip lifetime; one of 180, 300, 600, 1800, 3600. Defaults to 300.",
    )
    sender_device_id: str | None = Field(
        default=None,
        description="Sharing device; enables relay to its paired receiver.",
    )
    sender_device_label: str | None = Field(default=None, description="Label shown to receivers.")
    room_code: str | None = Field(
        default=None,
        description="Room whose other members receive the share.",
    )


class ShareResponse(ApiModel):
    code: str = Field(..., description="Clip code to enter on the receiving device.")
    expires_in: int = Field(..., description="Seconds until the clip expires.")
    nearby_queued: bool = Field(..., description="Whether at least one nearby device was notified.")
    nearby_reason: str = Field(
        ...,
        description=(
            "queued, no_sender_device, not_paired, invalid_pair_payload, "
            "room_not_found, room_empty or publish_failed."
        ),
    )
    nearby_targets: int = Field(0, description="Number of mailboxes the share was published to.")


class FetchResponse(ApiModel):
    """Clip content; the clip no longer exists once this is returned."""

    code: str
    links: List[str] = Field(default_factory=list)
    text: str | None = None
    consumed: bool = True
