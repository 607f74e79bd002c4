from fastapi import APIRouter, Depends, Query

from clipcode.core.config import settings
from clipcode.core.dependencies import get_pairing_directory
from clipcode.core.errors import ValidationAppError
from clipcode.core.rate_limit import rate_limit
from clipcode.schemas.pairing import (
    PairConfirmRequest,
    PairConfirmResponse,
    PairCreateRequest,
    PairCreateResponse,
    PairStatusResponse,
    PairUnlinkRequest,
    PairUnlinkResponse,
)
from clipcode.services.pairing_directory import PairingDirectory
from clipcode.utils.validators import (
    normalize_device_id,
    normalize_label,
    normalize_pair_code,
    require_device_id,
)

router = APIRouter(prefix="/pair", tags=["Pairing"])


@router.post(
    "/create",
    response_model=PairCreateResponse,
    dependencies=[Depends(rate_limit("pair_create"))],
)
def create_pair_code(
    body: PairCreateRequest,
    pairings: PairingDirectory = Depends(get_pairing_directory),
) -> PairCreateResponse:
    """Issue a one-time pairing code for the receiving device."""
    receiver_device_id = require_device_id(body.receiver_device_id, "receiverDeviceId")
    label = normalize_label(body.receiver_device_label, settings.app.max_label_chars) or None

    pair_code, expires_in = pairings.create_pair_code(receiver_device_id, label)
    return PairCreateResponse(pair_code=pair_code, expires_in=expires_in)


@router.post(
    "/confirm",
    response_model=PairConfirmResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("pair_confirm"))],
)
def confirm_pair(
    body: PairConfirmRequest,
    pairings: PairingDirectory = Depends(get_pairing_directory),
) -> PairConfirmResponse:
    """Link the sending device to the receiver that issued the code.

    Raises:
        ValidationAppError: 400 for a missing code or sender id.
        NotFoundAppError: 404 when the code is unknown, expired or used.
    """
    cfg = settings.app
    pair_code = normalize_pair_code(body.pair_code, cfg.pair_code_length)
    if not pair_code:
        raise ValidationAppError(
            code="invalid_pair_code",
            message="pairCode is required",
            details={"field": "pairCode"},
        )
    sender_device_id = require_device_id(body.sender_device_id, "senderDeviceId")
    label = normalize_label(body.sender_device_label, cfg.max_label_chars) or None

    pairing = pairings.confirm_pair(pair_code, sender_device_id, label)
    return PairConfirmResponse(
        linked=True,
        receiver_device_id=pairing.receiver_device_id,
        receiver_device_label=pairing.receiver_device_label,
        expires_in=cfg.pairing_ttl_seconds,
    )


@router.post(
    "/unlink",
    response_model=PairUnlinkResponse,
    dependencies=[Depends(rate_limit("pair_unlink"))],
)
def unlink_pair(
    body: PairUnlinkRequest,
    pairings: PairingDirectory = Depends(get_pairing_directory),
) -> PairUnlinkResponse:
    """Remove the sender's pairing (and the reciprocal one). Idempotent."""
    sender_device_id = require_device_id(body.sender_device_id, "senderDeviceId")
    receiver_device_id = normalize_device_id(body.receiver_device_id) or None

    result = pairings.unlink(sender_device_id, receiver_device_id)
    return PairUnlinkResponse(
        ok=True,
        sender_device_id=sender_device_id,
        receiver_device_id=result.receiver_device_id,
        removed=result.removed,
        reciprocal_removed=result.reciprocal_removed,
    )


@router.get(
    "/status",
    response_model=PairStatusResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("pair_status"))],
)
def pair_status(
    device_id: str | None = Query(default=None, alias="deviceId"),
    pairings: PairingDirectory = Depends(get_pairing_directory),
) -> PairStatusResponse:
    """Report whether a sender is paired, and with which receiver."""
    sender_device_id = require_device_id(device_id, "deviceId")

    lookup = pairings.resolve(sender_device_id)
    if lookup.pairing is None:
        return PairStatusResponse(linked=False)
    return PairStatusResponse(
        linked=True,
        receiver_device_id=lookup.pairing.receiver_device_id,
        receiver_device_label=lookup.pairing.receiver_device_label,
    )
