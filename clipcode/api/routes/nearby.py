from fastapi import APIRouter, Depends, Query

from clipcode.core.dependencies import get_mailbox
from clipcode.core.errors import ValidationAppError
from clipcode.core.rate_limit import rate_limit
from clipcode.schemas.nearby import AckRequest, AckResponse, NearbyItem, PollResponse
from clipcode.services.nearby_mailbox import NearbyMailbox
from clipcode.utils.validators import normalize_message_id, require_device_id

router = APIRouter(prefix="/nearby", tags=["Nearby"])


@router.get(
    "/poll",
    response_model=PollResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("nearby_poll"))],
)
def poll_mailbox(
    receiver_device_id: str | None = Query(default=None, alias="receiverDeviceId"),
    mailbox: NearbyMailbox = Depends(get_mailbox),
) -> PollResponse:
    """Peek at the oldest pending item; it stays queued until acked."""
    receiver = require_device_id(receiver_device_id, "receiverDeviceId")

    result = mailbox.poll_once(receiver)
    if not result.found or result.item is None:
        return PollResponse(found=False)

    message = result.item
    return PollResponse(
        found=True,
        item=NearbyItem(
            message_id=message.message_id,
            code=message.code,
            links=message.links,
            text=message.text,
            sender_device_label=message.sender_device_label,
            created_at=message.created_at,
        ),
    )


@router.post(
    "/ack",
    response_model=AckResponse,
    dependencies=[Depends(rate_limit("nearby_ack"))],
)
def ack_message(
    body: AckRequest,
    mailbox: NearbyMailbox = Depends(get_mailbox),
) -> AckResponse:
    """Remove an item by messageId. Unknown ids answer ``consumed: false``."""
    receiver = require_device_id(body.receiver_device_id, "receiverDeviceId")
    message_id = normalize_message_id(body.message_id)
    if not message_id:
        raise ValidationAppError(
            code="invalid_message_id",
            message="messageId is required (8-100 chars of letters, digits, '_' or '-')",
            details={"field": "messageId"},
        )

    return AckResponse(ok=True, consumed=mailbox.ack(receiver, message_id))
