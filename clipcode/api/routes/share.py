from fastapi import APIRouter, Depends

from clipcode.core.config import settings
from clipcode.core.dependencies import get_share_service
from clipcode.core.errors import ValidationAppError
from clipcode.core.rate_limit import rate_limit
from clipcode.schemas.share import FetchResponse, ShareRequest, ShareResponse
from clipcode.services.share_service import ShareService
from clipcode.utils.validators import (
    normalize_device_id,
    normalize_label,
    normalize_room_code,
    normalize_share_code,
)

router = APIRouter(tags=["Clips"])


@router.post(
    "/share",
    response_model=ShareResponse,
    dependencies=[Depends(rate_limit("share"))],
)
def share_clip(
    body: ShareRequest,
    service: ShareService = Depends(get_share_service),
) -> ShareResponse:
    """Store a clip under a fresh code and relay it to nearby devices.

    A malformed senderDeviceId is ignored rather than rejected; the response
    then reports ``no_sender_device``. A blank roomCode counts as absent.

    Raises:
        ValidationAppError: 400 for invalid links, ttl or empty payload.
        PayloadTooLargeAppError: 413 when text exceeds the bound.
        CodeGenerationExhaustedAppError: 500 when no free code was found.
    """
    cfg = settings.app
    room_code = None
    if body.room_code is not None and body.room_code.strip():
        room_code = normalize_room_code(body.room_code, cfg.room_code_length)

    outcome = service.share(
        links=body.links,
        text=body.text,
        ttl_seconds=body.ttl_seconds,
        sender_device_id=normalize_device_id(body.sender_device_id),
        sender_device_label=normalize_label(body.sender_device_label, cfg.max_label_chars) or None,
        room_code=room_code,
    )
    return ShareResponse(
        code=outcome.code,
        expires_in=outcome.expires_in,
        nearby_queued=outcome.nearby_queued,
        nearby_reason=outcome.nearby_reason,
        nearby_targets=outcome.nearby_targets,
    )


@router.get(
    "/fetch/{code}",
    response_model=FetchResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("fetch"))],
)
def fetch_clip(
    code: str,
    service: ShareService = Depends(get_share_service),
) -> FetchResponse:
    """Return a clip and delete it; a second fetch of the same code is 404."""
    normalized = normalize_share_code(code)
    if not normalized or len(normalized) > settings.app.max_fetch_code_chars:
        raise ValidationAppError(
            code="invalid_code",
            message="Invalid code",
            details={"limit": settings.app.max_fetch_code_chars},
        )

    clip = service.fetch(normalized)
    return FetchResponse(code=normalized, links=clip.links, text=clip.text, consumed=True)
