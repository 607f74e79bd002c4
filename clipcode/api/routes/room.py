from fastapi import APIRouter, Depends

from clipcode.core.config import settings
from clipcode.core.dependencies import get_room_directory
from clipcode.core.errors import ValidationAppError
from clipcode.core.rate_limit import rate_limit
from clipcode.schemas.room import RoomCreateRequest, RoomJoinRequest, RoomResponse
from clipcode.services.room_directory import RoomDirectory
from clipcode.utils.validators import normalize_label, normalize_room_code, require_device_id

router = APIRouter(prefix="/room", tags=["Rooms"])


@router.post(
    "/create",
    response_model=RoomResponse,
    dependencies=[Depends(rate_limit("room_create"))],
)
def create_room(
    body: RoomCreateRequest,
    rooms: RoomDirectory = Depends(get_room_directory),
) -> RoomResponse:
    host_device_id = require_device_id(body.host_device_id, "hostDeviceId")
    label = normalize_label(body.host_device_label, settings.app.max_label_chars) or None

    room_code, room, expires_in = rooms.create_room(host_device_id, label)
    return RoomResponse(room_code=room_code, expires_in=expires_in, member_count=len(room.members))


@router.post(
    "/join",
    response_model=RoomResponse,
    dependencies=[Depends(rate_limit("room_join"))],
)
def join_room(
    body: RoomJoinRequest,
    rooms: RoomDirectory = Depends(get_room_directory),
) -> RoomResponse:
    """Join a room, or refresh this device's label when already a member.

    Raises:
        ValidationAppError: 400 for a missing room code or device id.
        NotFoundAppError: 404 when the room is absent or expired.
    """
    cfg = settings.app
    room_code = normalize_room_code(body.room_code, cfg.room_code_length)
    if not room_code:
        raise ValidationAppError(
            code="invalid_room_code",
            message="roomCode is required",
            details={"field": "roomCode"},
        )
    device_id = require_device_id(body.device_id, "deviceId")
    label = normalize_label(body.device_label, cfg.max_label_chars) or None

    room, expires_in = rooms.join_room(room_code, device_id, label)
    return RoomResponse(room_code=room_code, expires_in=expires_in, member_count=len(room.members))
