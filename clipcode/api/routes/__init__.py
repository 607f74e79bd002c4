from __future__ import annotations

from clipcode.api.routes.health import router as health_router
from clipcode.api.routes.nearby import router as nearby_router
from clipcode.api.routes.pairing import router as pairing_router
from clipcode.api.routes.room import router as room_router
from clipcode.api.routes.share import router as share_router

__all__ = ["health_router", "nearby_router", "pairing_router", "room_router", "share_router"]
