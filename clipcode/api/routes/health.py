from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from clipcode.adapters.store.base import AbstractKVStore, StoreKeys
from clipcode.core.dependencies import get_keys, get_store
from clipcode.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

PROBE_TTL_SECONDS = 10


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Returns a simple status response to verify the API process is up.
    Does not touch the store.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/store")
def store_health_check(
    store: AbstractKVStore = Depends(get_store),
    keys: StoreKeys = Depends(get_keys),
) -> JSONResponse:
    """Readiness check: write and read back a short-lived probe key.

    Returns 503 with ``ok: false`` when the store cannot be reached.
    """

    try:
        store.ping()
        store.set(keys.health(), "ok", PROBE_TTL_SECONDS)
        value = store.get(keys.health())
    except StoreUnavailableError as exc:
        logger.warning("health.store_unavailable", extra={"error_code": exc.code})
        return JSONResponse(status_code=503, content={"ok": False, "store": None})

    return JSONResponse(status_code=200, content={"ok": value == "ok", "store": value})
