"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the server entry point build exactly the same application.
"""

from __future__ import annotations

from fastapi import FastAPI

from clipcode.api.routes import (
    health_router,
    nearby_router,
    pairing_router,
    room_router,
    share_router,
)
from clipcode.core.config import settings
from clipcode.core.exception_handlers import setup_exception_handlers
from clipcode.core.logging import configure_logging
from clipcode.core.middleware import request_id_middleware
from clipcode.core.openapi import apply_openapi_customizations

API_PREFIX = "/api"


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="ClipCode API",
        description=(
            "Share links and text between devices with short, single-use codes. "
            "Clips expire after a chosen TTL and are deleted on first fetch. "
            "Paired devices and room members receive shares through a polled "
            "mailbox with explicit acknowledgement."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(share_router, prefix=API_PREFIX)
    app.include_router(pairing_router, prefix=API_PREFIX)
    app.include_router(room_router, prefix=API_PREFIX)
    app.include_router(nearby_router, prefix=API_PREFIX)
    app.include_router(health_router)

    # OpenAPI customizations (tags metadata)
    apply_openapi_customizations(app)

    return app
