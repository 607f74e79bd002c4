"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with tags metadata
and the shared error envelope, keeping documentation concerns out of the app
factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Clips",
        "description": "Share a clip under a short code and fetch it exactly once.",
    },
    {
        "name": "Pairing",
        "description": "Pair a sending device with a receiver for automatic relay.",
    },
    {
        "name": "Rooms",
        "description": "Short-lived groups that receive every share sent to the room.",
    },
    {
        "name": "Nearby",
        "description": "Receiver mailbox: poll for relayed shares and acknowledge them.",
    },
    {
        "name": "Health",
        "description": "Liveness and store readiness checks.",
    },
]

ERROR_SCHEMA = {
    "type": "object",
    "properties": {
        "error": {
            "type": "object",
            "properties": {
                "code": {"type": "string"},
                "message": {"type": "string"},
                "request_id": {"type": "string", "nullable": True},
                "details": {"type": "object"},
            },
            "required": ["code", "message"],
        }
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the error schema.

    - Adds tags metadata if not present
    - Registers ``ErrorResponse`` under components.schemas
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        schemas = components.setdefault("schemas", {})
        schemas.setdefault("ErrorResponse", ERROR_SCHEMA)

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
