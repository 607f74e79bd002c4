"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from clipcode.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
    short_hash,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_clip_content():
    """Clip text and links never reach the log output."""

    logger, stream = _capture("test_clip_redaction")

    logger.info(
        "share_event",
        extra={
            "text": "my bank pin is 4321",
            "links": ["https://private.example/doc"],
            "links_count": 1,
        },
    )

    output = stream.getvalue()

    assert "4321" not in output
    assert "private.example" not in output
    assert "[REDACTED]" in output
    assert "links_count" in output


def test_sensitive_filter_redacts_identifiers_and_secrets():
    logger, stream = _capture("test_identifier_redaction")

    logger.info(
        "pair_event",
        extra={
            "sender_device_id": "device-sender-01",
            "client_ip": "203.0.113.7",
            "redis_url": "redis://:hunter2@cache:6379/0",
        },
    )

    record = json.loads(stream.getvalue())

    assert record["sender_device_id"] == f"sha256:{short_hash('device-sender-01')}"
    assert record["client_ip"] == f"sha256:{short_hash('203.0.113.7')}"
    assert record["redis_url"] == "[REDACTED]"
    assert "hunter2" not in stream.getvalue()


def test_sensitive_filter_allows_safe_fields():
    logger, stream = _capture("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "route": "/api/fetch/{code}",
            "status": 200,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "req-123" in output
    assert "/api/fetch/{code}" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts():
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "x-forwarded-for": "198.51.100.2",
                "user-agent": "pytest",
            },
        },
    )

    record = json.loads(stream.getvalue())

    assert record["headers"]["x-forwarded-for"] == f"sha256:{short_hash('198.51.100.2')}"
    assert record["headers"]["user-agent"] == "pytest"


def test_hashed_identifiers_are_not_hashed_twice():
    logger, stream = _capture("test_prehashed")

    logger.info("poll_event", extra={"receiver_device_id": "sha256:abc123"})

    record = json.loads(stream.getvalue())
    assert record["receiver_device_id"] == "sha256:abc123"


def test_request_id_from_context_is_attached():
    logger, stream = _capture("test_request_id")

    set_request_id("ctx-req-9")
    try:
        logger.info("correlated_event")
    finally:
        clear_request_id()

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "ctx-req-9"
    assert record["message"] == "correlated_event"


def test_short_hash_is_stable_and_opaque():
    assert short_hash("device-0001") == short_hash("device-0001")
    assert short_hash("device-0001") != short_hash("device-0002")
    assert len(short_hash("device-0001")) == 16
    assert "device" not in short_hash("device-0001")
