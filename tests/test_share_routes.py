"""HTTP tests for share and fetch."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from clipcode.core.config import settings
from clipcode.core.errors import StoreUnavailableError


def _share(client: TestClient, **body) -> dict:
    response = client.post("/api/share", json=body)
    assert response.status_code == 200, response.text
    return response.json()


def test_share_then_fetch_exactly_once(client: TestClient):
    shared = _share(client, links=["https://a.example"], ttlSeconds=180)

    assert shared["expiresIn"] == 180
    assert shared["nearbyQueued"] is False
    assert shared["nearbyReason"] == "no_sender_device"

    fetched = client.get(f"/api/fetch/{shared['code']}")
    assert fetched.status_code == 200
    assert fetched.json() == {"code": shared["code"], "links": ["https://a.example"], "consumed": True}

    again = client.get(f"/api/fetch/{shared['code']}")
    assert again.status_code == 404
    assert again.json()["error"]["code"] == "code_not_found"


def test_fetch_normalizes_code(client: TestClient):
    shared = _share(client, text="hello")

    fetched = client.get(f"/api/fetch/{shared['code'].lower()}")

    assert fetched.status_code == 200
    assert fetched.json()["text"] == "hello"


def test_share_defaults_ttl(client: TestClient):
    assert _share(client, text="hello")["expiresIn"] == 300


def test_ftp_link_is_rejected(client: TestClient):
    response = client.post("/api/share", json={"links": ["ftp://x"], "ttlSeconds": 180})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_links"


def test_text_too_large_is_413(client: TestClient):
    response = client.post("/api/share", json={"text": "x" * 5001})

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "text_too_large"


@pytest.mark.parametrize(
    "body, code",
    [
        ({}, "empty_payload"),
        ({"links": [], "text": "   "}, "empty_payload"),
        ({"text": "hi", "ttlSeconds": 42}, "invalid_ttl"),
        ({"links": [f"https://a.example/{i}" for i in range(11)]}, "too_many_links"),
    ],
)
def test_share_validation_errors(client: TestClient, body, code):
    response = client.post("/api/share", json=body)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == code


def test_malformed_body_is_400(client: TestClient):
    response = client.post("/api/share", content=b"not json", headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_request"


def test_invalid_sender_device_id_is_treated_as_absent(client: TestClient):
    shared = _share(client, text="hi", senderDeviceId="bad id")

    assert shared["nearbyReason"] == "no_sender_device"


@pytest.mark.parametrize("code", ["ABCDEFGHJKLMN", "%20%20"])
def test_fetch_rejects_bad_codes(client: TestClient, code):
    response = client.get(f"/api/fetch/{code}")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_code"


def test_21st_share_from_one_ip_is_rate_limited(client: TestClient):
    headers = {"X-Forwarded-For": "203.0.113.7"}
    for _ in range(20):
        assert client.post("/api/share", json={"text": "hi"}, headers=headers).status_code == 200

    response = client.post("/api/share", json={"text": "hi"}, headers=headers)

    assert response.status_code == 429
    assert response.json()["error"]["code"] == "rate_limited"
    assert 0 < int(response.headers["Retry-After"]) <= 60

    other_ip = client.post("/api/share", json={"text": "hi"}, headers={"X-Forwarded-For": "198.51.100.2"})
    assert other_ip.status_code == 200


def test_rate_limit_can_be_disabled(client: TestClient, monkeypatch):
    monkeypatch.setattr(settings.app, "rate_limit_enabled", False)
    monkeypatch.setattr(settings.app, "rate_limit_fetch", (1, 60))

    for _ in range(3):
        assert client.get("/api/fetch/ZZZZ").status_code == 404


def test_store_failure_is_generic_500(client: TestClient, store, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreUnavailableError(code="store_unavailable", message="connection refused on cache:6379")

    monkeypatch.setattr(store, "get_and_delete", broken)

    response = TestClient(client.app, raise_server_exceptions=False).get("/api/fetch/ABCD")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "internal_server_error"
    assert "6379" not in response.text
