"""Tests for input normalization helpers."""

import pytest

from clipcode.core.errors import ValidationAppError
from clipcode.utils.validators import (
    is_http_url,
    normalize_device_id,
    normalize_label,
    normalize_message_id,
    normalize_pair_code,
    normalize_room_code,
    normalize_share_code,
    require_device_id,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("  device_0001 ", "device_0001"),
        ("a" * 64, "a" * 64),
        ("short", ""),
        ("a" * 65, ""),
        ("has space 01", ""),
        (None, ""),
        (12345678, "12345678"),
    ],
)
def test_normalize_device_id(value, expected):
    assert normalize_device_id(value) == expected


def test_normalize_message_id_allows_longer_ids():
    assert normalize_message_id("m" * 100) == "m" * 100
    assert normalize_message_id("m" * 101) == ""
    assert normalize_message_id("bad id!") == ""


def test_normalize_label_trims_then_cuts():
    assert normalize_label("   Kitchen tablet   ", 40) == "Kitchen tablet"
    assert normalize_label("x" * 50, 40) == "x" * 40
    assert normalize_label(None, 40) == ""


def test_code_normalizers():
    assert normalize_share_code(" ab2c ") == "AB2C"
    assert normalize_pair_code(" 123-456 ", 6) == "123456"
    assert normalize_pair_code("12 34 56 78", 6) == "123456"
    assert normalize_room_code("room 4821-09", 6) == "482109"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://a.example", True),
        ("http://a.example/path?q=1", True),
        ("ftp://x", False),
        ("javascript:alert(1)", False),
        ("https://", False),
        ("a.example", False),
    ],
)
def test_is_http_url(url, expected):
    assert is_http_url(url) is expected


def test_require_device_id_raises_with_field():
    with pytest.raises(ValidationAppError) as exc_info:
        require_device_id("nope", "receiverDeviceId")

    assert exc_info.value.code == "invalid_device_id"
    assert exc_info.value.details == {"field": "receiverDeviceId"}
