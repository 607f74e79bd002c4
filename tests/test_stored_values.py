"""Tests for decoding stored values, including legacy shapes."""

import json

from clipcode.utils.stored_values import (
    LegacyValue,
    VersionedValue,
    decode_clip,
    decode_message,
    decode_pairing_code,
    decode_room,
    decode_sender_pairing,
    read_stored,
)


def test_read_stored_tags_shapes():
    assert read_stored('{"text": "hi"}') == VersionedValue(data={"text": "hi"})
    assert read_stored("plain text") == LegacyValue(raw="plain text")
    assert read_stored("12345678") == LegacyValue(raw="12345678")
    assert read_stored('["a"]') == LegacyValue(raw='["a"]')


def test_legacy_clip_is_text_without_links():
    clip = decode_clip("remember the milk")

    assert clip.links == []
    assert clip.text == "remember the milk"


def test_versioned_clip():
    clip = decode_clip(json.dumps({"links": ["https://a.example", " "], "text": "", "createdAt": 5}))

    assert clip.links == ["https://a.example"]
    assert clip.text is None
    assert clip.created_at == 5


def test_legacy_pairing_is_receiver_id():
    pairing = decode_sender_pairing("receiver-0001")

    assert pairing is not None
    assert pairing.receiver_device_id == "receiver-0001"
    assert pairing.receiver_device_label is None


def test_pairing_without_valid_receiver_is_malformed():
    assert decode_sender_pairing(json.dumps({"receiverDeviceId": "x"})) is None
    assert decode_sender_pairing("not a device id!") is None
    assert decode_pairing_code(json.dumps({"receiverDeviceLabel": "Phone"})) is None


def test_pairing_code_keeps_label():
    code = decode_pairing_code(json.dumps({"receiverDeviceId": "receiver-0001", "receiverDeviceLabel": " Phone "}))

    assert code is not None
    assert code.receiver_device_label == "Phone"


def test_room_members_are_deduplicated_and_host_defaults():
    raw = json.dumps(
        {
            "createdAt": 1000,
            "members": [
                {"deviceId": "device-aaaa", "deviceLabel": "A", "joinedAt": 1000},
                {"deviceId": "device-bbbb", "joinedAt": 1001},
                {"deviceId": "device-aaaa", "deviceLabel": "A2", "joinedAt": 1002},
                {"deviceId": "bad"},
                "junk",
            ],
        }
    )

    room = decode_room(raw)

    assert room is not None
    assert room.member_ids() == ["device-aaaa", "device-bbbb"]
    assert room.members[0].device_label == "A2"
    assert room.host_device_id == "device-aaaa"


def test_room_without_members_or_host_is_unreadable():
    assert decode_room(json.dumps({"members": []})) is None
    assert decode_room("123456") is None


def test_message_without_valid_id_is_legacy():
    message = decode_message(json.dumps({"code": "ab2c", "links": ["https://a.example"], "messageId": "x"}))

    assert message is not None
    assert message.message_id is None
    assert message.code == "AB2C"


def test_message_must_be_an_object():
    assert decode_message("just text") is None
