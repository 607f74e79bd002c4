"""Tests for the at-least-once nearby mailbox."""

import json

import pytest

from clipcode.adapters.store.base import StoreKeys
from clipcode.adapters.store.in_memory import InMemoryKVStore
from clipcode.schemas.records import NearbyMessage
from clipcode.services.nearby_mailbox import NearbyMailbox, new_message_id

RECEIVER = "receiver-0001"


@pytest.fixture
def mailbox() -> NearbyMailbox:
    return NearbyMailbox(InMemoryKVStore(), StoreKeys())


def _message(code: str = "AB2C", **overrides) -> NearbyMessage:
    fields = {"message_id": new_message_id(), "code": code, "links": ["https://a.example"], "created_at": 1}
    fields.update(overrides)
    return NearbyMessage(**fields)


def test_poll_empty_mailbox(mailbox: NearbyMailbox):
    assert mailbox.poll_once(RECEIVER).found is False


def test_poll_is_a_non_destructive_peek(mailbox: NearbyMailbox):
    message = _message()
    mailbox.publish(RECEIVER, message, 300)

    first = mailbox.poll_once(RECEIVER)
    second = mailbox.poll_once(RECEIVER)

    assert first.found is True
    assert first.item.message_id == message.message_id
    assert second.item == first.item


def test_ack_removes_by_message_id(mailbox: NearbyMailbox):
    first, second = _message("AAAA"), _message("BBBB")
    mailbox.publish(RECEIVER, first, 300)
    mailbox.publish(RECEIVER, second, 300)

    assert mailbox.ack(RECEIVER, second.message_id) is True
    assert mailbox.poll_once(RECEIVER).item.code == "AAAA"

    assert mailbox.ack(RECEIVER, first.message_id) is True
    assert mailbox.poll_once(RECEIVER).found is False
    assert mailbox.store.kind(mailbox.keys.mailbox(RECEIVER)) == "none"


def test_ack_unknown_id_is_idempotent(mailbox: NearbyMailbox):
    message = _message()
    mailbox.publish(RECEIVER, message, 300)

    assert mailbox.ack(RECEIVER, "unknown-message-id") is False
    assert mailbox.ack(RECEIVER, message.message_id) is True
    assert mailbox.ack(RECEIVER, message.message_id) is False
    assert mailbox.ack("nobody-device", message.message_id) is False


def test_publish_rearms_queue_ttl(mailbox: NearbyMailbox):
    mailbox.publish(RECEIVER, _message(), 180)
    mailbox.publish(RECEIVER, _message(), 3600)

    assert 180 < mailbox.store.ttl(mailbox.keys.mailbox(RECEIVER)) <= 3600


def test_invalid_entries_are_discarded_on_poll(mailbox: NearbyMailbox):
    key = mailbox.keys.mailbox(RECEIVER)
    mailbox.store.list_append(key, "not json", 300)
    mailbox.store.list_append(key, json.dumps({"messageId": "empty-message", "links": []}), 300)
    good = _message()
    mailbox.publish(RECEIVER, good, 300)

    result = mailbox.poll_once(RECEIVER)

    assert result.item.message_id == good.message_id
    assert len(mailbox.store.list_items(key)) == 1


def test_queued_entry_without_id_is_delivered_once(mailbox: NearbyMailbox):
    key = mailbox.keys.mailbox(RECEIVER)
    mailbox.store.list_append(key, json.dumps({"code": "OLD1", "text": "legacy"}), 300)

    first = mailbox.poll_once(RECEIVER)

    assert first.found is True
    assert first.item.message_id is None
    assert mailbox.poll_once(RECEIVER).found is False


class TestLegacySingleObject:
    def test_without_message_id_is_consumed_on_read(self, mailbox: NearbyMailbox):
        key = mailbox.keys.mailbox(RECEIVER)
        mailbox.store.set(key, json.dumps({"code": "ab2c", "links": ["https://a.example"]}), 300)

        result = mailbox.poll_once(RECEIVER)

        assert result.found is True
        assert result.item.code == "AB2C"
        assert mailbox.store.exists(key) is False

    def test_with_message_id_behaves_like_one_item_queue(self, mailbox: NearbyMailbox):
        key = mailbox.keys.mailbox(RECEIVER)
        mailbox.store.set(key, json.dumps({"messageId": "legacy-msg-01", "text": "hi"}), 300)

        assert mailbox.poll_once(RECEIVER).item.message_id == "legacy-msg-01"
        assert mailbox.poll_once(RECEIVER).found is True
        assert mailbox.ack(RECEIVER, "legacy-msg-01") is True
        assert mailbox.poll_once(RECEIVER).found is False

    def test_empty_value_is_dropped(self, mailbox: NearbyMailbox):
        key = mailbox.keys.mailbox(RECEIVER)
        mailbox.store.set(key, "garbage", 300)

        assert mailbox.poll_once(RECEIVER).found is False
        assert mailbox.store.exists(key) is False

    def test_publish_migrates_legacy_value_into_queue(self, mailbox: NearbyMailbox):
        key = mailbox.keys.mailbox(RECEIVER)
        mailbox.store.set(key, json.dumps({"code": "OLD1", "text": "legacy"}), 300)
        new = _message("NEW1")

        mailbox.publish(RECEIVER, new, 300)

        items = mailbox.store.list_items(key)
        assert len(items) == 2
        migrated = mailbox.poll_once(RECEIVER).item
        assert migrated.code == "OLD1"
        assert migrated.message_id is not None
