"""Tests for the pairing state machine."""

import pytest

from clipcode.adapters.store.base import StoreKeys
from clipcode.adapters.store.in_memory import InMemoryKVStore
from clipcode.core.errors import NotFoundAppError
from clipcode.services.pairing_directory import PairingDirectory

RECEIVER = "receiver-0001"
SENDER = "sender-0001"


@pytest.fixture
def pairings() -> PairingDirectory:
    return PairingDirectory(InMemoryKVStore(), StoreKeys())


def test_create_pair_code_is_numeric_with_ttl(pairings: PairingDirectory):
    code, expires_in = pairings.create_pair_code(RECEIVER, "Laptop")

    assert code.isdigit() and len(code) == 6
    assert expires_in == 600
    assert 0 < pairings.store.ttl(pairings.keys.pair_code(code)) <= 600


def test_confirm_links_sender_to_receiver(pairings: PairingDirectory):
    code, _ = pairings.create_pair_code(RECEIVER, "Laptop")

    pairing = pairings.confirm_pair(code, SENDER, "Phone")

    assert pairing.receiver_device_id == RECEIVER
    assert pairing.receiver_device_label == "Laptop"
    assert pairing.sender_device_label == "Phone"
    assert pairings.resolve(SENDER).pairing == pairing
    assert pairings.store.ttl(pairings.keys.sender_pairing(SENDER)) == 60 * 60 * 24 * 30


def test_pair_code_is_single_use(pairings: PairingDirectory):
    code, _ = pairings.create_pair_code(RECEIVER, None)
    pairings.confirm_pair(code, SENDER, None)

    with pytest.raises(NotFoundAppError) as exc_info:
        pairings.confirm_pair(code, "sender-0002", None)
    assert exc_info.value.code == "pair_code_not_found"


def test_unknown_code_is_not_found(pairings: PairingDirectory):
    with pytest.raises(NotFoundAppError):
        pairings.confirm_pair("000000", SENDER, None)


def test_legacy_code_value_is_receiver_id(pairings: PairingDirectory):
    pairings.store.set(pairings.keys.pair_code("123456"), RECEIVER, 600)

    pairing = pairings.confirm_pair("123456", SENDER, None)

    assert pairing.receiver_device_id == RECEIVER


def test_resolve_reports_malformed_records(pairings: PairingDirectory):
    pairings.store.set(pairings.keys.sender_pairing(SENDER), '{"receiverDeviceId": 7}')

    lookup = pairings.resolve(SENDER)

    assert lookup.pairing is None
    assert lookup.malformed is True
    assert pairings.resolve("sender-unknown").malformed is False


def test_refresh_resets_ttl(pairings: PairingDirectory):
    pairings.store.set(pairings.keys.sender_pairing(SENDER), RECEIVER, 10)

    assert pairings.refresh(SENDER) is True
    assert pairings.store.ttl(pairings.keys.sender_pairing(SENDER)) == 60 * 60 * 24 * 30


def test_unlink_removes_reciprocal_pairing(pairings: PairingDirectory):
    pairings.store.set(pairings.keys.sender_pairing(SENDER), RECEIVER)
    pairings.store.set(pairings.keys.sender_pairing(RECEIVER), SENDER)

    result = pairings.unlink(SENDER)

    assert result.receiver_device_id == RECEIVER
    assert result.removed is True
    assert result.reciprocal_removed is True
    assert pairings.resolve(RECEIVER).pairing is None


def test_unlink_keeps_receiver_pairing_to_someone_else(pairings: PairingDirectory):
    pairings.store.set(pairings.keys.sender_pairing(SENDER), RECEIVER)
    pairings.store.set(pairings.keys.sender_pairing(RECEIVER), "third-device-01")

    result = pairings.unlink(SENDER, RECEIVER)

    assert result.reciprocal_removed is False
    assert pairings.resolve(RECEIVER).pairing.receiver_device_id == "third-device-01"


def test_unlink_is_idempotent(pairings: PairingDirectory):
    first = pairings.unlink(SENDER)
    second = pairings.unlink(SENDER)

    assert first.removed is False
    assert second.removed is False
    assert second.receiver_device_id is None
