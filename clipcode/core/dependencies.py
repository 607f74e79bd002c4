"""Process-wide store and service providers used as FastAPI dependencies.

Services are cheap wrappers around the shared store and are built per
request; only the store (and its connection pool) is cached.
"""

from __future__ import annotations

from clipcode.adapters.store.base import AbstractKVStore, StoreKeys
from clipcode.adapters.store.factory import create_store
from clipcode.core.config import settings
from clipcode.services.clip_store import ClipStore
from clipcode.services.nearby_mailbox import NearbyMailbox
from clipcode.services.pairing_directory import PairingDirectory
from clipcode.services.room_directory import RoomDirectory
from clipcode.services.share_service import ShareService

_store: AbstractKVStore | None = None


def get_store() -> AbstractKVStore:
    """Return the shared store, creating it from settings on first use."""

    global _store
    if _store is None:
        _store = create_store(settings.store)
    return _store


def set_store(store: AbstractKVStore | None) -> None:
    """Replace the shared store (None forces a rebuild on next use)."""

    global _store
    _store = store


def get_keys() -> StoreKeys:
    return StoreKeys(prefix=settings.store.key_prefix)


def get_pairing_directory() -> PairingDirectory:
    return PairingDirectory(get_store(), get_keys())


def get_room_directory() -> RoomDirectory:
    return RoomDirectory(get_store(), get_keys())


def get_mailbox() -> NearbyMailbox:
    return NearbyMailbox(get_store(), get_keys())


def get_share_service() -> ShareService:
    store = get_store()
    keys = get_keys()
    return ShareService(
        clips=ClipStore(store, keys),
        pairings=PairingDirectory(store, keys),
        rooms=RoomDirectory(store, keys),
        mailbox=NearbyMailbox(store, keys),
    )
