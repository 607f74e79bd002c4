"""Factory pattern for creating store instances."""

from clipcode.adapters.store.base import AbstractKVStore
from clipcode.adapters.store.in_memory import InMemoryKVStore
from clipcode.adapters.store.redis_store import RedisKVStore
from clipcode.core.config import StoreSettings, settings
from clipcode.core.errors import ValidationAppError


def create_store(store_settings: StoreSettings | None = None) -> AbstractKVStore:
    """Factory function to instantiate the configured store backend.

    Reads configuration from clipcode.core.config.settings (Pydantic Settings)
    unless explicit settings are passed.

    Returns:
        AbstractKVStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "redis":
        return RedisKVStore.from_url(
            cfg.redis_url,
            socket_timeout=cfg.socket_timeout_seconds,
            connect_timeout=cfg.connect_timeout_seconds,
        )

    if backend == "memory":
        return InMemoryKVStore()

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: redis, memory",
    )
