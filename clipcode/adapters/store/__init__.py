"""Key-value store adapters.

Every piece of shared state lives behind ``AbstractKVStore`` so request
handlers stay stateless: Redis in deployments, an in-memory implementation
for local runs and tests.
"""

from clipcode.adapters.store.base import AbstractKVStore, StoreKeys
from clipcode.adapters.store.factory import create_store
from clipcode.adapters.store.in_memory import InMemoryKVStore
from clipcode.adapters.store.redis_store import RedisKVStore

__all__ = [
    "AbstractKVStore",
    "InMemoryKVStore",
    "RedisKVStore",
    "StoreKeys",
    "create_store",
]
