"""Redis key-value store adapter."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import redis

from clipcode.adapters.store.base import AbstractKVStore, KeyKind
from clipcode.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class RedisKVStore(AbstractKVStore):
    """Store backed by a shared Redis instance.

    Uses the official redis-py client with string decoding enabled. Every
    ``redis.RedisError`` is converted to ``StoreUnavailableError`` so the
    request boundary can turn it into a generic internal error.
    """

    def __init__(self, client: redis.Redis) -> None:
        """Initialize the adapter.

        Args:
            client: redis-py client created with ``decode_responses=True``.
        """
        self.client = client

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        socket_timeout: float = 5.0,
        connect_timeout: float = 5.0,
    ) -> "RedisKVStore":
        """Build an adapter from a redis:// URL.

        Args:
            url: Connection URL.
            socket_timeout: Per-command timeout in seconds.
            connect_timeout: Connection timeout in seconds.

        Returns:
            RedisKVStore: Adapter with a lazily-connecting client.
        """
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=connect_timeout,
        )
        return cls(client)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except redis.RedisError as exc:
            logger.error(
                "store.redis_error",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise StoreUnavailableError(
                code="store_unavailable",
                message="Storage backend is unavailable",
            ) from exc

    def get(self, key: str) -> str | None:
        with self._guard("get"):
            return self.client.get(key)

    def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
        *,
        only_if_absent: bool = False,
    ) -> bool:
        with self._guard("set"):
            written = self.client.set(key, value, ex=ttl_seconds, nx=only_if_absent)
        return bool(written)

    def get_and_delete(self, key: str) -> str | None:
        with self._guard("getdel"):
            return self.client.getdel(key)

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with self._guard("delete"):
            return int(self.client.delete(*keys))

    def exists(self, key: str) -> bool:
        with self._guard("exists"):
            return bool(self.client.exists(key))

    def ttl(self, key: str) -> int:
        with self._guard("ttl"):
            return int(self.client.ttl(key))

    def increment(self, key: str) -> int:
        with self._guard("incr"):
            return int(self.client.incr(key))

    def expire(self, key: str, ttl_seconds: int) -> bool:
        with self._guard("expire"):
            return bool(self.client.expire(key, ttl_seconds))

    def kind(self, key: str) -> KeyKind:
        with self._guard("type"):
            kind = self.client.type(key)
        if kind in ("none", "string", "list"):
            return kind
        # Anything else was not written by this service
        raise StoreUnavailableError(
            code="store_wrong_type",
            message="Operation against a key holding the wrong kind of value",
        )

    def list_append(self, key: str, value: str, ttl_seconds: int) -> int:
        with self._guard("rpush"):
            pipe = self.client.pipeline(transaction=True)
            pipe.rpush(key, value)
            pipe.expire(key, ttl_seconds)
            length, _ = pipe.execute()
        return int(length)

    def list_items(self, key: str) -> list[str]:
        with self._guard("lrange"):
            return list(self.client.lrange(key, 0, -1))

    def list_remove(self, key: str, value: str) -> int:
        with self._guard("lrem"):
            return int(self.client.lrem(key, 1, value))

    def ping(self) -> bool:
        with self._guard("ping"):
            return bool(self.client.ping())
