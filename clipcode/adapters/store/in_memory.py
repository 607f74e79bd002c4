"""In-memory TTL key-value store.

Notes:
- Per-process only: it is the backend for local runs and tests, never for a
  deployment with more than one worker.
- Thread-safe: uses a lock around shared state, so every primitive is atomic
  the same way a single Redis command is.
- Expiry is lazy: entries are dropped when touched after their deadline.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from clipcode.adapters.store.base import AbstractKVStore, KeyKind
from clipcode.core.errors import StoreUnavailableError


@dataclass
class _Entry:
    value: str | list[str]
    expires_at: float | None


def _wrong_type(key: str) -> StoreUnavailableError:
    return StoreUnavailableError(
        code="store_wrong_type",
        message="Operation against a key holding the wrong kind of value",
        details={"context": {"key": key}},
    )


class InMemoryKVStore(AbstractKVStore):
    """Dictionary-backed store mirroring the Redis semantics the service uses."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, _Entry] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryKVStore(size={len(self._data)})"

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    def _deadline(self, ttl_seconds: int | None) -> float | None:
        if ttl_seconds is None:
            return None
        return self._clock() + ttl_seconds

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            if not isinstance(entry.value, str):
                raise _wrong_type(key)
            return entry.value

    def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
        *,
        only_if_absent: bool = False,
    ) -> bool:
        with self._lock:
            if only_if_absent and self._live_entry(key) is not None:
                return False
            self._data[key] = _Entry(value=value, expires_at=self._deadline(ttl_seconds))
            return True

    def get_and_delete(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            if not isinstance(entry.value, str):
                raise _wrong_type(key)
            del self._data[key]
            return entry.value

    def delete(self, *keys: str) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                if self._live_entry(key) is not None:
                    del self._data[key]
                    removed += 1
            return removed

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def ttl(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return -2
            if entry.expires_at is None:
                return -1
            return max(0, int(math.ceil(entry.expires_at - self._clock())))

    def increment(self, key: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._data[key] = _Entry(value="1", expires_at=None)
                return 1
            if not isinstance(entry.value, str):
                raise _wrong_type(key)
            try:
                count = int(entry.value) + 1
            except ValueError as exc:
                raise StoreUnavailableError(
                    code="store_not_integer",
                    message="Value is not an integer",
                    details={"context": {"key": key}},
                ) from exc
            entry.value = str(count)
            return count

    def expire(self, key: str, ttl_seconds: int) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False
            entry.expires_at = self._deadline(ttl_seconds)
            return True

    def kind(self, key: str) -> KeyKind:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return "none"
            return "string" if isinstance(entry.value, str) else "list"

    def list_append(self, key: str, value: str, ttl_seconds: int) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                entry = _Entry(value=[], expires_at=None)
                self._data[key] = entry
            if not isinstance(entry.value, list):
                raise _wrong_type(key)
            entry.value.append(value)
            entry.expires_at = self._deadline(ttl_seconds)
            return len(entry.value)

    def list_items(self, key: str) -> list[str]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return []
            if not isinstance(entry.value, list):
                raise _wrong_type(key)
            return list(entry.value)

    def list_remove(self, key: str, value: str) -> int:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return 0
            if not isinstance(entry.value, list):
                raise _wrong_type(key)
            try:
                entry.value.remove(value)
            except ValueError:
                return 0
            if not entry.value:
                del self._data[key]
            return 1

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """Drop every key."""

        with self._lock:
            self._data.clear()
