"""Key-value store interface.

Services depend on this abstraction (not a concrete client) so the same
logic runs against Redis in production and the in-memory store in tests.
Only single-key primitives are exposed: there are no cross-key transactions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

KeyKind = Literal["none", "string", "list"]


@dataclass(frozen=True)
class StoreKeys:
    """Builds namespaced keys for every record the service persists."""

    prefix: str = "clipcode:"

    def clip(self, code: str) -> str:
        return f"{self.prefix}clip:{code}"

    def pair_code(self, pair_code: str) -> str:
        return f"{self.prefix}pair:code:{pair_code}"

    def sender_pairing(self, sender_device_id: str) -> str:
        return f"{self.prefix}pair:sender:{sender_device_id}"

    def room(self, room_code: str) -> str:
        return f"{self.prefix}room:{room_code}"

    def mailbox(self, receiver_device_id: str) -> str:
        return f"{self.prefix}mailbox:{receiver_device_id}"

    def rate_limit(self, prefix: str, identity: str) -> str:
        return f"{self.prefix}rl:{prefix}:{identity}"

    def health(self) -> str:
        return f"{self.prefix}health"


class AbstractKVStore(ABC):
    """Interface for TTL-capable key-value stores.

    Implementations raise ``StoreUnavailableError`` for infrastructure
    failures so callers never see client-library exceptions.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the string stored at key, or None when absent/expired."""
        raise NotImplementedError

    @abstractmethod
    def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
        *,
        only_if_absent: bool = False,
    ) -> bool:
        """Store value at key.

        Args:
            key: Target key.
            value: Serialized value.
            ttl_seconds: Expiry in seconds; None keeps the value until deleted.
            only_if_absent: Write only when no live value exists (SET NX).

        Returns:
            True if the value was written, False if ``only_if_absent`` was
            requested and the key was already live.
        """
        raise NotImplementedError

    @abstractmethod
    def get_and_delete(self, key: str) -> str | None:
        """Atomically read and remove a string value (GETDEL)."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""
        raise NotImplementedError

    @abstractmethod
    def exists(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def ttl(self, key: str) -> int:
        """Remaining lifetime in seconds: -2 when missing, -1 without expiry."""
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str) -> int:
        """Atomically add one to the integer at key (created at 0)."""
        raise NotImplementedError

    @abstractmethod
    def expire(self, key: str, ttl_seconds: int) -> bool:
        """Arm or reset a key's TTL. Returns False if the key is missing."""
        raise NotImplementedError

    @abstractmethod
    def kind(self, key: str) -> KeyKind:
        """Report the shape of the value stored at key."""
        raise NotImplementedError

    @abstractmethod
    def list_append(self, key: str, value: str, ttl_seconds: int) -> int:
        """Push value at the tail of a list and re-arm its TTL in one step.

        Returns:
            New list length.
        """
        raise NotImplementedError

    @abstractmethod
    def list_items(self, key: str) -> list[str]:
        """Return all list elements, oldest first (empty when missing)."""
        raise NotImplementedError

    @abstractmethod
    def list_remove(self, key: str, value: str) -> int:
        """Remove the first element equal to value.

        The list keeps its TTL; an emptied list disappears.

        Returns:
            Number of removed elements (0 or 1).
        """
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> bool:
        raise NotImplementedError
