"""HTTP client for receiving devices.

Implements the receiver side of the nearby mailbox: poll until an item shows
up, acknowledge it, hand it back. Polling backs off exponentially with jitter
so idle receivers don't hammer the service.

Example:
    with ReceiverClient("https://clipcode.example", "receiver-0001") as client:
        item = client.wait_for_item(timeout=30.0)
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable

import httpx

from clipcode.core.logging import short_hash
from clipcode.schemas.nearby import AckResponse, NearbyItem, PollResponse

logger = logging.getLogger(__name__)

POLL_INTERVAL_INITIAL = 0.9  # Seconds before the second poll
POLL_INTERVAL_MULTIPLIER = 1.6
POLL_INTERVAL_MAX = 4.5
POLL_JITTER_RATIO = 0.2  # Each delay is scaled by a factor in [0.8, 1.2]
DEFAULT_WAIT_TIMEOUT = 30.0
DEFAULT_HTTP_TIMEOUT = 10.0


def _default_jitter() -> float:
    return random.uniform(-POLL_JITTER_RATIO, POLL_JITTER_RATIO)


class ReceiverClient:
    """Polls and acknowledges one receiver's mailbox over HTTP.

    Args:
        base_url: Service root, e.g. ``https://clipcode.example``.
        receiver_device_id: Id of this receiving device.
        http: Optional pre-built ``httpx.Client`` (tests pass FastAPI's
            TestClient); when omitted the client owns its own connection pool.
        api_prefix: Path prefix the API routes are mounted under.
        sleep: Sleep function, injectable for tests.
        clock: Monotonic time source, injectable for tests.
        jitter: Returns the relative jitter to apply to each delay.
    """

    def __init__(
        self,
        base_url: str,
        receiver_device_id: str,
        *,
        http: httpx.Client | None = None,
        api_prefix: str = "/api",
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        jitter: Callable[[], float] = _default_jitter,
    ) -> None:
        self.receiver_device_id = receiver_device_id
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._prefix = api_prefix.rstrip("/")
        self._sleep = sleep
        self._clock = clock
        self._jitter = jitter

    def __enter__(self) -> "ReceiverClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def poll(self) -> PollResponse:
        """Peek at the oldest pending item.

        Raises:
            httpx.HTTPStatusError: On any non-2xx answer (including 429).
            httpx.TransportError: When the service can't be reached.
        """
        response = self._http.get(
            f"{self._prefix}/nearby/poll",
            params={"receiverDeviceId": self.receiver_device_id},
        )
        response.raise_for_status()
        return PollResponse.model_validate(response.json())

    def ack(self, message_id: str) -> bool:
        """Acknowledge an item. Returns False when it was already gone."""
        response = self._http.post(
            f"{self._prefix}/nearby/ack",
            json={"receiverDeviceId": self.receiver_device_id, "messageId": message_id},
        )
        response.raise_for_status()
        return AckResponse.model_validate(response.json()).consumed

    def next_delay(self, attempt: int) -> float:
        """Delay before poll number ``attempt + 2``, jitter included."""
        base = min(POLL_INTERVAL_MAX, POLL_INTERVAL_INITIAL * POLL_INTERVAL_MULTIPLIER**attempt)
        return max(0.0, base * (1 + self._jitter()))

    def wait_for_item(self, timeout: float = DEFAULT_WAIT_TIMEOUT) -> NearbyItem | None:
        """Poll until an item arrives or ``timeout`` seconds pass.

        The item is acknowledged before it is returned when it carries a
        messageId. A failed ack is logged and the item is still returned; the
        service will hand it out again on the next search.

        Returns:
            The item, or None on timeout.

        Raises:
            httpx.HTTPStatusError: When a poll is answered with an error.
            httpx.TransportError: When the service can't be reached.
        """
        started = self._clock()
        receiver_hash = short_hash(self.receiver_device_id)
        attempt = 0

        while True:
            result = self.poll()
            if result.found and result.item is not None:
                item = result.item
                logger.info(
                    "receiver.item_found",
                    extra={"receiver_hash": receiver_hash, "polls": attempt + 1},
                )
                if item.message_id:
                    try:
                        self.ack(item.message_id)
                    except httpx.HTTPError as exc:
                        logger.warning(
                            "receiver.ack_failed",
                            extra={
                                "receiver_hash": receiver_hash,
                                "message_id": item.message_id,
                                "error_type": type(exc).__name__,
                            },
                        )
                return item

            remaining = timeout - (self._clock() - started)
            if remaining <= 0:
                logger.info(
                    "receiver.search_timeout",
                    extra={"receiver_hash": receiver_hash, "polls": attempt + 1},
                )
                return None

            self._sleep(min(self.next_delay(attempt), remaining))
            attempt += 1
