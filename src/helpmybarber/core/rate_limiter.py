"""Per-client sliding-window rate limiting.

:class:`RateLimiter` keeps, for every client identifier, the ordered list of
timestamps at which that client was admitted.  A check prunes timestamps that
have left the window, rejects if the remaining count has reached the limit,
and otherwise records the current time and admits the request.

Read, prune and append happen under one lock so that two concurrent requests
from the same client cannot both slip in on the last free slot.  The critical
section never awaits, so a plain :class:`threading.Lock` is safe to use from
async route handlers as well as from worker threads.

Stale clients
-------------
Pruning only trims a single client's list.  To keep the number of tracked
clients bounded, every ``sweep_interval`` checks the limiter drops clients
whose timestamps have all aged out of the window.

Usage
-----
::

    limiter = RateLimiter(max_requests=10, window_seconds=60)

    if not limiter.allow("203.0.113.7"):
        ...  # reply 429
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window request counter keyed by client identifier.

    Attributes:
        max_requests (int):
            Requests admitted per client within one window.
        window_seconds (float):
            Length of the trailing window.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: int = 100,
    ) -> None:
        """Initialise an empty limiter.

        Args:
            max_requests: Requests admitted per client within one window.
            window_seconds: Length of the trailing window in seconds.
            clock: Source of the current time in seconds.  Tests inject a
                fake clock; production uses :func:`time.monotonic`.
            sweep_interval: Number of checks between sweeps of fully stale
                clients.

        Raises:
            ValueError: If any limit is not positive.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if sweep_interval < 1:
            raise ValueError("sweep_interval must be at least 1")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._requests: dict[str, list[float]] = {}
        self._checks = 0
        self._lock = threading.Lock()

    def allow(self, client_id: str) -> bool:
        """Record a request from *client_id* if it is within its quota.

        Rejected requests are not recorded, but they still prune the client's
        expired timestamps.

        Args:
            client_id: Identifier of the caller (typically its IP address).

        Returns:
            ``True`` if the request is admitted, ``False`` if the client has
            already made ``max_requests`` requests within the window.
        """
        with self._lock:
            now = self._clock()

            timestamps = [
                t for t in self._requests.get(client_id, []) if now - t < self.window_seconds
            ]
            allowed = len(timestamps) < self.max_requests
            if allowed:
                timestamps.append(now)
            self._requests[client_id] = timestamps

            self._checks += 1
            if self._checks % self._sweep_interval == 0:
                self._sweep(now)

            return allowed

    def tracked_clients(self) -> int:
        """Return the number of client identifiers currently held."""
        with self._lock:
            return len(self._requests)

    def reset(self) -> None:
        """Forget every recorded request."""
        with self._lock:
            self._requests.clear()
            self._checks = 0

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        stale = [
            client_id
            for client_id, timestamps in self._requests.items()
            if not timestamps or now - timestamps[-1] >= self.window_seconds
        ]
        for client_id in stale:
            del self._requests[client_id]
        if stale:
            logger.debug(f"Rate limiter swept {len(stale)} idle clients")
