"""Request tagging for asynchronous decodes.

Each decode is issued an id from a monotonically increasing counter. When
the decode completes, its result is applied only if no newer request has
been issued in the meantime; otherwise it is discarded as stale.
"""

import threading


class RequestGate:
    """Issues request ids and filters out stale completions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest = 0

    def issue(self) -> int:
        """Start a new request; every earlier id becomes stale."""
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, request_id: int | None) -> bool:
        with self._lock:
            return request_id == self._latest
