"""Per-identity request limiter backed by the ``limits`` fixed-window strategy."""

from __future__ import annotations

import math

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter


class RateLimiter:
    """Allow at most ``max_requests`` per identity in each ``window_seconds``.

    Each identity's window starts with its first request.  Counters live in
    ``limits``' in-memory storage, which expires them with the window, so
    identities that stop calling are not kept around.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        storage: MemoryStorage | None = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError(f"max_requests must be positive, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self.max_requests = max_requests
        # limits counts windows in whole seconds.
        self.window_seconds = max(1, math.ceil(window_seconds))
        self._item = RateLimitItemPerSecond(max_requests, self.window_seconds)
        self._limiter = FixedWindowRateLimiter(storage or MemoryStorage())

    def check_and_record(self, identity: str) -> bool:
        """Record a request for *identity*; return ``False`` if it is over the limit."""
        return self._limiter.hit(self._item, identity)
