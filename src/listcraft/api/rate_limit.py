"""Coarse per-client rate limiting for the intermediary.

A rolling window per client key: a request is allowed when fewer than
``max_requests`` requests from the same key arrived in the last
``window_seconds``.  Updates are serialized with an ``asyncio.Lock`` so that
concurrent requests cannot both slip under the limit.

Clients are keyed by the socket peer.  ``X-Forwarded-For`` is client-supplied
and only honoured when the intermediary runs behind a proxy that overwrites
it (``LISTCRAFT_TRUST_FORWARDED_FOR``).

Keys whose window has gone quiet are dropped, at most once per window, so the
table only holds recently active clients.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Callable

from starlette.requests import Request


def client_key(request: Request, trust_forwarded_for: bool = False) -> str:
    """Identify the caller by peer host, or the first forwarded hop if trusted."""
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client is not None:
        return request.client.host
    return "unknown"


class RateLimiter:
    """Rolling-window request counter keyed by client."""

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
        trust_forwarded_for: bool = False,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.trust_forwarded_for = trust_forwarded_for
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()
        self._lock = asyncio.Lock()

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    async def allow(self, key: str) -> bool:
        """Record a request for *key* and return whether it is within the limit."""
        async with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)

            hits = self._hits.get(key)
            if hits is not None:
                while hits and now - hits[0] >= self.window_seconds:
                    hits.popleft()
            else:
                hits = self._hits[key] = deque()

            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def _sweep(self, now: float) -> None:
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or now - hits[-1] >= self.window_seconds
        ]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    async def reset(self) -> None:
        async with self._lock:
            self._hits.clear()
