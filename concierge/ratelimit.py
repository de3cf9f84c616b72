"""Sliding-window rate limiter keyed by client identity.

Each identifier owns a bucket: a deque of admission timestamps plus a lock.
Buckets are created on first use and pruned on every check; ``cleanup()``
sweeps all buckets and drops the empty ones so memory stays bounded.

Locking:
  - ``_registry_lock`` guards the identifier -> bucket mapping
  - each bucket's lock guards its deque

A bucket dropped by ``cleanup()`` is marked retired under its own lock, and
``admit()`` retries with a fresh bucket if it finds one, so an admission is
never recorded into a bucket that is no longer reachable.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from collections import deque
from typing import Callable, Hashable, Optional

log = logging.getLogger("concierge.ratelimit")


class _Bucket:
    __slots__ = ("lock", "hits", "retired")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.hits: deque[float] = deque()
        self.retired = False

    def prune(self, cutoff: float) -> None:
        """Drop timestamps at or before ``cutoff``. Caller holds ``lock``."""
        hits = self.hits
        while hits and hits[0] <= cutoff:
            hits.popleft()


class RateLimiter:
    """Admit at most ``limit`` requests per identifier in any ``window_seconds``.

    Usage::

        limiter = RateLimiter(limit=10, window_seconds=60)
        if not limiter.admit(client_ip):
            ...  # reject
    """

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60.0,
        cleanup_probability: float = 0.01,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.limit = limit
        self.window_seconds = window_seconds
        self.cleanup_probability = cleanup_probability
        self._clock = clock
        self._buckets: dict[Optional[Hashable], _Bucket] = {}
        self._registry_lock = threading.Lock()

    def _bucket(self, identifier: Optional[Hashable]) -> _Bucket:
        with self._registry_lock:
            bucket = self._buckets.get(identifier)
            if bucket is None:
                bucket = self._buckets[identifier] = _Bucket()
            return bucket

    # ── Public API ────────────────────────────────────────────

    def admit(self, identifier: Optional[Hashable]) -> bool:
        """Record and admit one request, or return False if over the limit."""
        while True:
            bucket = self._bucket(identifier)
            with bucket.lock:
                if bucket.retired:
                    continue
                now = self._clock()
                bucket.prune(now - self.window_seconds)
                if len(bucket.hits) >= self.limit:
                    log.debug("Rate limit hit for %r (%d in window)", identifier, len(bucket.hits))
                    return False
                bucket.hits.append(now)
                break

        if self.cleanup_probability > 0 and random.random() < self.cleanup_probability:
            self.cleanup()
        return True

    def remaining(self, identifier: Optional[Hashable]) -> int:
        """Requests ``identifier`` may still make in the current window."""
        with self._registry_lock:
            bucket = self._buckets.get(identifier)
        if bucket is None:
            return self.limit
        with bucket.lock:
            bucket.prune(self._clock() - self.window_seconds)
            return max(0, self.limit - len(bucket.hits))

    def reset(self, identifier: Optional[Hashable]) -> None:
        """Forget every recorded request for ``identifier``."""
        with self._registry_lock:
            bucket = self._buckets.pop(identifier, None)
        if bucket is not None:
            with bucket.lock:
                bucket.retired = True

    def cleanup(self) -> int:
        """Prune every bucket and drop the empty ones. Returns how many were dropped."""
        removed = 0
        with self._registry_lock:
            cutoff = self._clock() - self.window_seconds
            for identifier, bucket in list(self._buckets.items()):
                with bucket.lock:
                    bucket.prune(cutoff)
                    if not bucket.hits:
                        bucket.retired = True
                        del self._buckets[identifier]
                        removed += 1
        if removed:
            log.debug("Rate limiter cleanup dropped %d idle identifier(s)", removed)
        return removed

    def __contains__(self, identifier: Optional[Hashable]) -> bool:
        with self._registry_lock:
            return identifier in self._buckets

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._buckets)
