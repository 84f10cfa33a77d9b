"""Time-limited cache of IP address to service mappings."""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Iterable, Optional, Union

Duration = Union[int, float, timedelta]


def _seconds(value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class IPCache:
    """IP to services entries that expire after their TTL.

    An entry inserted with a TTL of zero or less lives for ``evict_time``.
    Expired entries are dropped when looked up and swept every ``cleanup_time``.
    """

    def __init__(self, cleanup_time: Duration, evict_time: Duration) -> None:
        self.cleanup_time = _seconds(cleanup_time)
        self.evict_time = _seconds(evict_time)
        self._entries: dict[str, tuple[float, list[int]]] = {}
        self._lock = threading.Lock()
        self._next_cleanup = time.monotonic() + self.cleanup_time

    def _sweep(self, now: float) -> None:
        if now < self._next_cleanup:
            return
        expired = [ip for ip, (deadline, _) in self._entries.items() if deadline <= now]
        for ip in expired:
            del self._entries[ip]
        self._next_cleanup = now + self.cleanup_time

    def insert(self, ip: str, services: Iterable[int], ttl: float) -> None:
        """Store ``services`` for ``ip`` for ``ttl`` seconds."""
        now = time.monotonic()
        lifetime = ttl if ttl > 0 else self.evict_time
        with self._lock:
            self._entries[ip] = (now + lifetime, list(services))
            self._sweep(now)

    def lookup(self, ip: str) -> Optional[list[int]]:
        """Return the services stored for ``ip``, or None if absent or expired."""
        now = time.monotonic()
        with self._lock:
            self._sweep(now)
            entry = self._entries.get(ip)
            if entry is None:
                return None
            deadline, services = entry
            if deadline <= now:
                del self._entries[ip]
                return None
            return list(services)

    def __len__(self) -> int:
        """Number of entries held, including expired ones not yet swept."""
        with self._lock:
            return len(self._entries)