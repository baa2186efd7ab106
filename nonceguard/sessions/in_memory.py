"""In-memory session backend with per-field expiration."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _FieldEntry:
    value: Any
    expires_at: datetime | None = None

    def expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class InMemorySessionBackend:
    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._namespaces: dict[tuple[str, str], dict[str, _FieldEntry]] = {}
        # (expires_at, seq, namespace key, field), ordered by expiry
        self._expiries: list[tuple[datetime, int, tuple[str, str], str]] = []
        self._seq = itertools.count()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._namespaces)

    async def get(self, session_id: str, namespace: str, field: str) -> Any | None:
        async with self._lock:
            entry = self._namespaces.get((session_id, namespace), {}).get(field)
            if entry is None or entry.expired(self._clock()):
                return None
            return deepcopy(entry.value)

    async def set(self, session_id: str, namespace: str, field: str, value: Any) -> None:
        async with self._lock:
            self._evict_expired(self._clock())
            fields = self._namespaces.setdefault((session_id, namespace), {})
            entry = fields.get(field)
            if entry is None:
                fields[field] = _FieldEntry(deepcopy(value))
            else:
                entry.value = deepcopy(value)

    async def unset_all(self, session_id: str, namespace: str) -> None:
        async with self._lock:
            self._namespaces.pop((session_id, namespace), None)
            self._evict_expired(self._clock())

    async def set_expiration_seconds(
        self, session_id: str, namespace: str, field: str, ttl_seconds: int
    ) -> None:
        async with self._lock:
            now = self._clock()
            self._evict_expired(now)
            key = (session_id, namespace)
            entry = self._namespaces.get(key, {}).get(field)
            if entry is None:
                return
            entry.expires_at = now + timedelta(seconds=ttl_seconds)
            heapq.heappush(self._expiries, (entry.expires_at, next(self._seq), key, field))

    def _evict_expired(self, now: datetime) -> None:
        while self._expiries and self._expiries[0][0] <= now:
            _, _, key, field = heapq.heappop(self._expiries)
            fields = self._namespaces.get(key)
            if fields is None:
                continue
            entry = fields.get(field)
            # A slid expiration leaves an older heap item behind; skip it.
            if entry is not None and entry.expired(now):
                del fields[field]
            if not fields:
                del self._namespaces[key]
