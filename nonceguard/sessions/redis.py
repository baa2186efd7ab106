"""Redis session backend using redis-py asyncio client.

Each field is stored under its own key so Redis' native key TTL gives
per-field expiration. Key components are percent-encoded, so ``:`` and
glob characters never appear inside a component.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import orjson
from redis import asyncio as aioredis


def _component(value: str) -> str:
    return quote(value, safe="")


class RedisSessionBackend:
    def __init__(self, *, url: str, prefix: str = "nonceguard:session") -> None:
        if not url:
            raise ValueError("redis url missing")
        self._redis = aioredis.from_url(url)
        self._prefix = prefix.rstrip(":")

    def _namespace_key(self, session_id: str, namespace: str) -> str:
        return f"{self._prefix}:{_component(session_id)}:{_component(namespace)}"

    def _field_key(self, session_id: str, namespace: str, field: str) -> str:
        return f"{self._namespace_key(session_id, namespace)}:{_component(field)}"

    async def get(self, session_id: str, namespace: str, field: str) -> Any | None:
        raw = await self._redis.get(self._field_key(session_id, namespace, field))
        if raw is None:
            return None
        return orjson.loads(raw)

    async def set(self, session_id: str, namespace: str, field: str, value: Any) -> None:
        await self._redis.set(
            self._field_key(session_id, namespace, field),
            orjson.dumps(value),
            keepttl=True,
        )

    async def unset_all(self, session_id: str, namespace: str) -> None:
        match = f"{self._namespace_key(session_id, namespace)}:*"
        keys = [key async for key in self._redis.scan_iter(match=match, count=100)]
        if keys:
            await self._redis.delete(*keys)

    async def set_expiration_seconds(
        self, session_id: str, namespace: str, field: str, ttl_seconds: int
    ) -> None:
        await self._redis.expire(self._field_key(session_id, namespace, field), ttl_seconds)
