"""Session backend contract and factory."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from ..config import ServerConfig
from .in_memory import InMemorySessionBackend
from .redis import RedisSessionBackend

logger = logging.getLogger(__name__)


class SessionBackend(Protocol):
    """Keyed session storage: (session_id, namespace, field) -> value.

    Expiration is tracked per field. An expired field reads as ``None``.
    """

    async def get(self, session_id: str, namespace: str, field: str) -> Any | None: ...

    async def set(self, session_id: str, namespace: str, field: str, value: Any) -> None: ...

    async def unset_all(self, session_id: str, namespace: str) -> None: ...

    async def set_expiration_seconds(
        self, session_id: str, namespace: str, field: str, ttl_seconds: int
    ) -> None: ...


class SessionNamespace:
    """One namespace of one session, bound to a backend."""

    def __init__(self, backend: SessionBackend, session_id: str, namespace: str) -> None:
        self._backend = backend
        self.session_id = session_id
        self.namespace = namespace

    async def get(self, field: str) -> Any | None:
        return await self._backend.get(self.session_id, self.namespace, field)

    async def set(self, field: str, value: Any) -> None:
        await self._backend.set(self.session_id, self.namespace, field, value)

    async def unset_all(self) -> None:
        await self._backend.unset_all(self.session_id, self.namespace)

    async def set_expiration_seconds(self, ttl_seconds: int, field: str) -> None:
        await self._backend.set_expiration_seconds(
            self.session_id, self.namespace, field, ttl_seconds
        )


def build_session_backend(config: ServerConfig) -> SessionBackend:
    backend = config.session.backend
    options = dict(config.session.options)
    logger.info("[sessions] using %s backend", backend)
    if backend == "in_memory":
        return InMemorySessionBackend()
    if backend == "redis":
        return RedisSessionBackend(**options)
    raise ValueError(f"unknown session backend {backend}")
