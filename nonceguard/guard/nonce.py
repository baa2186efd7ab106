"""Session-bound CSRF nonces with sliding expiration.

A nonce is stored per identifier (e.g. ``"Settings.save"``) in the caller's
session and stays valid until it expires or is discarded. Requesting the
nonce again re-uses the stored token and pushes the expiration back, so
browser prefetch and double submission keep working.

Verification does not consume the nonce. A captured token can be replayed
within the same session until it expires or ``discard_nonce`` is called,
which is a weaker guarantee than a strict single-use nonce. Callers that
need single use should discard after a successful state change.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from ..sessions import SessionBackend, SessionNamespace
from .context import RequestContext
from .origins import HostConfig, compute_acceptable_origins
from .tokens import SecretSaltProvider, constant_time_equal, generate_token

logger = logging.getLogger(__name__)

NONCE_FIELD = "nonce"
DEFAULT_TTL_SECONDS = 300


@dataclass
class GuardStats:
    issued: int = 0
    reused: int = 0
    accepted: int = 0
    discarded: int = 0
    rejected: Counter[str] = field(default_factory=Counter)

    def snapshot(self) -> dict[str, Any]:
        return {
            "issued": self.issued,
            "reused": self.reused,
            "accepted": self.accepted,
            "discarded": self.discarded,
            "rejected": dict(self.rejected),
            "rejected_total": sum(self.rejected.values()),
        }


class NonceGuard:
    def __init__(
        self,
        sessions: SessionBackend,
        host_config: HostConfig,
        salt_provider: SecretSaltProvider,
        *,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._sessions = sessions
        self._hosts = host_config
        self._salt = salt_provider
        self._default_ttl = default_ttl_seconds
        self.stats = GuardStats()

    def _namespace(self, context: RequestContext, identifier: str) -> SessionNamespace:
        return SessionNamespace(self._sessions, context.session_id, identifier)

    async def get_nonce(
        self,
        context: RequestContext,
        identifier: str,
        ttl_seconds: int | None = None,
    ) -> str:
        """Return the session's nonce for ``identifier``, creating it if absent.

        Every call resets the expiration to now + ``ttl_seconds``.
        """
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        namespace = self._namespace(context, identifier)
        token = await namespace.get(NONCE_FIELD)
        if not token:
            token = generate_token(self._salt)
            await namespace.set(NONCE_FIELD, token)
            self.stats.issued += 1
        else:
            self.stats.reused += 1
        await namespace.set_expiration_seconds(ttl, NONCE_FIELD)
        return token

    async def verify_nonce(
        self,
        context: RequestContext,
        identifier: str,
        supplied_token: str | None,
    ) -> bool:
        """Check the token, then the Referer, then the Origin.

        Returns ``False`` on the first failed check and never says which one.
        Session backend errors are not a failed check and propagate.
        """
        reason = await self._rejection_reason(context, identifier, supplied_token)
        if reason is not None:
            self.stats.rejected[reason] += 1
            logger.info("[csrf] rejected identifier=%s reason=%s", identifier, reason)
            return False
        self.stats.accepted += 1
        return True

    async def _rejection_reason(
        self,
        context: RequestContext,
        identifier: str,
        supplied_token: str | None,
    ) -> str | None:
        if not supplied_token:
            return "token_missing"
        stored = await self._namespace(context, identifier).get(NONCE_FIELD)
        if not isinstance(stored, str) or not stored:
            return "token_unknown"
        if not constant_time_equal(supplied_token, stored):
            return "token_mismatch"

        if context.referrer is not None and not self._hosts.is_local_url(context.referrer):
            return "referrer_not_local"

        if context.origin is not None:
            if context.origin == "null":
                return "origin_null"
            if context.origin not in self.acceptable_origins():
                return "origin_not_acceptable"
        return None

    async def discard_nonce(self, context: RequestContext, identifier: str) -> None:
        await self._namespace(context, identifier).unset_all()
        self.stats.discarded += 1

    def acceptable_origins(self) -> frozenset[str]:
        return compute_acceptable_origins(self._hosts.get_current_host())
