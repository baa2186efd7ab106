"""Admin health endpoint for the nonce guard."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..config import ServerConfig
from ..guard.nonce import NonceGuard

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_config(request: Request) -> ServerConfig:
    return request.app.state.server_config


def _get_guard(request: Request) -> NonceGuard:
    return request.app.state.nonce_guard


@router.get("/health")
async def health(
    request: Request,
    config: ServerConfig = Depends(_get_config),
    guard: NonceGuard = Depends(_get_guard),
) -> dict[str, Any]:
    started = request.app.state.start_time
    # Without a current host every request carrying an Origin header fails verification.
    origin_checks = bool(guard.acceptable_origins())
    return {
        "status": "healthy" if origin_checks else "degraded",
        "uptime_seconds": int((datetime.now(timezone.utc) - started).total_seconds()),
        "version": request.app.version,
        "session_backend": config.session.backend,
        "origin_checks_configured": origin_checks,
        "nonces_issued": guard.stats.issued,
    }
