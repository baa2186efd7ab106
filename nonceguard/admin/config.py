"""Expose the non-secret parts of the loaded config for debugging."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..config import ServerConfig
from ..guard.nonce import NonceGuard

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_config(request: Request) -> ServerConfig:
    return request.app.state.server_config


def _get_guard(request: Request) -> NonceGuard:
    return request.app.state.nonce_guard


@router.get("/config")
async def config(
    request: Request,
    config: ServerConfig = Depends(_get_config),
    guard: NonceGuard = Depends(_get_guard),
) -> dict[str, Any]:
    # The salt is never exposed here.
    return {
        "current_host": config.host.current_host,
        "trusted_hosts": list(config.host.trusted_hosts),
        "trusted_host_check": config.host.trusted_host_check,
        "acceptable_origins": sorted(guard.acceptable_origins()),
        "default_ttl_seconds": config.nonce.default_ttl_seconds,
        "session_backend": config.session.backend,
        "version": request.app.version,
    }
