"""Operational nonce counters."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..guard.nonce import NonceGuard

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_guard(request: Request) -> NonceGuard:
    return request.app.state.nonce_guard


@router.get("/stats")
async def stats(guard: NonceGuard = Depends(_get_guard)) -> dict[str, Any]:
    snapshot = guard.stats.snapshot()
    checked = snapshot["accepted"] + snapshot["rejected_total"]
    snapshot["rejection_rate"] = round(snapshot["rejected_total"] / checked, 4) if checked else 0.0
    return snapshot
