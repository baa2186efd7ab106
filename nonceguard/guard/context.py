"""Explicit per-request context handed to the nonce guard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    return value or None


@dataclass(frozen=True)
class RequestContext:
    """Session handle plus the request headers relevant to origin checks.

    ``referrer`` and ``origin`` are ``None`` when the header is absent or empty.
    """

    session_id: str
    referrer: str | None = None
    origin: str | None = None

    @classmethod
    def from_headers(cls, session_id: str, headers: Mapping[str, str]) -> "RequestContext":
        # Starlette headers are case-insensitive; plain dicts are matched as given.
        return cls(
            session_id=session_id,
            referrer=_header(headers, "referer"),
            origin=_header(headers, "origin"),
        )
