"""Nonce token generation."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from dataclasses import dataclass
from typing import Protocol


class SecretSaltProvider(Protocol):
    def get_salt(self) -> str: ...


@dataclass(frozen=True)
class StaticSaltProvider:
    salt: str

    def __post_init__(self) -> None:
        if not self.salt:
            raise ValueError("secret salt missing")

    def get_salt(self) -> str:
        return self.salt


def generate_token(salt_provider: SecretSaltProvider) -> str:
    """
    Derive an unpredictable token.

    HMAC-SHA256 keyed by the server salt over the current time in
    nanoseconds and a fresh random value. Returns lowercase hex.
    """
    material = f"{time.time_ns()}:{secrets.token_hex(16)}".encode()
    mac = hmac.new(salt_provider.get_salt().encode("utf-8"), material, hashlib.sha256)
    return mac.hexdigest()


def constant_time_equal(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
