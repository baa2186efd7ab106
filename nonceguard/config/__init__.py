"""Configuration helpers for the nonce guard service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

_DEFAULT_SERVER_CONFIG = Path(__file__).resolve().parent / "server.yaml"


@dataclass(frozen=True)
class HostSettings:
    current_host: str
    trusted_hosts: tuple[str, ...]
    trusted_host_check: bool = True


@dataclass(frozen=True)
class NonceSettings:
    default_ttl_seconds: int
    salt: str


@dataclass(frozen=True)
class SessionSettings:
    backend: str
    cookie_name: str
    cookie_secure: bool
    options: Mapping[str, Any]


@dataclass(frozen=True)
class ServerConfig:
    host: HostSettings
    nonce: NonceSettings
    session: SessionSettings


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return yaml.safe_load(path.read_text()) or {}


def parse_server_config(data: Mapping[str, Any]) -> ServerConfig:
    host = data.get("host") or {}
    nonce = data.get("nonce") or {}
    session = data.get("session") or {}
    salt = os.getenv("NONCEGUARD_SALT") or str(nonce.get("salt") or "")
    return ServerConfig(
        host=HostSettings(
            current_host=str(host.get("current_host") or ""),
            trusted_hosts=tuple(str(item) for item in host.get("trusted_hosts") or ()),
            trusted_host_check=bool(host.get("trusted_host_check", True)),
        ),
        nonce=NonceSettings(
            default_ttl_seconds=int(nonce.get("default_ttl_seconds", 300)),
            salt=salt,
        ),
        session=SessionSettings(
            backend=str(session.get("backend", "in_memory")),
            cookie_name=str(session.get("cookie_name", "nonceguard_session")),
            cookie_secure=bool(session.get("cookie_secure", False)),
            options=dict(session.get("options") or {}),
        ),
    )


@lru_cache(maxsize=1)
def get_server_config() -> ServerConfig:
    path = Path(os.getenv("NONCEGUARD_CONFIG_PATH", _DEFAULT_SERVER_CONFIG))
    return parse_server_config(_load_yaml(path))
