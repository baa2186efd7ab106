"""Host and origin policy used by nonce verification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlsplit

_HOST_PORT = re.compile(r"^([^:]+):([0-9]+)$")
_STANDARD_PORTS = {80, 443}
_LOCAL_SCHEMES = {"http", "https"}


class HostConfig(Protocol):
    def get_current_host(self) -> str: ...

    def is_local_url(self, url: str) -> bool: ...


def split_host_port(value: str) -> tuple[str, int | None]:
    match = _HOST_PORT.match(value)
    if match is None:
        return value, None
    return match.group(1), int(match.group(2))


def compute_acceptable_origins(current_host: str) -> frozenset[str]:
    """Return the Origin header values accepted for ``host[:port]``."""
    host, port = split_host_port(current_host)
    if not host:
        return frozenset()
    origins = {f"http://{host}", f"https://{host}"}
    if port is not None and port not in _STANDARD_PORTS:
        origins.add(f"http://{host}:{port}")
        origins.add(f"https://{host}:{port}")
    return frozenset(origins)


def _sanitize_host(value: str) -> str:
    host, _ = split_host_port(value.strip())
    return host.lower()


@dataclass(frozen=True)
class TrustedHostPolicy:
    current_host: str
    trusted_hosts: tuple[str, ...] = ()
    trusted_host_check: bool = True

    def get_current_host(self) -> str:
        return self.current_host

    def local_hosts(self) -> frozenset[str]:
        hosts = {_sanitize_host(self.current_host)}
        hosts.update(_sanitize_host(host) for host in self.trusted_hosts)
        hosts.discard("")
        return frozenset(hosts)

    def is_local_url(self, url: str) -> bool:
        if not url:
            return True
        try:
            parsed = urlsplit(url)
            hostname = parsed.hostname
        except ValueError:
            return False
        if parsed.scheme.lower() not in _LOCAL_SCHEMES or not hostname:
            return False
        if not self.trusted_host_check:
            return True
        return hostname.lower() in self.local_hosts()
