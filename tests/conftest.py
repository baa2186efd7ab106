from __future__ import annotations

import pytest

from nonceguard.config import get_server_config

TEST_CONFIG = """
host:
  current_host: "example.com:8080"
  trusted_hosts: ["static.example.net"]
nonce:
  default_ttl_seconds: 120
  salt: "yaml-salt"
session:
  backend: in_memory
  cookie_name: test_session
"""


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "server.yaml"
    path.write_text(TEST_CONFIG)
    monkeypatch.setenv("NONCEGUARD_CONFIG_PATH", str(path))
    monkeypatch.delenv("NONCEGUARD_SALT", raising=False)
    get_server_config.cache_clear()
    yield path
    get_server_config.cache_clear()
