"""Unit tests for origin computation and local URL classification."""

from __future__ import annotations

import pytest

from nonceguard.guard.context import RequestContext
from nonceguard.guard.origins import TrustedHostPolicy, compute_acceptable_origins, split_host_port


class TestComputeAcceptableOrigins:
    def test_non_standard_port_adds_port_qualified_origins(self):
        assert compute_acceptable_origins("example.com:8080") == {
            "http://example.com",
            "https://example.com",
            "http://example.com:8080",
            "https://example.com:8080",
        }

    @pytest.mark.parametrize("host", ["example.com:443", "example.com:80", "example.com"])
    def test_standard_or_missing_port_only_bare_host(self, host):
        assert compute_acceptable_origins(host) == {"http://example.com", "https://example.com"}

    def test_empty_host_yields_empty_set(self):
        assert compute_acceptable_origins("") == frozenset()

    def test_unmatched_pattern_treated_as_host(self):
        # An IPv6 literal does not match host:port, so it is kept whole.
        assert compute_acceptable_origins("[::1]:8080") == {"http://[::1]:8080", "https://[::1]:8080"}

    def test_split_host_port(self):
        assert split_host_port("example.com:8080") == ("example.com", 8080)
        assert split_host_port("example.com") == ("example.com", None)
        assert split_host_port("example.com:") == ("example.com:", None)


class TestTrustedHostPolicy:
    @pytest.fixture
    def policy(self):
        return TrustedHostPolicy(
            "Example.com:8080",
            trusted_hosts=("static.example.net", "proxy.local:3128"),
        )

    @pytest.mark.parametrize(
        "url",
        [
            "http://example.com/",
            "https://EXAMPLE.com:8443/path?q=1",
            "https://static.example.net/asset.js",
            "http://proxy.local/",
        ],
    )
    def test_local_urls(self, policy, url):
        assert policy.is_local_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "https://evil.example/",
            "https://example.com.evil.example/",
            "ftp://example.com/file",
            "javascript:alert(1)",
            "//example.com/relative",
            "/index.php",
            "http://[::1/",
        ],
    )
    def test_foreign_or_malformed_urls(self, policy, url):
        assert policy.is_local_url(url) is False

    def test_empty_url_is_local(self, policy):
        assert policy.is_local_url("") is True

    def test_disabled_host_check_still_requires_http_scheme(self):
        policy = TrustedHostPolicy("example.com", trusted_host_check=False)

        assert policy.is_local_url("https://anywhere.example/") is True
        assert policy.is_local_url("file:///etc/passwd") is False

    def test_get_current_host(self, policy):
        assert policy.get_current_host() == "Example.com:8080"


class TestRequestContext:
    def test_empty_headers_become_absent(self):
        ctx = RequestContext.from_headers("sess", {"referer": "", "origin": ""})

        assert ctx.referrer is None
        assert ctx.origin is None

    def test_headers_are_copied(self):
        ctx = RequestContext.from_headers(
            "sess", {"referer": "https://example.com/a", "origin": "https://example.com"}
        )

        assert ctx == RequestContext("sess", "https://example.com/a", "https://example.com")
