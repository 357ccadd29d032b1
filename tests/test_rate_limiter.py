"""
Tests for client identification in the rate limiter

Only a trusted proxy may name the client through X-Forwarded-For;
everyone else is keyed by the address they connect from.
"""

from starlette.requests import Request

from tometracker.services.rate_limiter import resolve_client_ip

PROXY = "10.0.0.5"


def make_request(peer: str, forwarded_for: str | None = None) -> Request:
    headers = []
    if forwarded_for is not None:
        headers.append((b"x-forwarded-for", forwarded_for.encode()))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/auth/login",
        "headers": headers,
        "client": (peer, 51234),
    }
    return Request(scope)


class TestResolveClientIp:
    def test_direct_client(self):
        assert resolve_client_ip(make_request("203.0.113.7"), [PROXY]) == "203.0.113.7"

    def test_spoofed_header_from_untrusted_peer_is_ignored(self):
        request = make_request("203.0.113.7", forwarded_for="198.51.100.1")

        assert resolve_client_ip(request, [PROXY]) == "203.0.113.7"

    def test_header_ignored_without_trusted_proxies(self):
        request = make_request(PROXY, forwarded_for="198.51.100.1")

        assert resolve_client_ip(request, []) == PROXY

    def test_trusted_proxy_names_the_client(self):
        request = make_request(PROXY, forwarded_for="198.51.100.1")

        assert resolve_client_ip(request, [PROXY]) == "198.51.100.1"

    def test_client_cannot_prepend_a_fake_hop(self):
        # The client sent "1.2.3.4" itself; the proxy appended the real address
        request = make_request(PROXY, forwarded_for="1.2.3.4, 198.51.100.1")

        assert resolve_client_ip(request, [PROXY]) == "198.51.100.1"

    def test_chain_of_trusted_proxies(self):
        request = make_request(PROXY, forwarded_for="198.51.100.1, 10.0.0.6")

        assert resolve_client_ip(request, [PROXY, "10.0.0.6"]) == "198.51.100.1"

    def test_trusted_proxy_without_header(self):
        assert resolve_client_ip(make_request(PROXY), [PROXY]) == PROXY
