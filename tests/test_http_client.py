"""
Tests for the httpx health probe.
"""
import httpx
import pytest

from adapters.http_client import HttpHealthProber, build_client, probe_health

URL = "http://localhost:3001/api/health"


def _transport(status: int = 200, exc: Exception = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if exc is not None:
            raise exc
        return httpx.Response(status, json={"status": "ok"})

    return httpx.MockTransport(handler)


class TestProbeHealth:
    @pytest.mark.parametrize("status", [200, 204])
    def test_success(self, make_settings, status):
        with build_client(make_settings(), transport=_transport(status)) as client:
            result = probe_health(client, URL)
        assert result.ok is True
        assert result.status_code == status

    @pytest.mark.parametrize("status", [404, 500, 503])
    def test_error_status(self, make_settings, status):
        """Like `curl -f`: any non-success status fails."""
        with build_client(make_settings(), transport=_transport(status)) as client:
            result = probe_health(client, URL)
        assert result.ok is False
        assert result.detail == f"HTTP {status}"

    def test_unreachable(self, make_settings):
        transport = _transport(exc=httpx.ConnectError("Connection refused"))
        with build_client(make_settings(), transport=transport) as client:
            result = probe_health(client, URL)
        assert result.ok is False
        assert result.status_code is None
        assert "Connection refused" in result.detail


def test_prober_uses_settings_timeout(make_settings):
    settings = make_settings(http_timeout_seconds=2.5)
    with build_client(settings) as client:
        assert client.timeout.read == 2.5

    status = HttpHealthProber(settings, transport=_transport(200)).probe(URL)
    assert status.ok is True
    assert status.url == URL
