"""Tests for the connectivity gate."""

import httpx
import pytest

from src.core.connectivity import ConnectivityGate


PROBE_URL = "https://habits.example.test/api/health"


def _gate(handler) -> ConnectivityGate:
    return ConnectivityGate(probe_url=PROBE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestConnectivityGate:
    """Tests for ConnectivityGate.is_online."""

    async def test_success_status_is_online(self):
        gate = _gate(lambda request: httpx.Response(200, json={"status": "ok"}))

        assert await gate.is_online() is True

    async def test_error_status_is_offline(self):
        gate = _gate(lambda request: httpx.Response(502))

        assert await gate.is_online() is False

    async def test_transport_error_is_offline(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route to host", request=request)

        assert await _gate(handler).is_online() is False

    async def test_each_call_probes_again(self):
        answers = iter([200, 503, 200])
        probes: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            probes.append(request)
            return httpx.Response(next(answers))

        gate = _gate(handler)
        results = [await gate.is_online(), await gate.is_online(), await gate.is_online()]

        assert results == [True, False, True]
        assert len(probes) == 3

    def test_probe_url_defaults_to_api_health(self, monkeypatch):
        monkeypatch.setattr("src.core.connectivity.settings.api_base_url", "https://api.example.test/v1/")
        monkeypatch.setattr("src.core.connectivity.settings.connectivity_probe_url", None)

        assert ConnectivityGate().probe_url == "https://api.example.test/v1/health"
