"""Tests for nanda/registry_client.py.

HTTP is served by httpx.MockTransport; no real network calls are made.
"""

import json

import httpx
import pytest

from nanda.registry_client import RegistryClient

REGISTRY = "https://registry.test:6900"


def _client(settings, handler) -> RegistryClient:
    settings = settings.model_copy(update={"registry_url": REGISTRY + "/"})
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RegistryClient(settings, http_client=http)


def _responder(status_code: int, calls: list[httpx.Request] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, json={"ok": status_code == 200})

    return handler


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestRegister:
    @pytest.mark.asyncio
    async def test_success(self, settings):
        calls: list[httpx.Request] = []
        client = _client(settings, _responder(200, calls))

        assert await client.register() is True
        assert client.is_registered

        request = calls[0]
        assert request.method == "POST"
        assert str(request.url) == f"{REGISTRY}/register"
        assert json.loads(request.content) == {
            "url": REGISTRY,
            "agentId": "test-agent",
            "agentUrl": "http://localhost:6000",
            "apiUrl": "http://localhost:6001",
        }

    @pytest.mark.asyncio
    async def test_public_urls_used(self, settings):
        calls: list[httpx.Request] = []
        settings = settings.model_copy(
            update={"public_url": "https://agent.example", "api_url": "https://api.example"}
        )
        client = _client(settings, _responder(200, calls))
        await client.register()
        body = json.loads(calls[0].content)
        assert body["agentUrl"] == "https://agent.example"
        assert body["apiUrl"] == "https://api.example"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 409, 500, 503])
    async def test_non_200_returns_false(self, settings, status_code):
        client = _client(settings, _responder(status_code))
        assert await client.register() is False
        assert not client.is_registered

    @pytest.mark.asyncio
    async def test_connection_refused(self, settings, caplog):
        client = _client(settings, _refuse)
        assert await client.register() is False
        assert "continue without registration" in caplog.text

    @pytest.mark.asyncio
    async def test_timeout(self, settings):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(settings, slow)
        assert await client.register() is False


class TestUnregister:
    @pytest.mark.asyncio
    async def test_not_registered_is_noop(self, settings):
        calls: list[httpx.Request] = []
        client = _client(settings, _responder(200, calls))
        assert await client.unregister() is True
        assert calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [200, 404])
    async def test_success_codes(self, settings, status_code):
        calls: list[httpx.Request] = []
        client = _client(settings, _responder(200, calls))
        await client.register()
        client._http = httpx.AsyncClient(transport=httpx.MockTransport(_responder(status_code, calls)))

        assert await client.unregister() is True
        assert not client.is_registered
        assert calls[-1].method == "DELETE"
        assert str(calls[-1].url) == f"{REGISTRY}/register/test-agent"

    @pytest.mark.asyncio
    async def test_failure_keeps_registration(self, settings):
        client = _client(settings, _responder(200))
        await client.register()
        client._http = httpx.AsyncClient(transport=httpx.MockTransport(_responder(500)))
        assert await client.unregister() is False
        assert client.is_registered

    @pytest.mark.asyncio
    async def test_network_error(self, settings):
        client = _client(settings, _responder(200))
        await client.register()
        client._http = httpx.AsyncClient(transport=httpx.MockTransport(_refuse))
        assert await client.unregister() is False


class TestUpdateAndHeartbeat:
    @pytest.mark.asyncio
    async def test_update_requires_registration(self, settings):
        client = _client(settings, _responder(200))
        assert await client.update_registration(apiUrl="x") is False

    @pytest.mark.asyncio
    async def test_update(self, settings):
        calls: list[httpx.Request] = []
        client = _client(settings, _responder(200, calls))
        await client.register()
        assert await client.update_registration(apiUrl="https://new.example") is True
        assert calls[-1].method == "PUT"
        assert json.loads(calls[-1].content) == {"apiUrl": "https://new.example"}

    @pytest.mark.asyncio
    async def test_heartbeat_requires_registration(self, settings):
        calls: list[httpx.Request] = []
        client = _client(settings, _responder(200, calls))
        assert await client.heartbeat() is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_heartbeat(self, settings):
        calls: list[httpx.Request] = []
        client = _client(settings, _responder(200, calls))
        await client.register()
        assert await client.heartbeat() is True
        body = json.loads(calls[-1].content)
        assert str(calls[-1].url) == f"{REGISTRY}/heartbeat/test-agent"
        assert body["status"] == "alive"
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_heartbeat_network_error(self, settings):
        client = _client(settings, _responder(200))
        await client.register()
        client._http = httpx.AsyncClient(transport=httpx.MockTransport(_refuse))
        assert await client.heartbeat() is False


class TestMisc:
    def test_registry_url_setter_strips_slash(self, settings):
        client = _client(settings, _responder(200))
        client.registry_url = "https://other.example/"
        assert client.registry_url == "https://other.example"
        assert client.get_registry_status() == {
            "url": "https://other.example",
            "registered": False,
            "agent_id": "test-agent",
        }

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, settings):
        client = _client(settings, _responder(200))
        await client.close()
        assert not client._http.is_closed

    @pytest.mark.asyncio
    async def test_close_owned_client(self, settings):
        client = RegistryClient(settings)
        await client.close()
        assert client._http.is_closed
