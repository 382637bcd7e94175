"""Tests for nanda/api/server.py: config building and start/stop guards.

The uvicorn server itself is replaced with a stub so no port is bound.
"""

import asyncio
from unittest.mock import patch

import pytest

from nanda.agent import NANDA
from nanda.api.server import ApiServer, ApiServerError


class _StubServer:
    """Stands in for uvicorn.Server: 'binds' immediately and serves until told to exit."""

    def __init__(self, config):
        self.config = config
        self.started = False
        self.should_exit = False

    async def serve(self):
        self.started = True
        while not self.should_exit:
            await asyncio.sleep(0.01)


class _FailingServer(_StubServer):
    async def serve(self):
        raise SystemExit(1)


@pytest.fixture
def server(settings, mock_registry) -> ApiServer:
    agent = NANDA(settings, registry_client=mock_registry)
    return agent.api_server


class TestApiServer:
    def test_config_plain_http(self, server):
        config = server._build_config()
        assert config.port == 6001
        assert config.ssl_certfile is None

    def test_config_ssl(self, settings, mock_registry):
        settings = settings.model_copy(
            update={"ssl": True, "cert_path": "/tmp/cert.pem", "key_path": "/tmp/key.pem"}
        )
        agent = NANDA(settings, registry_client=mock_registry)
        config = agent.api_server._build_config()
        assert config.ssl_certfile == "/tmp/cert.pem"
        assert config.ssl_keyfile == "/tmp/key.pem"
        assert agent.get_capabilities().ssl is True

    @pytest.mark.asyncio
    async def test_start_and_stop(self, server):
        with patch("nanda.api.server._EmbeddedServer", _StubServer):
            await server.start()
            assert server.is_running
            await server.stop()
        assert not server.is_running

    @pytest.mark.asyncio
    async def test_start_failure_raises(self, server):
        with patch("nanda.api.server._EmbeddedServer", _FailingServer):
            with pytest.raises(ApiServerError):
                await server.start()
        assert not server.is_running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, server):
        await server.stop()
        assert not server.is_running

    def test_info(self, server):
        info = server.get_info()
        assert info["port"] == 6001
        assert info["running"] is False
        assert "POST /api/receive_message" in info["endpoints"]
