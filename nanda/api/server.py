"""Embedded uvicorn server for the agent's REST API.

The server runs as a task on the agent's own event loop, so the agent
can start and stop it alongside the bridge. Signal handling is left to
the embedding process (see nanda.main).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

import uvicorn

from nanda.api.rest import create_app
from nanda.config import Settings

if TYPE_CHECKING:
    from nanda.agent import NANDA

logger = logging.getLogger(__name__)

STARTUP_POLL_INTERVAL = 0.05


class ApiServerError(RuntimeError):
    """Raised when the API server cannot start."""


class _EmbeddedServer(uvicorn.Server):
    """uvicorn.Server that does not take over the process signal handlers."""

    def install_signal_handlers(self) -> None:  # uvicorn < 0.29
        pass

    @contextlib.contextmanager
    def capture_signals(self):  # uvicorn >= 0.29
        yield


class ApiServer:
    """Owns the ASGI app and the uvicorn server task serving it."""

    def __init__(self, agent: NANDA, settings: Settings) -> None:
        self._settings = settings
        self.app = create_app(agent)
        self._server: _EmbeddedServer | None = None
        self._task: asyncio.Task | None = None

    @property
    def port(self) -> int:
        return self._settings.api_port

    @property
    def is_running(self) -> bool:
        return self._server is not None and self._server.started

    def _build_config(self) -> uvicorn.Config:
        kwargs: dict[str, Any] = {
            "host": self._settings.host,
            "port": self.port,
            "log_level": self._settings.log_level,
        }
        if self._settings.ssl:
            kwargs["ssl_certfile"] = self._settings.cert_path
            kwargs["ssl_keyfile"] = self._settings.key_path
            logger.info("SSL enabled with certificates at %s", self._settings.cert_path)
        else:
            logger.warning("SSL disabled - running in HTTP mode")
        return uvicorn.Config(self.app, **kwargs)

    async def start(self) -> None:
        """Start serving and wait until the socket is bound."""
        if self._task is not None:
            return
        logger.info("Starting API server on port %d", self.port)
        self._server = _EmbeddedServer(self._build_config())
        self._task = asyncio.create_task(self._serve(), name="api-server")

        while not self._server.started:
            if self._task.done():
                error = self._task.exception()
                self._server = None
                self._task = None
                raise ApiServerError(f"API server failed to start on port {self.port}") from error
            await asyncio.sleep(STARTUP_POLL_INTERVAL)

        logger.info("API server started on port %d", self.port)

    async def _serve(self) -> None:
        try:
            await self._server.serve()
        except SystemExit as e:
            # uvicorn exits the process when it cannot bind
            raise ApiServerError(f"uvicorn exited with code {e.code}") from e

    async def stop(self) -> None:
        if self._task is None:
            return
        logger.info("Stopping API server")
        self._server.should_exit = True
        try:
            await self._task
        except ApiServerError as e:
            logger.warning("API server exited with error: %s", e)
        finally:
            self._server = None
            self._task = None
        logger.info("API server stopped")

    def get_info(self) -> dict[str, Any]:
        return {
            "port": self.port,
            "running": self.is_running,
            "endpoints": [
                "GET /api/health",
                "GET /api/status",
                "GET /api/capabilities",
                "POST /api/send",
                "POST /api/receive_message",
                "GET /api/agents/list",
                "GET /api/improvers",
                "PUT /api/improvers/active",
                "DELETE /api/improvers/{name}",
                "POST /api/improve",
                "GET /api/conversations",
                "POST /api/conversations",
                "GET /api/conversations/{id}",
                "DELETE /api/conversations/{id}",
            ],
        }
