"""In-process agent bridge.

Stand-in for the agent-to-agent transport: it never opens a socket.
Messages injected with simulate_message() are handed to the registered
message handlers in order. Handler errors are isolated: they are routed
to the error handlers and never reach the caller.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from nanda.config import Settings
from nanda.schemas import Message

logger = logging.getLogger(__name__)

MessageHandler = Callable[[Message], Awaitable[None] | None]
ErrorHandler = Callable[[Exception], Awaitable[None] | None]


class BridgeNotRunningError(RuntimeError):
    """Raised when sending or receiving through a stopped bridge."""


class AgentBridge:
    """Minimal pub/sub between a transport and the agent."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._running = False
        self._message_handlers: list[MessageHandler] = []
        self._error_handlers: list[ErrorHandler] = []

    @property
    def port(self) -> int:
        return self._settings.port

    @property
    def is_running(self) -> bool:
        return self._running

    def on_message(self, handler: MessageHandler) -> None:
        """Register a handler for received messages. Can register multiple."""
        self._message_handlers.append(handler)
        logger.debug("Registered message handler: %s", getattr(handler, "__qualname__", handler))

    def on_error(self, handler: ErrorHandler) -> None:
        self._error_handlers.append(handler)

    async def start(self) -> None:
        if self._running:
            return
        logger.info("Starting agent bridge on port %d", self.port)
        self._running = True
        logger.info("Agent bridge started on port %d", self.port)

    async def stop(self) -> None:
        if not self._running:
            logger.debug("Agent bridge already stopped")
            return
        self._running = False
        logger.info("Agent bridge stopped")

    async def send_message(self, message: Message) -> None:
        """Send a message outward. The placeholder transport only logs it."""
        if not self._running:
            raise BridgeNotRunningError("Agent bridge is not running")
        logger.debug("Sending message: %s", message.id)

    async def simulate_message(self, message: Message) -> None:
        """Deliver a message to the message handlers as if it was received."""
        if not self._running:
            raise BridgeNotRunningError("Agent bridge is not running")
        logger.debug("Simulating received message: %s", message.id)
        for handler in list(self._message_handlers):
            try:
                await _maybe_await(handler(message))
            except Exception as e:
                logger.warning("Message handler failed for %s: %s", message.id, e)
                await self._emit_error(e)

    async def _emit_error(self, error: Exception) -> None:
        for handler in list(self._error_handlers):
            try:
                await _maybe_await(handler(error))
            except Exception:
                logger.exception("Error handler %s failed", getattr(handler, "__qualname__", handler))

    def get_status(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "port": self.port,
            "message_handlers": len(self._message_handlers),
            "error_handlers": len(self._error_handlers),
        }


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result
