"""Heartbeat monitor. Keeps the registry entry fresh while the agent runs.

Calls RegistryClient.heartbeat() every heartbeat_interval seconds.
A failed beat is logged and the loop carries on; an interval of 0
disables the monitor entirely.
"""

from __future__ import annotations

import asyncio
import logging

from nanda.registry_client import RegistryClient

logger = logging.getLogger(__name__)


class HeartbeatMonitor:
    def __init__(self, registry_client: RegistryClient, interval: float):
        self._registry = registry_client
        self._interval = interval
        self._task: asyncio.Task | None = None
        self.beats = 0
        self.failures = 0

    @property
    def enabled(self) -> bool:
        return self._interval > 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the periodic heartbeat task."""
        if not self.enabled or self.is_running:
            return
        self._task = asyncio.create_task(self._beat_loop(), name="registry-heartbeat")
        logger.info("Heartbeat monitor started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Heartbeat monitor stopped")

    async def _beat_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.beat()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Unexpected error in heartbeat loop")

    async def beat(self) -> bool:
        """Send one heartbeat, tracking success and failure counts."""
        ok = await self._registry.heartbeat()
        if ok:
            self.beats += 1
        else:
            self.failures += 1
            logger.debug("Registry heartbeat not acknowledged")
        return ok
