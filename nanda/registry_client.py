"""Client for the NANDA registry (agent directory) service.

Uses httpx.AsyncClient. Every call is best-effort: network failures and
non-200 answers are logged and reported as False, never raised, so an
unreachable registry never keeps the agent from running.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nanda.config import Settings
from nanda.schemas import RegistryRecord, utcnow

logger = logging.getLogger(__name__)

REGISTER_TIMEOUT = 30.0
UNREGISTER_TIMEOUT = 10.0
UPDATE_TIMEOUT = 15.0
HEARTBEAT_TIMEOUT = 5.0


class RegistryClient:
    """Registers the agent with the registry and keeps it informed."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._registry_url = settings.registry_url.rstrip("/")
        self._registered = False
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient()

    @property
    def registry_url(self) -> str:
        return self._registry_url

    @registry_url.setter
    def registry_url(self, url: str) -> None:
        self._registry_url = url.rstrip("/")
        logger.info("Registry URL updated to: %s", self._registry_url)

    @property
    def is_registered(self) -> bool:
        return self._registered

    def build_record(self) -> RegistryRecord:
        return RegistryRecord(
            url=self._registry_url,
            agent_id=self._settings.agent_id,
            agent_url=self._settings.agent_url,
            api_url=self._settings.api_base_url,
        )

    async def register(self) -> bool:
        """POST the registration record. True only on HTTP 200."""
        agent_id = self._settings.agent_id
        logger.info("Registering agent %s with registry at %s", agent_id, self._registry_url)
        try:
            response = await self._http.post(
                f"{self._registry_url}/register",
                json=self.build_record().model_dump(by_alias=True),
                timeout=REGISTER_TIMEOUT,
            )
        except httpx.ConnectError:
            logger.warning(
                "Could not connect to registry at %s. Agent will continue without registration.",
                self._registry_url,
            )
            self._registered = False
            return False
        except httpx.HTTPError as e:
            logger.error("Registry connection error: %s", e)
            self._registered = False
            return False

        if response.status_code == 200:
            self._registered = True
            logger.info("Agent %s registered successfully at %s", agent_id, self._registry_url)
            return True

        if response.status_code >= 500:
            logger.error("Registry error %d during registration: %s", response.status_code, response.text)
        else:
            logger.warning(
                "Registry registration failed with status %d: %s", response.status_code, response.text
            )
        self._registered = False
        return False

    async def unregister(self) -> bool:
        """DELETE the registration. A 404 counts as success."""
        if not self._registered:
            logger.info("Agent not registered with registry")
            return True

        agent_id = self._settings.agent_id
        logger.info("Unregistering agent %s from registry", agent_id)
        try:
            response = await self._http.delete(
                f"{self._registry_url}/register/{agent_id}",
                timeout=UNREGISTER_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.error("Error unregistering from registry: %s", e)
            return False

        if response.status_code in (200, 404):
            self._registered = False
            logger.info("Agent %s unregistered successfully", agent_id)
            return True

        logger.warning("Registry unregistration failed with status %d", response.status_code)
        return False

    async def update_registration(self, **updates: Any) -> bool:
        """PUT partial registration fields (camelCase keys, as the registry stores them)."""
        if not self._registered:
            logger.warning("Cannot update registration: agent not registered")
            return False

        agent_id = self._settings.agent_id
        logger.info("Updating registry for agent %s", agent_id)
        try:
            response = await self._http.put(
                f"{self._registry_url}/register/{agent_id}",
                json=updates,
                timeout=UPDATE_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.error("Error updating registry: %s", e)
            return False

        if response.status_code == 200:
            logger.info("Registry updated for agent %s", agent_id)
            return True

        logger.warning("Registry update failed with status %d", response.status_code)
        return False

    async def heartbeat(self) -> bool:
        if not self._registered:
            return False
        try:
            response = await self._http.post(
                f"{self._registry_url}/heartbeat/{self._settings.agent_id}",
                json={"timestamp": utcnow().isoformat(), "status": "alive"},
                timeout=HEARTBEAT_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.debug("Heartbeat failed: %s", e)
            return False
        return response.status_code == 200

    def get_registry_status(self) -> dict[str, Any]:
        return {
            "url": self._registry_url,
            "registered": self._registered,
            "agent_id": self._settings.agent_id,
        }

    async def close(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()
