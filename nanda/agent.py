"""NANDA agent orchestrator.

Owns the improver registry and the conversation store, wires the bridge,
REST API server and registry client together, and runs the message
pipeline:

  Bridge/REST -> process_message -> ConversationStore.append
                                 -> MessageImprover.improve_with -> result

Improver failures never escape process_message (see MessageImprover).
Anything else that fails inside the pipeline propagates to the caller.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from nanda.api.server import ApiServer
from nanda.bridge import AgentBridge
from nanda.config import Settings
from nanda.conversations import ConversationStore
from nanda.heartbeat import HeartbeatMonitor
from nanda.improvers import MessageImprover
from nanda.registry_client import RegistryClient
from nanda.schemas import (
    AgentCapabilities,
    AgentEndpoints,
    AgentStatus,
    Conversation,
    Message,
    MessageImprovementResult,
    MessageProcessingOptions,
    utcnow,
)

logger = logging.getLogger(__name__)


class NANDA:
    """A single agent instance. Collaborators can be injected for testing."""

    def __init__(
        self,
        settings: Settings,
        *,
        improver: MessageImprover | None = None,
        bridge: AgentBridge | None = None,
        api_server: ApiServer | None = None,
        registry_client: RegistryClient | None = None,
    ) -> None:
        self._settings = settings
        self.improver = improver or MessageImprover()
        self.conversations = ConversationStore(settings.max_conversations)
        self.bridge = bridge or AgentBridge(settings)
        self.api_server = api_server or ApiServer(self, settings)
        self.registry_client = registry_client or RegistryClient(settings)
        self.heartbeat = HeartbeatMonitor(self.registry_client, settings.heartbeat_interval)

        self._started_monotonic = time.monotonic()
        self._last_activity = utcnow()
        self._message_count = 0
        self._running = False

        self._setup_message_pipeline()
        logger.info("NANDA agent initialized: %s", settings.agent_id)

    def _setup_message_pipeline(self) -> None:
        self.bridge.on_message(self._on_bridge_message)
        self.bridge.on_error(self._on_bridge_error)

    async def _on_bridge_message(self, message: Message) -> None:
        await self.process_message(message)

    async def _on_bridge_error(self, error: Exception) -> None:
        logger.error("Agent bridge error: %s", error)

    # ------------------------------------------------------------------
    # Message pipeline
    # ------------------------------------------------------------------

    async def process_message(
        self,
        message: Message,
        options: MessageProcessingOptions | None = None,
    ) -> MessageImprovementResult:
        """Store a message and run it through an improver.

        Counts the message first, whatever happens next. The store append
        runs before the first await, so appends keep dispatch order.
        """
        options = options or MessageProcessingOptions()
        self._message_count += 1
        self._last_activity = utcnow()
        logger.debug("Message %s received in conversation %s", message.id, message.conversation_id)

        try:
            self.conversations.append(message)
            text = message.text

            if not options.improve_message:
                return MessageImprovementResult(
                    original_message=text,
                    improved_message=text,
                    improvement_type="none",
                    metadata={"message_id": message.id, "conversation_id": message.conversation_id},
                )

            improver_name = options.improver_name or self.improver.get_active()
            result = await self.improver.improve_with(
                improver_name,
                text,
                {
                    "conversation_id": message.conversation_id,
                    "message_id": message.id,
                    "role": message.role,
                },
            )
        except Exception as e:
            logger.error("Error processing message %s: %s", message.id, e)
            raise

        logger.debug(
            "Message %s processed with %s improvement in conversation %s",
            message.id,
            result.improvement_type,
            message.conversation_id,
        )
        return result

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self.conversations.get(conversation_id)

    def get_all_conversations(self) -> list[Conversation]:
        return self.conversations.list()

    def create_conversation(self, metadata: dict[str, Any] | None = None) -> Conversation:
        return self.conversations.create(metadata)

    def delete_conversation(self, conversation_id: str) -> bool:
        return self.conversations.delete(conversation_id)

    # ------------------------------------------------------------------
    # Status & config
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def message_count(self) -> int:
        return self._message_count

    def get_status(self) -> AgentStatus:
        settings = self._settings
        return AgentStatus(
            agent_id=settings.agent_id,
            status="running" if self._running else "stopped",
            uptime=int((time.monotonic() - self._started_monotonic) * 1000),
            message_count=self._message_count,
            last_activity=self._last_activity,
            endpoints=AgentEndpoints(
                agent=f"http://localhost:{settings.port}",
                api=f"http://localhost:{settings.api_port}",
                health=f"http://localhost:{settings.api_port}/api/health",
            ),
        )

    def get_capabilities(self) -> AgentCapabilities:
        return AgentCapabilities(ssl=self._settings.ssl)

    def get_config(self) -> Settings:
        """Return a copy of the settings; mutate through update_config()."""
        return self._settings.model_copy()

    def update_config(self, **updates: Any) -> Settings:
        """Merge updates into the settings. Collaborators keep their old copy
        until the agent is restarted.

        The merged values are validated like a fresh Settings, so a rejected
        update raises ValidationError and leaves the settings unchanged.
        """
        unknown = set(updates) - set(Settings.model_fields)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        self._settings = Settings.model_validate({**self._settings.model_dump(), **updates})
        logger.info("Configuration updated: %s", ", ".join(sorted(updates)))
        return self.get_config()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start bridge and API server, then register (best effort).

        Bridge or API server failures propagate and leave the agent stopped.
        """
        agent_id = self._settings.agent_id
        logger.info("Starting NANDA agent: %s", agent_id)
        try:
            await self.bridge.start()
            await self.api_server.start()
        except Exception as e:
            logger.error("Failed to start NANDA agent: %s", e)
            self._running = False
            raise

        try:
            await self.registry_client.register()
        except Exception:
            logger.warning("Registry registration failed (non-fatal)", exc_info=True)

        await self.heartbeat.start()
        self._running = True
        logger.info("Agent %s started on port %d", agent_id, self._settings.port)

    async def stop(self) -> None:
        """Stop heartbeat, bridge and API server, then unregister. Idempotent."""
        agent_id = self._settings.agent_id
        logger.info("Stopping NANDA agent: %s", agent_id)
        await self.heartbeat.stop()
        try:
            await self.bridge.stop()
            await self.api_server.stop()
        except Exception as e:
            logger.error("Error stopping NANDA agent: %s", e)
            raise
        finally:
            self._running = False

        try:
            await self.registry_client.unregister()
        except Exception:
            logger.warning("Registry unregistration failed (non-fatal)", exc_info=True)

        logger.info("Agent %s stopped", agent_id)

    async def restart(self) -> None:
        await self.stop()
        await self.start()

    async def close(self) -> None:
        """Stop if running and release the registry HTTP client."""
        if self._running:
            await self.stop()
        await self.registry_client.close()
