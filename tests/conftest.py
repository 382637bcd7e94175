"""Shared fixtures: settings, mocked collaborators and a wired agent.

Nothing here opens a socket: the API server and registry client are
MagicMocks with spec, so their async methods become AsyncMocks.
"""

from unittest.mock import MagicMock

import pytest

from nanda.agent import NANDA
from nanda.api.server import ApiServer
from nanda.config import Settings
from nanda.registry_client import RegistryClient
from nanda.schemas import Message, MessageContent


def make_message(
    text: str | None = "hello",
    *,
    message_id: str = "m1",
    conversation_id: str = "c1",
    role: str = "user",
) -> Message:
    """Build a Message with a single text block (or no blocks if text is None)."""
    content = [] if text is None else [MessageContent(type="text", content=text)]
    return Message(id=message_id, role=role, content=content, conversation_id=conversation_id)


@pytest.fixture
def settings() -> Settings:
    return Settings(agent_id="test-agent", heartbeat_interval=0)


@pytest.fixture
def mock_api_server() -> MagicMock:
    return MagicMock(spec=ApiServer)


@pytest.fixture
def mock_registry() -> MagicMock:
    registry = MagicMock(spec=RegistryClient)
    registry.register.return_value = True
    registry.unregister.return_value = True
    registry.heartbeat.return_value = True
    registry.is_registered = False
    return registry


@pytest.fixture
def agent(settings, mock_api_server, mock_registry) -> NANDA:
    """Agent with real improver/store/bridge and mocked network collaborators."""
    return NANDA(settings, api_server=mock_api_server, registry_client=mock_registry)
