"""Pydantic DTOs shared by the agent, its collaborators and the REST API.

These models define the data contract between the orchestrator and
whatever transport feeds it messages.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, Field

# Type aliases using Literal for compile-time validation
ContentType = Literal["text", "image", "file"]
Role = Literal["user", "assistant", "system"]
ImprovementType = Literal["default", "custom", "none"]
AgentState = Literal["running", "stopped", "error"]
HealthState = Literal["healthy", "unhealthy", "degraded"]

# Open context bag handed to improvers (conversation_id, message_id, role, ...)
ContextValue = Union[str, int, float, bool, None, list[Any], dict[str, Any]]
ImprovementContext = dict[str, ContextValue]

# An improver takes (message, context) and returns text, sync or async
Improver = Callable[[str, ImprovementContext | None], str | Awaitable[str]]


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Messages ---


class MessageContent(BaseModel):
    """One content block of a message."""

    type: ContentType = "text"
    content: str
    metadata: dict[str, Any] | None = None


class Message(BaseModel):
    """A message received by the agent. Only content[0] is ever improved."""

    id: str
    role: Role = "user"
    content: list[MessageContent] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)
    conversation_id: str
    metadata: dict[str, Any] | None = None

    @property
    def text(self) -> str:
        """Text of the first content block, or '' when there is none."""
        return self.content[0].content if self.content else ""


class Conversation(BaseModel):
    """Append-only list of messages sharing a conversation id."""

    id: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] | None = None


# --- Improvement ---


class MessageImprovementResult(BaseModel):
    """Outcome of running an improver. 'none' means the text was left as-is."""

    original_message: str
    improved_message: str
    improvement_type: ImprovementType
    metadata: dict[str, Any] | None = None


class MessageProcessingOptions(BaseModel):
    improve_message: bool = True
    improver_name: str | None = None


# --- Agent ---


class AgentEndpoints(BaseModel):
    agent: str
    api: str
    health: str


class AgentStatus(BaseModel):
    """Derived snapshot of orchestrator state, recomputed on every call."""

    agent_id: str
    status: AgentState
    uptime: int  # milliseconds since the agent was constructed
    message_count: int
    last_activity: datetime
    endpoints: AgentEndpoints


class AgentCapabilities(BaseModel):
    message_improvement: bool = True
    conversation_management: bool = True
    websocket_support: bool = False
    api_endpoints: bool = True
    registry_integration: bool = True
    custom_improvers: bool = True
    logging: bool = True
    ssl: bool = False


class HealthServices(BaseModel):
    agent: bool
    api: bool
    registry: bool


class HealthCheckResult(BaseModel):
    status: HealthState
    timestamp: datetime = Field(default_factory=utcnow)
    services: HealthServices
    details: dict[str, Any] | None = None


# --- Registry ---


class RegistryRecord(BaseModel):
    """Registration payload; serialized camelCase for the registry service."""

    url: str
    agent_id: str = Field(serialization_alias="agentId")
    agent_url: str = Field(serialization_alias="agentUrl")
    api_url: str = Field(serialization_alias="apiUrl")
