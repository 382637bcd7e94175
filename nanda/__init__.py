"""NANDA agent SDK.

Public API: the NANDA orchestrator, its collaborators and the schema types.
"""

from nanda.agent import NANDA
from nanda.api.server import ApiServer, ApiServerError
from nanda.bridge import AgentBridge, BridgeNotRunningError
from nanda.config import DEFAULT_REGISTRY_URL, Settings
from nanda.conversations import ConversationStore
from nanda.heartbeat import HeartbeatMonitor
from nanda.improvers import DEFAULT_IMPROVER, MessageImprover
from nanda.registry_client import RegistryClient
from nanda.schemas import (
    AgentCapabilities,
    AgentStatus,
    Conversation,
    HealthCheckResult,
    ImprovementContext,
    Improver,
    Message,
    MessageContent,
    MessageImprovementResult,
    MessageProcessingOptions,
    RegistryRecord,
)

VERSION = "1.0.0"
SDK_NAME = "nanda-agent-sdk"

__all__ = [
    "NANDA",
    # Collaborators
    "AgentBridge",
    "ApiServer",
    "ConversationStore",
    "HeartbeatMonitor",
    "MessageImprover",
    "RegistryClient",
    "Settings",
    # Errors
    "ApiServerError",
    "BridgeNotRunningError",
    # Types
    "AgentCapabilities",
    "AgentStatus",
    "Conversation",
    "HealthCheckResult",
    "ImprovementContext",
    "Improver",
    "Message",
    "MessageContent",
    "MessageImprovementResult",
    "MessageProcessingOptions",
    "RegistryRecord",
    # Constants
    "DEFAULT_IMPROVER",
    "DEFAULT_REGISTRY_URL",
    "SDK_NAME",
    "VERSION",
]
