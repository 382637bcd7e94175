"""In-memory conversation store.

Conversations are created lazily on the first message that references
them and grow append-only. With max_conversations > 0 the least recently
updated conversation is evicted to make room for a new one.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any
from uuid import uuid4

from nanda.schemas import Conversation, Message, utcnow

logger = logging.getLogger(__name__)


class ConversationStore:
    """Maps conversation id -> Conversation. Single writer: the owning agent."""

    def __init__(self, max_conversations: int = 0) -> None:
        self._conversations: OrderedDict[str, Conversation] = OrderedDict()
        self._max = max_conversations

    def append(self, message: Message) -> Conversation:
        """Append a message to its conversation, creating it on first use."""
        conversation = self._conversations.get(message.conversation_id)
        if conversation is None:
            conversation = self._insert(Conversation(id=message.conversation_id))
        else:
            self._conversations.move_to_end(conversation.id)

        conversation.messages.append(message)
        conversation.updated_at = utcnow()
        return conversation

    def create(self, metadata: dict[str, Any] | None = None) -> Conversation:
        conversation = self._insert(Conversation(id=str(uuid4()), metadata=metadata))
        logger.info("New conversation created: %s", conversation.id)
        return conversation

    def get(self, conversation_id: str) -> Conversation | None:
        return self._conversations.get(conversation_id)

    def list(self) -> list[Conversation]:
        """All conversations, least recently updated first."""
        return list(self._conversations.values())

    def delete(self, conversation_id: str) -> bool:
        deleted = self._conversations.pop(conversation_id, None) is not None
        if deleted:
            logger.info("Conversation deleted: %s", conversation_id)
        return deleted

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def _insert(self, conversation: Conversation) -> Conversation:
        if self._max:
            while len(self._conversations) >= self._max:
                evicted_id, _ = self._conversations.popitem(last=False)
                logger.debug("Evicted conversation %s (capacity %d)", evicted_id, self._max)
        self._conversations[conversation.id] = conversation
        return conversation
