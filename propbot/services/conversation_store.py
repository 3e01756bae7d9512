"""Conversation persistence.

The dialog engine only talks to the ``ConversationStore`` protocol. The
in-memory implementation keeps one active conversation per session id and
guards writes with an optimistic version check, so two exchanges racing on
the same session cannot silently overwrite each other.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Dict, Optional, Protocol

from propbot.errors import ConcurrentUpdateError
from propbot.models.conversation import Conversation, utcnow

logger = logging.getLogger(__name__)


class ConversationStore(Protocol):
    async def load_or_create_active(self, session_id: str, user_id: Optional[str] = None) -> Conversation:
        ...

    async def get_active(self, session_id: str) -> Optional[Conversation]:
        ...

    async def persist(self, conversation: Conversation) -> None:
        ...

    async def sweep_inactive(self, retention_days: int) -> int:
        ...

    async def close(self) -> None:
        ...


class InMemoryConversationStore:
    def __init__(self) -> None:
        self._conversations: Dict[str, Conversation] = {}
        self._lock = asyncio.Lock()

    async def load_or_create_active(self, session_id: str, user_id: Optional[str] = None) -> Conversation:
        async with self._lock:
            stored = self._conversations.get(session_id)
            if stored and stored.is_active:
                return stored.model_copy(deep=True)

            conversation = Conversation.start(session_id, user_id)
            conversation.version = 1
            self._conversations[session_id] = conversation
            logger.info("conversation_store.created session_id=%s replaced_inactive=%s", session_id, bool(stored))
            return conversation.model_copy(deep=True)

    async def get_active(self, session_id: str) -> Optional[Conversation]:
        stored = self._conversations.get(session_id)
        if not stored or not stored.is_active:
            return None
        return stored.model_copy(deep=True)

    async def persist(self, conversation: Conversation) -> None:
        async with self._lock:
            stored = self._conversations.get(conversation.session_id)
            if stored is not None and stored.version != conversation.version:
                logger.warning(
                    "conversation_store.version_conflict session_id=%s stored=%d incoming=%d",
                    conversation.session_id,
                    stored.version,
                    conversation.version,
                )
                raise ConcurrentUpdateError(
                    f"Conversation {conversation.session_id} was updated by another request"
                )
            conversation.version += 1
            conversation.updated_at = utcnow()
            self._conversations[conversation.session_id] = conversation.model_copy(deep=True)

    async def sweep_inactive(self, retention_days: int) -> int:
        cutoff = utcnow() - timedelta(days=retention_days)
        async with self._lock:
            stale = [
                session_id
                for session_id, conversation in self._conversations.items()
                if not conversation.is_active and conversation.last_activity < cutoff
            ]
            for session_id in stale:
                del self._conversations[session_id]
        logger.info("conversation_store.sweep removed=%d retention_days=%d", len(stale), retention_days)
        return len(stale)

    async def close(self) -> None:
        self._conversations.clear()
