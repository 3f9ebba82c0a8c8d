# wayfarer/agents/conversation_store.py
"""In-memory registry of conversations with idle-time garbage collection."""
import time
from typing import Dict, List, Optional

from wayfarer.schemas.conversation import Conversation
from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)


class ConversationStore:
    def __init__(self, max_age_hours: float = 24.0):
        self.max_age_s = max_age_hours * 3600
        self._conversations: Dict[str, Conversation] = {}

    def get_or_create(self, conversation_id: str, page_session_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is not None:
            conversation.touch()
            return conversation
        conversation = Conversation(id=conversation_id, page_session_id=page_session_id)
        self._conversations[conversation_id] = conversation
        logger.info(
            f"Created conversation '{conversation_id}'",
            extra={"page_session_id": page_session_id},
        )
        return conversation

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def clear(self, conversation_id: str) -> bool:
        """Forget a conversation. Other conversations on its page session are untouched."""
        removed = self._conversations.pop(conversation_id, None) is not None
        if removed:
            logger.info(f"Cleared conversation '{conversation_id}'")
        return removed

    def drop_for_session(self, page_session_id: str) -> int:
        """Forget every conversation bound to a page session that was closed."""
        bound = [
            cid
            for cid, c in self._conversations.items()
            if c.page_session_id == page_session_id
        ]
        for cid in bound:
            del self._conversations[cid]
        if bound:
            logger.info(
                f"Dropped {len(bound)} conversation(s) of closed page session",
                extra={"page_session_id": page_session_id},
            )
        return len(bound)

    def list_active(self) -> List[Conversation]:
        """Conversations active within the max age, most recent first."""
        now = time.time()
        active = [
            c for c in self._conversations.values() if now - c.last_activity < self.max_age_s
        ]
        return sorted(active, key=lambda c: c.last_activity, reverse=True)

    def cleanup_old(self) -> int:
        now = time.time()
        stale = [
            cid
            for cid, c in self._conversations.items()
            if now - c.last_activity > self.max_age_s
        ]
        for cid in stale:
            del self._conversations[cid]
        if stale:
            logger.info(f"Removed {len(stale)} idle conversation(s)")
        return len(stale)

    def __len__(self) -> int:
        return len(self._conversations)
