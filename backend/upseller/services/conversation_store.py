"""
In-memory conversation history.

WHAT: Bounded per (listing, buyer) message history
WHY: Negotiation needs recent context, memory must stay bounded
HOW: deque(maxlen) per key, appends serialized by a per-key asyncio.Lock
"""

import asyncio
from collections import defaultdict, deque

from ..models.domain import BuyerMessage
from ..utils.logger import get_logger

logger = get_logger(__name__)

ConversationKey = tuple[str, str]


class ConversationStore:
    """Bounded conversation histories keyed by (listing_id, buyer_id)."""

    def __init__(self, limit: int = 10):
        if limit <= 0:
            raise ValueError("Conversation limit must be positive")
        self.limit = limit
        self._conversations: dict[ConversationKey, deque[BuyerMessage]] = {}
        self._locks: defaultdict[ConversationKey, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def append(self, listing_id: str, buyer_id: str, message: BuyerMessage) -> tuple[BuyerMessage, ...]:
        """
        Append a message, evicting the oldest beyond the limit.

        Returns:
            Snapshot of the conversation after the append, oldest first
        """
        key = (listing_id, buyer_id)
        async with self._locks[key]:
            conversation = self._conversations.get(key)
            if conversation is None:
                conversation = deque(maxlen=self.limit)
                self._conversations[key] = conversation
            evicted = len(conversation) == self.limit
            conversation.append(message)
            if evicted:
                logger.debug(f"Evicted oldest message for {listing_id}/{buyer_id} (limit {self.limit})")
            return tuple(conversation)

    def get(self, listing_id: str, buyer_id: str) -> tuple[BuyerMessage, ...]:
        """Current history, oldest first (empty when unknown)."""
        return tuple(self._conversations.get((listing_id, buyer_id), ()))

    async def clear(self, listing_id: str, buyer_id: str) -> bool:
        """Drop a conversation. Returns True if it existed."""
        key = (listing_id, buyer_id)
        async with self._locks[key]:
            existed = self._conversations.pop(key, None) is not None
        if existed:
            logger.info(f"Cleared conversation {listing_id}/{buyer_id}")
        return existed

    def keys(self) -> list[ConversationKey]:
        return list(self._conversations)
