"""
Conversation history truncation utilities.

WHAT: Trim buyer history before it goes into an LLM prompt
WHY: LLM context windows are limited, need to stay within character limits
HOW: Keep most recent messages while respecting character limits
"""

from typing import Sequence

from ..models.domain import BuyerMessage
from ..utils.logger import get_logger

logger = get_logger(__name__)


def truncate_conversation_history(
    history: Sequence[BuyerMessage],
    max_messages: int = 10,
    max_chars: int = 4000
) -> list[BuyerMessage]:
    """
    Truncate conversation history to fit a prompt budget.

    Strategy:
    1. Keep most recent messages (up to max_messages)
    2. If total chars exceed max_chars, drop oldest messages first
    3. Always keep the most recent message (even if it exceeds limit alone)

    Args:
        history: Conversation history, oldest first
        max_messages: Maximum number of messages to keep
        max_chars: Maximum total characters across all messages

    Returns:
        Truncated list of messages, oldest first
    """
    if not history:
        return []

    truncated = list(history[-max_messages:])
    total_chars = sum(len(msg.text) for msg in truncated)

    while total_chars > max_chars and len(truncated) > 1:
        removed = truncated.pop(0)
        total_chars -= len(removed.text)
        logger.debug(
            f"Truncated message {removed.id} from history "
            f"({len(removed.text)} chars, remaining: {total_chars}/{max_chars})"
        )

    if len(truncated) < len(history):
        logger.info(
            f"Truncated conversation history: {len(history)} -> {len(truncated)} messages "
            f"({total_chars}/{max_chars} chars)"
        )

    return truncated
