"""
Prompt templates for the seller assistant.

WHAT: System prompt and chat rendering for LLM-drafted replies
WHY: Consistent persona, negotiation rules and scheduling hand-off
HOW: Template string with context JSON, returns ChatMessage lists
"""

import json
import re
from typing import Sequence

from ..llm.types import ChatMessage
from ..models.domain import BuyerMessage, SellerContext
from ..utils.history_truncation import truncate_conversation_history

SCHEDULING_SENTINEL = "[INITIATE_SCHEDULING]"

_SENTINEL_PATTERN = re.compile(re.escape(SCHEDULING_SENTINEL))


def render_system_prompt(context: SellerContext, policy_hint: str | None = None) -> str:
    """
    Render the seller-assistant system prompt.

    Args:
        context: Seller negotiation context
        policy_hint: Optional pre-computed pricing decision the reply must follow
    """
    context_json = json.dumps(
        {
            "targetPrice": context.target_price,
            "lowestPrice": context.floor_price,
            "sellTimeFrame": context.sell_time_frame.value,
            "meetingLocation": context.meeting_location,
            "sellerName": context.seller_name,
            "itemDescription": context.item_description,
            "itemCondition": context.item_condition,
        },
        indent=2
    )

    prompt = f"""You are a Facebook Marketplace selling assistant. Your persona is that of a regular person, not a corporation or a robot. Write like a text message: proper grammar, brief and to the point. Be friendly and direct, not overly enthusiastic or formal. Your goal is to sell the item for the best possible price.

Your Rules:

Use sellTimeFrame to guide your strategy:
- one_day: be aggressive. Accept the first offer at or above lowestPrice. Speed matters most.
- one_week: you have time. If an offer is low, counter between their offer and targetPrice.
- one_month: be patient. Hold firm on targetPrice.

Negotiate carefully:
- Never state lowestPrice. It is your internal limit.
- If asked "What's the lowest you'll go?", say you're open to reasonable offers.
- Acknowledge an offer before countering: "I can't do [their offer], but I could do [your counter]."

Answer item questions only from the description and condition below. Do not make things up.

Manage the process:
- A first message like "Is this still available?" gets "Yes it is."
- Once a price is agreed, reply with something like "Sounds good." and end your reply with {SCHEDULING_SENTINEL} to hand off to the scheduling assistant.

Item & Seller Context:

{context_json}"""

    if policy_hint:
        prompt += f"\n\nPricing decision for this message (follow it exactly): {policy_hint}"

    return prompt


def render_negotiation_messages(
    context: SellerContext,
    history: Sequence[BuyerMessage],
    current: BuyerMessage,
    *,
    policy_hint: str | None = None,
    max_messages: int = 10,
    max_chars: int = 4000
) -> list[ChatMessage]:
    """
    Build the chat messages for one negotiation turn.

    History entries become user turns (oldest first) followed by the
    current message.
    """
    messages: list[ChatMessage] = [
        {"role": "system", "content": render_system_prompt(context, policy_hint)}
    ]

    for msg in truncate_conversation_history(history, max_messages=max_messages, max_chars=max_chars):
        messages.append({"role": "user", "content": msg.text})

    messages.append({"role": "user", "content": current.text})
    return messages


def extract_scheduling_directive(text: str) -> tuple[str, bool]:
    """
    Split generated text into (clean text, scheduling requested).

    This is the only place that knows about the scheduling sentinel.
    """
    if not text:
        return "", False
    requested = SCHEDULING_SENTINEL in text
    cleaned = _SENTINEL_PATTERN.sub("", text)
    cleaned = re.sub(r'[ \t]{2,}', ' ', cleaned).strip()
    return cleaned, requested


def estimate_tokens(messages: Sequence[ChatMessage]) -> int:
    """Rough token estimate (about 4 characters per token)."""
    total_chars = sum(len(msg.get("content", "")) for msg in messages)
    return (total_chars + 3) // 4
