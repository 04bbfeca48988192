"""
LM Studio provider implementation.

WHAT: Local LLM inference via LM Studio
WHY: Draft replies offline without an API key
HOW: OpenAI-compatible API plus Qwen3 thinking suppression
"""

import re

from .openai_compatible import ChatCompletionsProvider
from .types import ChatMessage
from ..core.config import settings


class LMStudioProvider(ChatCompletionsProvider):
    """LM Studio LLM provider."""

    name = "LM Studio"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None
    ):
        super().__init__(
            base_url=base_url or settings.LM_STUDIO_BASE_URL,
            default_model=model or settings.LM_STUDIO_DEFAULT_MODEL,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
            max_retries=max_retries or settings.LLM_MAX_RETRIES,
            retry_delay=settings.LLM_RETRY_DELAY if retry_delay is None else retry_delay,
        )

    def _prepare_messages(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        """
        Add the /no_think directive for Qwen3 models.

        Appended to the system message, or to the first user message
        when there is no system message. Input messages are not mutated.
        """
        modified = [dict(msg) for msg in messages]

        for msg in modified:
            if msg.get("role") == "system":
                if "/no_think" not in msg.get("content", ""):
                    msg["content"] = f"{msg.get('content', '')}\n\n/no_think"
                break
        else:
            for msg in modified:
                if msg.get("role") == "user":
                    if "/no_think" not in msg.get("content", ""):
                        msg["content"] = f"{msg.get('content', '')} /no_think"
                    break

        return modified

    def _clean_text(self, text: str) -> str:
        """Remove <think>...</think> blocks the model emits anyway."""
        text = re.sub(r'<think(?:ing)?>.*?</think(?:ing)?>\s*', '', text, flags=re.DOTALL | re.IGNORECASE)
        text = re.sub(r'</?think(?:ing)?>\s*', '', text, flags=re.IGNORECASE)
        return text.strip()
