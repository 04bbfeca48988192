"""
LLM provider types and exceptions for reply drafting.

WHAT: Chat messages, generation results and provider failures
WHY: The seller agent falls back to rule drafts on any provider failure and
     must report why; each failure class names its fallback reason
HOW: TypedDict for messages, dataclasses for results/status, exception
     classes carrying a fallback_reason
"""

from typing import TypedDict, Literal
from dataclasses import dataclass, field


# OpenAI-style chat turn; buyer turns are "user", seller turns "assistant"
ChatMessage = TypedDict(
    "ChatMessage",
    {"role": Literal["system", "user", "assistant"], "content": str}
)


@dataclass
class LLMResult:
    """Drafted reply text as returned by a provider."""
    text: str
    usage: dict = field(default_factory=dict)
    model: str = ""

    @property
    def total_tokens(self) -> int | None:
        return self.usage.get("total_tokens")


@dataclass
class ProviderStatus:
    """Health of the drafting provider, shown by /llm/status."""
    available: bool
    base_url: str
    models: list[str] | None = None
    error: str | None = None


class ProviderError(Exception):
    """Provider failure; the draft falls back to the rules."""
    fallback_reason = "error"


class ProviderTimeoutError(ProviderError):
    fallback_reason = "timeout"


class ProviderUnavailableError(ProviderError):
    fallback_reason = "unavailable"


class ProviderDisabledError(ProviderError):
    """No provider configured (or no API key): rules only."""
    fallback_reason = "disabled"


class ProviderResponseError(ProviderError):
    """Provider answered with an HTTP error or a malformed body."""


class ProviderEmptyResponseError(ProviderResponseError):
    """Provider answered but produced no reply text."""
    fallback_reason = "empty"
