"""
LLM provider protocol definition.

WHAT: Abstract interface for text-generation collaborators
WHY: Negotiation code must not care whether OpenAI or a local model answers
HOW: Protocol with async ping and generate
"""

from typing import Protocol
from .types import ChatMessage, LLMResult, ProviderStatus


class LLMProvider(Protocol):
    """Protocol defining the interface all LLM providers must implement."""

    async def ping(self) -> ProviderStatus:
        """Check provider health and availability."""
        ...

    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float,
        max_tokens: int,
        stop: list[str] | None = None,
        model: str | None = None
    ) -> LLMResult:
        """Generate a complete response (non-streaming)."""
        ...
