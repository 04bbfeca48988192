"""LLM provider layer."""

from .types import (
    ChatMessage,
    LLMResult,
    ProviderStatus,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderDisabledError,
    ProviderResponseError,
    ProviderEmptyResponseError,
)
from .provider import LLMProvider
from .provider_factory import get_provider, reset_provider

__all__ = [
    "ChatMessage",
    "LLMResult",
    "ProviderStatus",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "ProviderDisabledError",
    "ProviderResponseError",
    "ProviderEmptyResponseError",
    "LLMProvider",
    "get_provider",
    "reset_provider",
]
