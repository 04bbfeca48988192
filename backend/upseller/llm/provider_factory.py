"""
LLM provider factory with singleton pattern.

WHAT: Factory to get the configured LLM provider
WHY: Centralize provider selection and avoid multiple HTTP clients
HOW: Read LLM_PROVIDER from config, cache singleton, log selection
"""

from typing import TYPE_CHECKING

from .types import ProviderDisabledError

if TYPE_CHECKING:
    from .provider import LLMProvider

# Singleton instance
_provider_instance: "LLMProvider | None" = None
_provider_resolved = False


def get_provider() -> "LLMProvider | None":
    """
    Get the configured LLM provider singleton.

    Returns:
        LLMProvider instance, or None when negotiation should use rules only
        (LLM_PROVIDER=none, or OpenAI selected without an API key)

    Raises:
        ValueError: If provider name is unknown
    """
    global _provider_instance, _provider_resolved

    if _provider_resolved:
        return _provider_instance

    # Import here to avoid circular dependencies
    from ..core.config import settings
    from ..utils.logger import get_logger

    logger = get_logger(__name__)
    provider_name = settings.LLM_PROVIDER

    if provider_name == "none":
        _provider_instance = None
        logger.info("LLM provider disabled; negotiation uses rules only")
    elif provider_name == "openai":
        from .openai_provider import OpenAIProvider
        try:
            _provider_instance = OpenAIProvider()
        except ProviderDisabledError as e:
            logger.warning(f"{e} Falling back to rule-based replies.")
            _provider_instance = None
    elif provider_name == "lm_studio":
        from .lm_studio import LMStudioProvider
        _provider_instance = LMStudioProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")

    _provider_resolved = True
    if _provider_instance is not None:
        logger.info(f"LLM provider initialized: {provider_name}")
    return _provider_instance


def reset_provider() -> None:
    """Reset the provider singleton (useful for testing)."""
    global _provider_instance, _provider_resolved
    _provider_instance = None
    _provider_resolved = False
