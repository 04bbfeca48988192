"""
OpenAI provider implementation.

WHAT: Hosted LLM provider for drafting negotiation replies
WHY: Natural-sounding replies when an API key is configured
HOW: OpenAI chat-completions over HTTPX with bearer auth
"""

from .openai_compatible import ChatCompletionsProvider
from .types import ProviderDisabledError
from ..core.config import settings
from ..utils.logger import get_logger, mask_secret

logger = get_logger(__name__)


class OpenAIProvider(ChatCompletionsProvider):
    """OpenAI LLM provider (requires OPENAI_API_KEY)."""

    name = "OpenAI"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None
    ):
        api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        if not api_key or not api_key.strip():
            raise ProviderDisabledError(
                "OpenAI is selected but OPENAI_API_KEY is not set. "
                "Set it in .env or use LLM_PROVIDER=none for rule-based replies."
            )

        super().__init__(
            base_url=base_url or settings.OPENAI_BASE_URL,
            default_model=model or settings.OPENAI_MODEL,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
            max_retries=max_retries or settings.LLM_MAX_RETRIES,
            retry_delay=settings.LLM_RETRY_DELAY if retry_delay is None else retry_delay,
            headers={"Authorization": f"Bearer {api_key}"},
        )
        logger.info(
            f"OpenAI provider initialized (model: {self.default_model}, API key: {mask_secret(api_key)})"
        )
