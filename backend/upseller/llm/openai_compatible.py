"""
Shared client for OpenAI-compatible chat-completions APIs.

WHAT: HTTP plumbing common to OpenAI and LM Studio
WHY: Both speak the same /models and /chat/completions contract
HOW: HTTPX async client, exponential backoff, typed provider errors
"""

import asyncio
import json

import httpx

from .types import (
    ChatMessage,
    LLMResult,
    ProviderStatus,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
    ProviderEmptyResponseError,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ChatCompletionsProvider:
    """Base provider for OpenAI-style chat completion endpoints."""

    name = "chat-completions"

    def __init__(
        self,
        *,
        base_url: str,
        default_model: str,
        timeout: float,
        max_retries: int,
        retry_delay: float,
        headers: dict[str, str] | None = None
    ):
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(5.0, read=timeout),
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            headers=headers or {},
        )

    def _prepare_messages(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        """Hook for provider-specific message rewriting."""
        return messages

    def _clean_text(self, text: str) -> str:
        """Hook for provider-specific output cleanup."""
        return text.strip()

    async def ping(self) -> ProviderStatus:
        """
        Check availability by listing models.

        Returns:
            ProviderStatus with availability and model list
        """
        try:
            response = await self.client.get(f"{self.base_url}/models", timeout=5.0)
            response.raise_for_status()
            data = response.json()

            models = [m.get("id") for m in data.get("data", [])]

            return ProviderStatus(
                available=True,
                base_url=self.base_url,
                models=models[:10] if models else None
            )
        except httpx.TimeoutException:
            logger.warning(f"{self.name} ping timed out")
            return ProviderStatus(available=False, base_url=self.base_url, error="Connection timeout")
        except httpx.ConnectError:
            logger.warning(f"{self.name} not reachable")
            return ProviderStatus(available=False, base_url=self.base_url, error="Connection refused")
        except Exception as e:
            logger.error(f"{self.name} ping failed: {e}")
            return ProviderStatus(available=False, base_url=self.base_url, error=str(e))

    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float,
        max_tokens: int,
        stop: list[str] | None = None,
        model: str | None = None
    ) -> LLMResult:
        """
        Generate a complete response.

        Raises:
            ProviderTimeoutError: Request timed out on the last attempt
            ProviderUnavailableError: Endpoint not reachable
            ProviderResponseError: Invalid, empty or 4xx/5xx response
        """
        model_to_use = model or self.default_model

        payload = {
            "model": model_to_use,
            "messages": self._prepare_messages(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": False,
        }
        if stop:
            payload["stop"] = stop

        for attempt in range(self.max_retries):
            try:
                response = await self.client.post(f"{self.base_url}/chat/completions", json=payload)
                response.raise_for_status()
                data = response.json()

                raw_text = data["choices"][0]["message"]["content"] or ""
                usage = data.get("usage", {})
                response_model = data.get("model", model_to_use)

                text = self._clean_text(raw_text)
                if not text:
                    raise ProviderEmptyResponseError(f"Empty response from {self.name}")

                result = LLMResult(text=text, usage=usage, model=response_model)
                logger.info(
                    f"{self.name} generate success (model: {response_model}, "
                    f"prompt tokens: {usage.get('prompt_tokens', '?')}, "
                    f"total tokens: {result.total_tokens or '?'})"
                )
                return result

            except httpx.TimeoutException as e:
                logger.warning(f"{self.name} timeout (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderTimeoutError(f"Request timed out after {self.max_retries} attempts") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.ConnectError as e:
                logger.error(f"{self.name} connection refused (attempt {attempt + 1}/{self.max_retries})")
                if attempt == self.max_retries - 1:
                    raise ProviderUnavailableError(f"{self.name} is not reachable") from e
                await asyncio.sleep(self.retry_delay * (2 ** attempt))

            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500 and attempt < self.max_retries - 1:
                    logger.error(f"{self.name} server error {e.response.status_code} (attempt {attempt + 1}/{self.max_retries})")
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                    continue
                raise ProviderResponseError(f"HTTP {e.response.status_code}: {e.response.text}") from e

            except (KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
                logger.error(f"Invalid response from {self.name}: {e}")
                raise ProviderResponseError(f"Invalid response format: {e}") from e

        raise ProviderResponseError(f"{self.name} produced no response")

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
