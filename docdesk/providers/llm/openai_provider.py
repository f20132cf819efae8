"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.  One
adapter covers three backends, because OpenRouter and DeepSeek both expose
the OpenAI chat-completions protocol:

    openrouter  base_url=https://openrouter.ai/api/v1   model=openai/gpt-4o
    deepseek    base_url=https://api.deepseek.com       model=deepseek-chat
    openai      default endpoint                         model=gpt-4o

The backend is chosen once by :class:`~docdesk.config.provider_config.ProviderConfig`
and passed in; the rest of the app never imports ``openai`` directly.
"""

from __future__ import annotations

import openai
import structlog

from docdesk.config.provider_config import BackendConfig
from docdesk.interfaces.llm_provider import ILLMProvider
from docdesk.utils.errors import ProviderError

logger = structlog.get_logger(logger_name=__name__)

_REQUEST_TIMEOUT = 60.0


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat API."""

    def __init__(self, backend: BackendConfig) -> None:
        self._backend = backend
        self._api_key = backend.api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(_REQUEST_TIMEOUT, connect=5.0),
        }
        if backend.base_url:
            client_kwargs["base_url"] = backend.base_url
        if backend.name == "openrouter":
            # OpenRouter attributes traffic by these headers.
            client_kwargs["default_headers"] = {"X-Title": "docdesk"}

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = backend.model
        self._provider_label = backend.name

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a text completion via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise ProviderError(
                message=f"{self._provider_label} timed out after {_REQUEST_TIMEOUT:.0f}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise ProviderError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to confirm the key is accepted without paying for inference."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        """Return ``"openrouter"``, ``"deepseek"`` or ``"openai"``."""
        return self._provider_label
