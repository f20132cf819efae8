"""Generation provider used when no LLM backend is configured.

The application still starts (uploads, listing and stats keep working);
each chat turn fails with :class:`ProviderError`, which the API reports as
HTTP 502.
"""

from __future__ import annotations

from docdesk.interfaces.llm_provider import ILLMProvider
from docdesk.utils.errors import ProviderError

_REASON = (
    "No generation backend is configured. Set OPENROUTER_API_KEY, DEEPSEEK_API_KEY, "
    "OPENAI_API_KEY, ANTHROPIC_API_KEY or OLLAMA_BASE_URL."
)


class UnavailableLLMProvider(ILLMProvider):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        raise ProviderError(message=_REASON, provider_name=self.get_provider_name())

    def is_available(self) -> bool:
        return False

    async def validate_credentials(self) -> bool:
        return False

    def get_provider_name(self) -> str:
        return "unavailable"
