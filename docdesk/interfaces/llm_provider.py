"""Abstract base class for text-generation providers.

Implementations wrap an OpenAI-compatible chat API (OpenAI, OpenRouter,
DeepSeek), the Anthropic Messages API, or a local Ollama server.  Callers
only ever see :class:`ILLMProvider`, so the backend chosen at startup can
change without touching the chat service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider,
# OllamaLLMProvider, UnavailableLLMProvider
# Located in: docdesk/providers/llm/
class ILLMProvider(ABC):
    """Contract for the generation backend that writes answers and titles."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The prompt carrying retrieved context and the question.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        docdesk.utils.errors.ProviderError
            If the API call fails or returns no content.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"openrouter"`` or ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials (or a server URL) are configured."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Make a lightweight call to confirm the backend accepts requests.

        Returns ``False`` rather than raising when the check fails.
        """
