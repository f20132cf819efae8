"""LLM provider adapters.

Concrete implementations of ILLMProvider (docdesk/interfaces/llm_provider.py):
    - OpenAILLMProvider      -- OpenRouter, DeepSeek or OpenAI (one chat protocol)
    - AnthropicLLMProvider   -- Claude via the Messages API
    - OllamaLLMProvider      -- local models via an Ollama server
    - UnavailableLLMProvider -- placeholder when nothing is configured

At startup, main.py builds the provider named by ProviderConfig.generation
and stores it on app.state for the chat service.
"""

from docdesk.providers.llm.anthropic_provider import AnthropicLLMProvider
from docdesk.providers.llm.ollama_provider import OllamaLLMProvider
from docdesk.providers.llm.openai_provider import OpenAILLMProvider
from docdesk.providers.llm.unavailable_provider import UnavailableLLMProvider

__all__ = [
    "AnthropicLLMProvider",
    "OllamaLLMProvider",
    "OpenAILLMProvider",
    "UnavailableLLMProvider",
]
