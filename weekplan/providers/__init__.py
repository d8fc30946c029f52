from weekplan.providers.base import BaseProvider
from weekplan.providers.openai_compat import OpenAICompatibleProvider
from weekplan.providers.anthropic_provider import AnthropicProvider
from weekplan.providers.groq_provider import GroqProvider
from weekplan.providers.openrouter_provider import OpenRouterProvider


__all__ = [
    "BaseProvider",
    "OpenAICompatibleProvider",
    "AnthropicProvider",
    "GroqProvider",
    "OpenRouterProvider",
]
