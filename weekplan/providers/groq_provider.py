from weekplan.providers.openai_compat import OpenAICompatibleProvider


class GroqProvider(OpenAICompatibleProvider):
    """Groq inference API; fast, used as the last fallback."""

    endpoint = "https://api.groq.com/openai/v1/chat/completions"
    models = ["llama-3.3-70b-versatile", "llama-3.1-8b-instant"]

    @property
    def name(self) -> str:
        return "groq"
