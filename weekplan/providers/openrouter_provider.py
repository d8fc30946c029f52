from weekplan.providers.openai_compat import OpenAICompatibleProvider


class OpenRouterProvider(OpenAICompatibleProvider):
    """OpenRouter gateway (Claude first, Llama as the cheaper model)."""

    endpoint = "https://openrouter.ai/api/v1/chat/completions"
    models = ["anthropic/claude-sonnet-4", "meta-llama/llama-3.3-70b-instruct"]
    timeout = 60.0

    @property
    def name(self) -> str:
        return "openrouter"

    def extra_headers(self) -> dict:
        return {"X-Title": "Weekplan"}
