import httpx
from weekplan.providers.base import BaseProvider


ANTHROPIC_MODELS = [
    "claude-sonnet-4-20250514",
    "claude-3-5-haiku-latest",
]
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseProvider):
    """Provider for the Anthropic Messages API using standard httpx."""

    def __init__(self, api_key: str):
        self.api_key = api_key
        self.endpoint = "https://api.anthropic.com/v1/messages"

    @property
    def name(self) -> str:
        return "anthropic"

    async def chat(self, messages: list[dict], model: str | None = None, max_tokens: int = 2000) -> dict:
        used_model = model or ANTHROPIC_MODELS[0]
        try:
            headers = {
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            }
            # System prompts travel in a top-level field, not in the message list
            system = "\n".join(m["content"] for m in messages if m["role"] == "system")
            body = {
                "model": used_model,
                "max_tokens": max_tokens,
                "messages": [m for m in messages if m["role"] != "system"],
            }
            if system:
                body["system"] = system

            async with httpx.AsyncClient(timeout=60.0) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()

            blocks = [b for b in data.get("content", []) if b.get("type") == "text"]
            if not blocks:
                return self._failed(used_model, "Unexpected response type from Anthropic")

            return {
                "text": blocks[0]["text"],
                "provider": self.name,
                "model": used_model,
                "status": "success",
                "error": None,
            }
        except httpx.TimeoutException:
            return self._failed(used_model, "Timeout")
        except Exception as e:
            return self._failed(used_model, str(e))
