import httpx
from weekplan.providers.base import BaseProvider


class OpenAICompatibleProvider(BaseProvider):
    """Shared chat-completions client for OpenAI-style endpoints.

    Subclasses set ``endpoint``, ``models`` and ``timeout``; ``extra_headers``
    lets them add vendor-specific headers.
    """

    endpoint: str = ""
    models: list[str] = []
    timeout: float = 30.0

    def __init__(self, api_key: str):
        self.api_key = api_key

    def extra_headers(self) -> dict:
        return {}

    async def chat(self, messages: list[dict], model: str | None = None, max_tokens: int = 2000) -> dict:
        used_model = model or self.models[0]
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            **self.extra_headers(),
        }
        body = {"model": used_model, "messages": messages, "max_tokens": max_tokens}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
                response.raise_for_status()
                choices = response.json().get("choices") or []
        except httpx.TimeoutException:
            return self._failed(used_model, "Timeout")
        except Exception as e:
            return self._failed(used_model, str(e))

        if not choices:
            return self._failed(used_model, f"No choices in {self.name} response")
        return {
            "text": choices[0]["message"]["content"],
            "provider": self.name,
            "model": used_model,
            "status": "success",
            "error": None,
        }
