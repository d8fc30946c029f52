from abc import ABC, abstractmethod


class BaseProvider(ABC):
    """Abstract base class for all text-generation providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The name of this provider (e.g. 'anthropic', 'groq')."""
        ...

    @abstractmethod
    async def chat(self, messages: list[dict], model: str | None = None, max_tokens: int = 2000) -> dict:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
            model: Optional model identifier. Provider uses its default if None.
            max_tokens: Upper bound on the generated reply.

        Returns:
            dict with keys:
                - text: str | None : the generated text
                - provider: str    : provider name
                - model: str       : model used
                - status: "success" | "failed"
                - error: str | None: error message on failure
        """
        ...

    def _failed(self, model: str, error: str) -> dict:
        return {
            "text": None,
            "provider": self.name,
            "model": model,
            "status": "failed",
            "error": error,
        }
