"""
llm_router.py: Multi-LLM Router
Routes text-generation requests to the best available provider with automatic
fallback, key rotation, response-time tracking, and per-provider scoring.
"""

import logging
import time

from weekplan.services.key_manager import KeyManager

# Provider imports: each exposes an async chat(messages, model, max_tokens) method
from weekplan.providers.anthropic_provider import AnthropicProvider
from weekplan.providers.groq_provider import GroqProvider
from weekplan.providers.openrouter_provider import OpenRouterProvider

logger = logging.getLogger(__name__)


# Default priority order (lower = tried first)
_DEFAULT_PROVIDERS = [
    {"name": "anthropic",  "provider_class": AnthropicProvider,  "priority": 1},
    {"name": "openrouter", "provider_class": OpenRouterProvider, "priority": 2},
    {"name": "groq",       "provider_class": GroqProvider,       "priority": 3},
]


class LLMRouter:
    """Route generation requests to the best available LLM provider."""

    def __init__(self, key_manager: KeyManager | None = None, providers: list[dict] | None = None):
        self.key_manager = key_manager or KeyManager()

        # Build mutable provider registry
        self.providers: list[dict] = []
        for p in providers or _DEFAULT_PROVIDERS:
            # Only include providers that have at least one key configured
            if self.key_manager.keys.get(p["name"]):
                self.providers.append({
                    "name": p["name"],
                    "provider_class": p["provider_class"],
                    "priority": p["priority"],
                    "failure_count": 0,
                    "avg_response_time": 0.0,
                    "total_calls": 0,
                })

    # ------------------------------------------------------------------
    def _score(self, entry: dict) -> float:
        """Score a provider (lower is better)."""
        return (
            entry["priority"]
            + (entry["failure_count"] * 5)
            + (entry["avg_response_time"] * 0.1)
        )

    # ------------------------------------------------------------------
    async def route(
        self,
        messages: list,
        preferred_provider: str | None = None,
        model: str | None = None,
        max_tokens: int = 2000,
    ) -> dict:
        """Route a chat request through available providers with fallback.

        Parameters
        ----------
        messages : list
            OpenAI-style list of {role, content} dicts.
        preferred_provider : str, optional
            If set, this provider is tried first regardless of score.
        model : str, optional
            Model override passed to the provider.
        max_tokens : int
            Reply length limit passed to the provider.

        Returns
        -------
        dict  with keys: text, provider, model, status, error, response_time
        """
        ordered = sorted(self.providers, key=self._score)

        if preferred_provider:
            preferred = [p for p in ordered if p["name"] == preferred_provider]
            others = [p for p in ordered if p["name"] != preferred_provider]
            ordered = preferred + others

        last_error = "No language model provider is configured"
        for entry in ordered:
            provider_name = entry["name"]

            # Try every available key for this provider
            if not self.key_manager.get_active_key_count(provider_name):
                last_error = f"All {provider_name} keys are rate-limited"
            while True:
                api_key = self.key_manager.get_next_key(provider_name)
                if api_key is None:
                    break  # all keys exhausted for this provider

                provider_instance = entry["provider_class"](api_key=api_key)
                t0 = time.time()
                result = await provider_instance.chat(messages, model, max_tokens)
                elapsed = round(time.time() - t0, 3)

                if result.get("status") == "success":
                    # Update running averages
                    entry["total_calls"] += 1
                    entry["avg_response_time"] = round(
                        (entry["avg_response_time"] * (entry["total_calls"] - 1) + elapsed)
                        / entry["total_calls"],
                        3,
                    )
                    entry["failure_count"] = max(0, entry["failure_count"] - 1)
                    logger.info(f"{provider_name} answered in {elapsed}s")

                    return {
                        "text": result.get("text", ""),
                        "provider": result.get("provider", provider_name),
                        "model": result.get("model", model),
                        "status": "success",
                        "error": None,
                        "response_time": elapsed,
                    }

                # Rate-limited (429)
                error_msg = result.get("error", "")
                if "429" in str(error_msg) or "rate" in str(error_msg).lower():
                    logger.warning(f"{provider_name} key rate-limited, rotating")
                    self.key_manager.mark_exhausted_by_value(provider_name, api_key)
                    last_error = f"{provider_name} rate-limited: {error_msg}"
                    continue  # try next key for same provider

                # Other error, move on to next provider
                entry["failure_count"] += 1
                last_error = error_msg or f"{provider_name} returned an error"
                logger.warning(f"{provider_name} failed: {last_error}")
                break

        return {
            "text": None,
            "provider": None,
            "model": None,
            "status": "error",
            "error": last_error,
            "response_time": 0,
        }


_router_instance = None


def get_llm_router() -> LLMRouter:
    """FastAPI dependency: the process-wide router singleton."""
    global _router_instance
    if _router_instance is None:
        _router_instance = LLMRouter()
    return _router_instance
