"""
key_manager.py: API Key Rotation Manager
Manages multiple API keys per LLM provider with round-robin rotation,
exhaustion tracking, and automatic daily resets.
"""

from datetime import date

from weekplan.config import ANTHROPIC_API_KEYS, GROQ_API_KEYS, OPENROUTER_API_KEYS


class KeyManager:
    """Round-robin API key rotation with exhaustion tracking."""

    def __init__(self, provider_keys: dict[str, list[str]] | None = None):
        self._current_index: dict[str, int] = {}
        self._last_reset: date = date.today()
        self.keys: dict[str, list[dict]] = {}

        if provider_keys is None:
            provider_keys = {
                "anthropic": ANTHROPIC_API_KEYS,
                "groq": GROQ_API_KEYS,
                "openrouter": OPENROUTER_API_KEYS,
            }

        for provider, raw_keys in provider_keys.items():
            self.keys[provider] = [{"key": k, "is_exhausted": False} for k in raw_keys]
            self._current_index[provider] = 0

    # ------------------------------------------------------------------
    def _maybe_reset(self):
        """Auto-reset all keys if the day has rolled over."""
        today = date.today()
        if today != self._last_reset:
            self.reset_daily()
            self._last_reset = today

    # ------------------------------------------------------------------
    def get_next_key(self, provider: str) -> str | None:
        """Return the next non-exhausted key for *provider* (round-robin).
        Returns None if every key is exhausted or no keys exist."""
        self._maybe_reset()
        entries = self.keys.get(provider, [])
        if not entries:
            return None

        total = len(entries)
        start = self._current_index.get(provider, 0) % total
        for offset in range(total):
            idx = (start + offset) % total
            entry = entries[idx]
            if not entry["is_exhausted"]:
                self._current_index[provider] = (idx + 1) % total
                return entry["key"]
        return None

    def mark_exhausted_by_value(self, provider: str, key_value: str):
        """Mark a key as exhausted by its actual string value (e.g. after a 429)."""
        for entry in self.keys.get(provider, []):
            if entry["key"] == key_value:
                entry["is_exhausted"] = True
                break

    # ------------------------------------------------------------------
    def reset_daily(self):
        """Clear every exhaustion flag."""
        for provider_entries in self.keys.values():
            for entry in provider_entries:
                entry["is_exhausted"] = False

    # ------------------------------------------------------------------
    def get_active_key_count(self, provider: str) -> int:
        """How many non-exhausted keys remain for a provider."""
        return sum(1 for e in self.keys.get(provider, []) if not e["is_exhausted"])
