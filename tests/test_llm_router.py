"""Tests for provider routing and key rotation."""

import pytest

from weekplan.services.key_manager import KeyManager
from weekplan.services.llm_router import LLMRouter

CALLS: list[tuple[str, str]] = []


def make_provider(name: str, outcomes: dict[str, str]):
    """Provider class whose reply depends on the key: "ok", "rate" or "fail"."""

    class _Provider:
        def __init__(self, api_key: str):
            self.api_key = api_key

        async def chat(self, messages, model=None, max_tokens=2000):
            CALLS.append((name, self.api_key))
            outcome = outcomes.get(self.api_key, "ok")
            if outcome == "ok":
                return {"text": f"{name} says hi", "provider": name, "model": "m", "status": "success", "error": None}
            error = "429 Too Many Requests" if outcome == "rate" else "500 Internal Server Error"
            return {"text": None, "provider": name, "model": "m", "status": "failed", "error": error}

    return _Provider


@pytest.fixture(autouse=True)
def clear_calls():
    CALLS.clear()


def build_router(keys: dict, outcomes: dict) -> LLMRouter:
    providers = [
        {"name": "alpha", "provider_class": make_provider("alpha", outcomes), "priority": 1},
        {"name": "beta", "provider_class": make_provider("beta", outcomes), "priority": 2},
    ]
    return LLMRouter(key_manager=KeyManager(keys), providers=providers)


MESSAGES = [{"role": "user", "content": "hello"}]


def test_key_manager_round_robin_and_exhaustion() -> None:
    km = KeyManager({"alpha": ["k1", "k2"]})
    assert [km.get_next_key("alpha") for _ in range(3)] == ["k1", "k2", "k1"]

    km.mark_exhausted_by_value("alpha", "k2")
    assert km.get_active_key_count("alpha") == 1
    assert [km.get_next_key("alpha") for _ in range(2)] == ["k1", "k1"]

    km.mark_exhausted_by_value("alpha", "k1")
    assert km.get_next_key("alpha") is None
    km.reset_daily()
    assert km.get_active_key_count("alpha") == 2
    assert km.get_next_key("unknown") is None


def test_providers_without_keys_are_skipped() -> None:
    router = build_router({"alpha": [], "beta": ["b1"]}, {})
    assert [p["name"] for p in router.providers] == ["beta"]


@pytest.mark.asyncio
async def test_route_uses_best_provider() -> None:
    router = build_router({"alpha": ["a1"], "beta": ["b1"]}, {})
    resp = await router.route(MESSAGES)

    assert resp["status"] == "success"
    assert resp["text"] == "alpha says hi"
    assert CALLS == [("alpha", "a1")]


@pytest.mark.asyncio
async def test_rate_limited_key_rotates_to_next_key() -> None:
    router = build_router({"alpha": ["a1", "a2"], "beta": ["b1"]}, {"a1": "rate"})
    resp = await router.route(MESSAGES)

    assert resp["provider"] == "alpha"
    assert CALLS == [("alpha", "a1"), ("alpha", "a2")]
    assert router.key_manager.get_active_key_count("alpha") == 1


@pytest.mark.asyncio
async def test_failure_falls_back_and_penalises_provider() -> None:
    router = build_router({"alpha": ["a1"], "beta": ["b1"]}, {"a1": "fail"})
    resp = await router.route(MESSAGES)

    assert resp["provider"] == "beta"
    alpha = next(p for p in router.providers if p["name"] == "alpha")
    assert alpha["failure_count"] == 1
    assert router._score(alpha) > router._score(next(p for p in router.providers if p["name"] == "beta"))


@pytest.mark.asyncio
async def test_preferred_provider_goes_first() -> None:
    router = build_router({"alpha": ["a1"], "beta": ["b1"]}, {})
    resp = await router.route(MESSAGES, preferred_provider="beta")
    assert resp["provider"] == "beta"


@pytest.mark.asyncio
async def test_all_providers_failing_returns_error() -> None:
    router = build_router({"alpha": ["a1"], "beta": ["b1"]}, {"a1": "rate", "b1": "fail"})
    resp = await router.route(MESSAGES)

    assert resp["status"] == "error"
    assert resp["text"] is None
    assert "500" in resp["error"]


@pytest.mark.asyncio
async def test_every_key_rate_limited_reports_the_rate_limit() -> None:
    router = build_router({"alpha": ["a1", "a2"]}, {"a1": "rate", "a2": "rate"})
    resp = await router.route(MESSAGES)

    assert resp["status"] == "error"
    assert resp["error"] == "alpha rate-limited: 429 Too Many Requests"
    assert router.key_manager.get_active_key_count("alpha") == 0


@pytest.mark.asyncio
async def test_no_providers_configured() -> None:
    resp = await LLMRouter(key_manager=KeyManager({})).route(MESSAGES)
    assert resp["status"] == "error"
    assert resp["error"] == "No language model provider is configured"


@pytest.mark.asyncio
async def test_exhausted_keys_are_reported_on_later_requests() -> None:
    router = build_router({"alpha": ["a1"]}, {"a1": "rate"})
    await router.route(MESSAGES)
    CALLS.clear()

    resp = await router.route(MESSAGES)

    assert CALLS == []
    assert resp["error"] == "All alpha keys are rate-limited"
