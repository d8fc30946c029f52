"""Tests for JSON extraction from model replies."""

import pytest

from weekplan.services.llm_json import LLMError, LLMResponseError, ask_for_json, parse_llm_json

from conftest import FakeLLMRouter


def test_parses_fenced_object() -> None:
    text = 'Here you go:\n```json\n{"blocks": [], "suggestions": ["rest"]}\n```\nEnjoy!'
    assert parse_llm_json(text) == {"blocks": [], "suggestions": ["rest"]}


def test_parses_array_surrounded_by_prose() -> None:
    text = 'Sure! [{"title": "Write report"}] Let me know.'
    assert parse_llm_json(text, expect=list) == [{"title": "Write report"}]


def test_repairs_trailing_commas() -> None:
    text = '{"blocks": [{"start_time": "09:00",},], "suggestions": [],}'
    assert parse_llm_json(text) == {"blocks": [{"start_time": "09:00"}], "suggestions": []}


@pytest.mark.parametrize("text", [None, "", "no json here", '{"broken": '])
def test_unparsable_reply_raises(text) -> None:
    with pytest.raises(LLMResponseError):
        parse_llm_json(text)


def test_array_when_object_expected_raises() -> None:
    with pytest.raises(LLMResponseError):
        parse_llm_json("[1, 2]", expect=dict)


@pytest.mark.asyncio
async def test_ask_for_json_returns_parsed_reply() -> None:
    llm = FakeLLMRouter(['[{"title": "A"}]'])
    assert await ask_for_json(llm, "parse this", expect=list) == [{"title": "A"}]
    assert llm.prompts == ["parse this"]


@pytest.mark.asyncio
async def test_ask_for_json_raises_when_router_fails() -> None:
    with pytest.raises(LLMError) as exc:
        await ask_for_json(FakeLLMRouter(), "anything")
    assert not isinstance(exc.value, LLMResponseError)
