"""
llm_json.py: Pull JSON out of free-form LLM replies
Models wrap their JSON in prose or ```json fences; this trims that away and
gives malformed output exactly one repair attempt (trailing commas).
"""

import json
import logging
import re

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")


class LLMError(Exception):
    """The text-generation backend failed or answered with something unusable."""


class LLMResponseError(LLMError):
    """The reply did not contain parseable JSON."""


def _extract(text: str, opener: str, closer: str) -> str | None:
    start = text.find(opener)
    end = text.rfind(closer) + 1
    if start == -1 or end <= start:
        return None
    return text[start:end]


def parse_llm_json(text: str | None, expect: type = dict):
    """Parse the JSON object (``expect=dict``) or array (``expect=list``) in *text*."""
    if not text:
        raise LLMResponseError("Empty response from language model")

    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)

    opener, closer = ("[", "]") if expect is list else ("{", "}")
    raw = _extract(text, opener, closer)
    if raw is None:
        raise LLMResponseError(f"No JSON {expect.__name__} found in language model response")

    try:
        result = json.loads(raw)
    except json.JSONDecodeError as first_error:
        logger.warning(f"JSON parse error ({first_error}); retrying without trailing commas")
        try:
            result = json.loads(_TRAILING_COMMA_RE.sub(r"\1", raw))
        except json.JSONDecodeError as e:
            logger.error(f"Attempted to parse: {raw[:500]}")
            raise LLMResponseError(f"Failed to parse JSON even after fixes: {e}") from e

    if not isinstance(result, expect):
        raise LLMResponseError(f"Expected JSON {expect.__name__}, got {type(result).__name__}")
    return result


async def ask_for_json(llm_router, prompt: str, expect: type = dict, max_tokens: int = 2000):
    """Send a single-turn prompt through the router and parse the JSON reply."""
    resp = await llm_router.route([{"role": "user", "content": prompt}], max_tokens=max_tokens)
    if resp.get("status") != "success":
        raise LLMError(resp.get("error") or "Language model request failed")
    try:
        return parse_llm_json(resp.get("text"), expect)
    except LLMResponseError:
        logger.error(f"Unparsable response from {resp.get('provider')}: {str(resp.get('text'))[:500]}")
        raise
