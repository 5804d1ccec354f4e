"""Parsing of model output that should contain a JSON list of facts."""

import json
import re

from loguru import logger

_FENCE_RE = re.compile(r"```(?:json|JSON)?")


def _loads(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"Failed to parse fact list: {e}")
        return None


def parse_fact_list(text: str | None) -> list[str]:
    """Parse facts from a model reply, or return an empty list.

    Tolerates markdown code fences and prose before or after the array.
    Anything that is not a JSON array yields ``[]``, and only non-empty
    string elements are kept.
    """
    if not text:
        return []

    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("[")
        end = cleaned.rfind("]")
        brace = cleaned.find("{")
        if start == -1 or end <= start or -1 < brace < start:
            logger.debug(f"No JSON array in fact extraction output: {text[:80]!r}")
            return []
        data = _loads(cleaned[start : end + 1])

    if not isinstance(data, list):
        return []

    facts = []
    for item in data:
        if isinstance(item, str) and item.strip():
            facts.append(item.strip())
    return facts
