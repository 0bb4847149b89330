"""Tolerant JSON extraction for model replies (fenced, truncated or sloppy JSON)."""

import json
import logging
import re
from typing import Any

import json_repair

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or the text unchanged."""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text.strip()


def extract_json_object(text: str) -> str | None:
    """Return the outermost {...} span of text, or None if there is no opening brace."""
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    # Truncated replies have no closing brace; json_repair closes them.
    return text[start:end + 1] if end > start else text[start:]


def parse_json_reply(text: str) -> dict[str, Any] | None:
    """Parse a model reply into a dict, repairing common malformations.

    Tries strict parsing first, then json_repair. Returns None when the reply
    holds no usable JSON object.
    """
    cleaned = strip_code_fences(text.lstrip("\ufeff"))
    candidate = extract_json_object(cleaned)
    if candidate is None:
        return None

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        logger.debug("Strict JSON parse failed, attempting repair")
        parsed = json_repair.loads(candidate)

    if isinstance(parsed, dict) and parsed:
        return parsed
    return None


def clamp_unit(value: Any, default: float = 0.5) -> float:
    """Coerce value to a float in [0, 1]; non-numeric values become default."""
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return min(1.0, max(0.0, number))


def string_list(value: Any) -> list[str]:
    """Normalize a JSON value into a list of non-empty strings."""
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return []
