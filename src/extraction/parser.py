"""Locate and decode the JSON object inside a free-form model reply."""

from __future__ import annotations

import json
import logging
from typing import Any

from src.extraction.errors import UnparseableResponseError

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> str | None:
    """Return the substring from the first ``{`` to the last ``}``, or None.

    Greedy on purpose: prose or markdown fences around the object are
    discarded, nested objects stay intact.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start : end + 1]


def parse_response(raw_output: str) -> dict[str, Any]:
    """Decode the JSON object embedded in ``raw_output``.

    Field semantics are not interpreted here.

    Raises:
        UnparseableResponseError: No braces, invalid JSON, or a non-object.
    """
    candidate = extract_json_object(raw_output)
    if candidate is None:
        logger.warning("No JSON object in model output (%d chars)", len(raw_output or ""))
        raise UnparseableResponseError("No JSON found in response")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Model output is not valid JSON: %s", exc)
        raise UnparseableResponseError(f"Invalid JSON in response: {exc}") from exc

    if not isinstance(parsed, dict):
        raise UnparseableResponseError("Response JSON is not an object")
    return parsed
