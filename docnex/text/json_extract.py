"""Pull JSON payloads out of free-form LLM replies.

Models often wrap JSON in prose or code fences. These helpers take the
outermost ``{...}`` or ``[...]`` span and parse it.
"""

from __future__ import annotations

import json
import re
from typing import Any

from docnex.core.exceptions import AIValidationError


_OBJECT = re.compile(r"\{[\s\S]*\}")
_ARRAY = re.compile(r"\[[\s\S]*\]")


def _extract(text: str, pattern: re.Pattern[str], kind: str) -> Any:
    match = pattern.search(text)
    if match is None:
        raise AIValidationError(f"No JSON {kind} found in model response", [f"response: no {kind}"])
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AIValidationError(
            f"Model response contains invalid JSON: {e.msg}",
            [f"response: {e.msg} at position {e.pos}"],
        ) from e


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the outermost JSON object in ``text``.

    Raises:
        AIValidationError: No object found or it does not parse
    """
    data = _extract(text, _OBJECT, "object")
    if not isinstance(data, dict):
        raise AIValidationError("Expected a JSON object", ["response: not an object"])
    return data


def extract_json_array(text: str) -> list[Any]:
    """Parse the outermost JSON array in ``text``.

    Raises:
        AIValidationError: No array found or it does not parse
    """
    data = _extract(text, _ARRAY, "array")
    if not isinstance(data, list):
        raise AIValidationError("Expected a JSON array", ["response: not an array"])
    return data
