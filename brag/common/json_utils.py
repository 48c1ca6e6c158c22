"""
JSON Utilities for LLM Response Parsing.

Local models often produce defective JSON: markdown fences, trailing commas,
output truncated at the token limit, or chatty prose after the object.
All repair heuristics live here so business logic only ever sees a parsed
dict or None.
"""

import json
import re
from typing import Any, Dict, Optional

from json_repair import repair_json

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def try_parse_llm_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object out of LLM output, repairing common defects.

    Recovery order:
    1. Strip markdown code fences, slice from the first '{'
    2. Direct json.loads()
    3. Remove trailing commas before '}' / ']'
    4. Append missing ']' then '}' by counting unmatched occurrences
    5. Cut anything after the last '}'
    6. json-repair as a last resort

    Args:
        text: Raw LLM response text

    Returns:
        Parsed dictionary, or None when nothing usable can be recovered

    Example:
        >>> try_parse_llm_json('{"a": 1,}')
        {'a': 1}
        >>> try_parse_llm_json('{"a": [1, 2')
        {'a': [1, 2]}
        >>> try_parse_llm_json('no json here') is None
        True
    """
    if not text or not text.strip():
        return None

    candidate = _strip_markdown_blocks(text.strip())
    start = candidate.find("{")
    if start == -1:
        return None
    candidate = candidate[start:]

    direct = _loads_dict(candidate)
    if direct is not None:
        return direct

    fixed = _TRAILING_COMMA.sub(r"\1", candidate)

    missing_brackets = fixed.count("[") - fixed.count("]")
    missing_braces = fixed.count("{") - fixed.count("}")
    fixed += "]" * max(0, missing_brackets)
    fixed += "}" * max(0, missing_braces)

    last_brace = fixed.rfind("}")
    if last_brace != -1:
        fixed = fixed[: last_brace + 1]

    repaired = _loads_dict(fixed)
    if repaired is not None:
        return repaired

    try:
        return _coerce_to_dict(repair_json(candidate, return_objects=True))
    except Exception:
        return None


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Parse JSON from LLM response, raising when recovery fails.

    Args:
        text: Raw LLM response text that may contain JSON

    Returns:
        Parsed dictionary from the JSON

    Raises:
        ValueError: If no valid JSON can be extracted or repaired
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    parsed = try_parse_llm_json(text)
    if parsed is None:
        raise ValueError(f"Failed to parse or repair JSON. Original text (first 500 chars): {text[:500]}")
    return parsed


def _loads_dict(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def _coerce_to_dict(repaired: Any) -> Optional[Dict[str, Any]]:
    """Normalize json-repair output to a dict (or None)."""
    if isinstance(repaired, dict):
        return repaired or None
    if isinstance(repaired, list):
        # LLM sometimes wraps the object in brackets or emits several objects
        dicts = [item for item in repaired if isinstance(item, dict)]
        if not dicts:
            return None
        if len(dicts) == 1:
            return dicts[0]
        merged: Dict[str, Any] = {}
        for item in dicts:
            merged.update(item)
        return merged
    if isinstance(repaired, str) and repaired:
        return _loads_dict(repaired)
    return None


def _strip_markdown_blocks(text: str) -> str:
    """
    Remove markdown code block wrappers from text.

    Handles:
    - ```json ... ```
    - ``` ... ```
    """
    result = text

    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]

    if result.endswith("```"):
        result = result[:-3]

    return result.strip()
