"""
Robust JSON extraction and parsing utilities for LLM responses.

PROBLEM
-------
LLMs often return valid JSON wrapped in Markdown fences or embedded
in explanatory text:
    "Here's the pick: {"tables": ["mobility.trips"]} Hope this helps!"

A bare json.loads() fails on these with "Extra data" errors.

SOLUTION
--------
Extract ONLY the first JSON object before parsing, then check its
shape against the agent's pydantic output model.

Agents consume the recoverable ParsedResponse value returned by
parse_agent_response(); it never raises on bad model output, so the
repair/fallback protocol does not use exceptions for control flow.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError


class JSONExtractionError(Exception):
    """Raised when no valid JSON object can be extracted."""
    pass


def extract_first_json_block(text: str) -> Tuple[str, Optional[str]]:
    """
    Extract the first JSON object from LLM response text.

    Algorithm:
    ----------
    1. Prefer the body of a ```json (or bare ```) code block
    2. Otherwise find the first '{' character
    3. Track brace depth (ignoring braces inside strings) to find the matching '}'
    4. Return extracted JSON and any stripped text

    Returns:
        Tuple of (json_string, stripped_text); stripped_text is None when
        nothing surrounded the JSON.

    Raises:
        JSONExtractionError: If no JSON object is found

    Examples:
        >>> extract_first_json_block('{"key": "value"}')
        ('{"key": "value"}', None)

        >>> extract_first_json_block('Pick: {"a": 1} Done!')
        ('{"a": 1}', 'Pick: Done!')
    """
    if not text or not isinstance(text, str):
        raise JSONExtractionError("Input text is empty or not a string")

    text = text.strip()

    # Handle markdown code blocks
    match = re.search(r'```(?:json)?\s*([\s\S]*?)\s*```', text, re.IGNORECASE)
    if match:
        json_candidate = match.group(1).strip()
        before = text[:match.start()].strip()
        after = text[match.end():].strip()
        stripped = (before + " " + after).strip() if (before or after) else None
        return json_candidate, stripped

    start_idx = text.find('{')
    if start_idx == -1:
        raise JSONExtractionError("No JSON object found (no opening brace)")

    depth = 0
    in_string = False
    escape_next = False
    end_idx = None

    for i in range(start_idx, len(text)):
        char = text[i]

        if escape_next:
            escape_next = False
            continue

        if char == '\\':
            escape_next = True
            continue

        # Braces inside strings don't count
        if char == '"':
            in_string = not in_string
            continue

        if not in_string:
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    end_idx = i + 1
                    break

    if end_idx is None:
        raise JSONExtractionError("No matching closing brace found (unbalanced braces)")

    json_str = text[start_idx:end_idx].strip()

    before = text[:start_idx].strip()
    after = text[end_idx:].strip()
    stripped = (before + " " + after).strip() if (before or after) else None

    return json_str, stripped


def safe_parse_llm_json(text: str) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Parse the first JSON object in an LLM response.

    Returns:
        Tuple of (parsed_dict, stripped_text)

    Raises:
        JSONExtractionError: If extraction or parsing fails, or the JSON
            value is not an object
    """
    json_str, stripped_text = extract_first_json_block(text)

    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise JSONExtractionError(
            f"Extracted text is not valid JSON: {e}\n"
            f"Extracted: {json_str[:200]}"
        )

    if not isinstance(parsed, dict):
        raise JSONExtractionError(
            f"Expected JSON object (dict), got {type(parsed).__name__}: {parsed}"
        )

    return parsed, stripped_text


# ============================================================
# RECOVERABLE RESULT TYPE
# ============================================================

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class ParsedResponse(Generic[T]):
    """
    Outcome of decoding one model response.

    Exactly one of `value` / `error` is set. `stripped_text` records any
    commentary that surrounded the JSON object.
    """
    value: Optional[T] = None
    error: Optional[str] = None
    stripped_text: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def parse_agent_response(text: Optional[str], model: Type[T]) -> ParsedResponse[T]:
    """
    Decode `text` into the agent output `model`.

    Malformed JSON and shape mismatches (e.g. a non-array where an array
    is required) both come back as a failed ParsedResponse.
    """
    if text is None:
        return ParsedResponse(error="no response")

    try:
        data, stripped = safe_parse_llm_json(text)
    except JSONExtractionError as e:
        return ParsedResponse(error=str(e))

    try:
        value = model.model_validate(data)
    except ValidationError as e:
        return ParsedResponse(error=f"Unexpected shape: {e.errors()[0]['msg']}", stripped_text=stripped)

    return ParsedResponse(value=value, stripped_text=stripped)
