"""Parse-with-fallback helpers for free-text model output."""

import json
import logging
import re
from typing import Any, TypeVar

from powerprompts.errors import MalformedModelOutput

logger = logging.getLogger(__name__)

T = TypeVar("T")

NEUTRAL_SCORE = 50.0

_JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
_BARE_NUMBER_PATTERN = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))\s*$")


def extract_json_array(text: str) -> list[Any]:
    """Extract the outermost JSON array from model output.

    Raises:
        MalformedModelOutput: If no non-empty array can be decoded
    """
    match = _JSON_ARRAY_PATTERN.search(text)
    if match is None:
        raise MalformedModelOutput("No JSON array found in response")
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise MalformedModelOutput(f"Invalid JSON array: {e}") from e
    if not isinstance(value, list) or not value:
        raise MalformedModelOutput("Expected a non-empty JSON array")
    return value


def parse_json_array(text: str, fallback: T, label: str = "output") -> list[Any] | T:
    """Extract a JSON array, returning ``fallback`` when the output is malformed."""
    try:
        return extract_json_array(text)
    except MalformedModelOutput as e:
        logger.warning(f"Failed to parse {label}: {e}. Using fallback.")
        return fallback


def parse_score(text: str, default: float = NEUTRAL_SCORE) -> float:
    """Parse a bare numeric judge response, clamped to [0, 100].

    Anything other than a lone number (e.g. ``"eighty-seven"``) yields ``default``.
    """
    match = _BARE_NUMBER_PATTERN.match(text or "")
    if match is None:
        logger.warning(f"Unparseable judge score {text[:40]!r}; using {default}")
        return default
    return max(0.0, min(100.0, float(match.group(1))))
