"""Lenient handling of JSON text returned by design providers."""

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    trimmed = text.strip()
    match = _FENCE_RE.match(trimmed)
    if match:
        return match.group(1).strip()
    return trimmed


def parse_json_lenient(text: str) -> Any:
    """Parse JSON, falling back to the outermost ``{...}`` span in the text.

    Raises:
        json.JSONDecodeError: If neither the full text nor the brace span parses.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start : end + 1])
