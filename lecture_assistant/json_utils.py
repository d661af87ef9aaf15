"""
Pull a JSON object out of free-form model output.
"""
import json
import re
from typing import Any, Dict, Iterator, Optional

from .errors import ModelParseError
from .logger import setup_logger

logger = setup_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_GREEDY_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def _balanced_objects(text: str) -> Iterator[str]:
    """
    Yield every ``{...}`` span whose braces balance, left to right, ignoring
    braces inside JSON string literals.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    yield text[start:i + 1]
                    break
        start = text.find("{", start + 1)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(candidate)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Extract and parse the first JSON object embedded in ``text``.

    Markdown code fences and any prose before or after the object are
    tolerated. Tries, in order: the whole text, each balanced ``{...}``
    span from the left, and the widest ``{...}`` span.

    Raises:
        ModelParseError: if no candidate parses to a JSON object
    """
    if not text or not isinstance(text, str):
        raise ModelParseError("Empty model response")

    clean_text = _FENCE_RE.sub("", text).strip()

    parsed = _loads_object(clean_text)
    if parsed is not None:
        return parsed

    for block in _balanced_objects(clean_text):
        parsed = _loads_object(block)
        if parsed is not None:
            return parsed

    match = _GREEDY_OBJECT_RE.search(clean_text)
    if match:
        parsed = _loads_object(match.group(0))
        if parsed is not None:
            return parsed

    logger.debug(f"Unparseable model response: {text[:500]}")
    raise ModelParseError("No JSON object found in model response")
