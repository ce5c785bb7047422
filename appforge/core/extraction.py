"""
Structured response extraction.

Model responses are supposed to be bare JSON but frequently arrive wrapped in
a markdown fence or surrounded by prose. ``extract_structured`` recovers the
JSON value using, in order:

1. the whole text parsed directly,
2. the interior of the first fenced block (```json ... ``` or bare ```),
3. the slice from the first ``{`` to the last ``}`` inclusive.

The first tier that parses wins. The brace slice is naive: text holding two
separate objects, or a stray brace inside prose or a string literal, is not
recovered by tier 3.
"""
import json
import logging
import re
from typing import Any, Optional

from appforge.core.errors import ExtractionError

log = logging.getLogger(__name__)

FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)
SAMPLE_CHARS = 500


def _try_parse(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return False, None


def _fenced_block(text: str) -> Optional[str]:
    match = FENCE_RE.search(text)
    if match and match.group(1):
        return match.group(1).strip()
    return None


def _brace_slice(text: str) -> Optional[str]:
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last != -1 and last > first:
        return text[first:last + 1]
    return None


def extract_structured(raw_text: str) -> Any:
    """Parse a model response into a JSON value or raise ExtractionError."""
    if raw_text is None:
        raise ExtractionError("Could not extract JSON from AI response: empty response", "")

    ok, value = _try_parse(raw_text)
    if ok:
        return value

    log.warning("Could not parse AI response directly, trying to trim")

    fenced = _fenced_block(raw_text)
    if fenced is not None:
        ok, value = _try_parse(fenced)
        if ok:
            return value

    sliced = _brace_slice(raw_text)
    if sliced is not None:
        ok, value = _try_parse(sliced)
        if ok:
            return value

    sample = raw_text[:SAMPLE_CHARS]
    log.error("Could not extract JSON from AI response: %r", sample)
    raise ExtractionError(f"Could not extract JSON from AI response: {raw_text[:200]}", sample)


def extract_mapping(raw_text: str, required_keys: tuple[str, ...] = ()) -> dict:
    """Like extract_structured but insists on a JSON object carrying ``required_keys``."""
    value = extract_structured(raw_text)
    if not isinstance(value, dict):
        raise ExtractionError(
            f"Expected a JSON object, got {type(value).__name__}", raw_text[:SAMPLE_CHARS]
        )
    missing = [key for key in required_keys if key not in value]
    if missing:
        raise ExtractionError(
            f"AI response is missing required keys: {', '.join(missing)}", raw_text[:SAMPLE_CHARS]
        )
    return value
