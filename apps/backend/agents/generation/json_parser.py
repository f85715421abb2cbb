"""
Recovery of JSON values from raw model output.

Models wrap JSON in markdown fences, add prose before and after it, and
sometimes break lines inside strings. The parser tries progressively more
lenient extraction methods and stops at the first one that yields valid JSON.
It never raises into business logic; failure is reported as a value.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from setup_logging_optimized import get_logger

logger = get_logger(__name__)

_ALL_FENCES_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_PREAMBLE_RE = re.compile(r"^[\s\n]*here.?is.?the.?json.?[:\s]*", re.IGNORECASE)
_JSON_LABEL_RE = re.compile(r"^[\s\n]*json[:\s]*", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

EXPECT_ARRAY = "array"
EXPECT_OBJECT = "object"


@dataclass(frozen=True)
class ParsedOutput:
    """Outcome of a parse attempt.

    ``ok`` distinguishes a parsed JSON ``null`` (ok=True, value=None) from
    a definitive failure (ok=False).
    """
    ok: bool
    value: Any = None
    method: Optional[str] = None


FAILED = ParsedOutput(ok=False)


def _try_parse(candidate: str, method: str) -> ParsedOutput:
    try:
        value = json.loads(candidate)
    except (ValueError, TypeError) as e:
        logger.debug(f"[JSON] {method} failed: {e}")
        return FAILED
    logger.debug(f"[JSON] parsed via {method}")
    return ParsedOutput(ok=True, value=value, method=method)


def _is_array_shaped(text: str, expect: Optional[str]) -> bool:
    if expect == EXPECT_ARRAY:
        return True
    if expect == EXPECT_OBJECT:
        return False
    first_bracket = text.find("[")
    if first_bracket == -1:
        return False
    first_brace = text.find("{")
    return first_brace == -1 or first_bracket < first_brace


def parse_structured_output(raw_text: Optional[str], expect: Optional[str] = None) -> ParsedOutput:
    """Parse a JSON value out of arbitrary model text.

    Args:
        raw_text: Model output believed to contain one JSON object or array
        expect: "array", "object" or None. Controls whether the bracket
            extraction step runs; None infers it from the text.

    Returns:
        ParsedOutput with ok=False when every method failed.
    """
    if not isinstance(raw_text, str):
        return FAILED

    original = raw_text.strip()
    if not original:
        return FAILED

    # 1. Direct parse
    result = _try_parse(original, "direct parse")
    if result.ok:
        return result

    fences = _ALL_FENCES_RE.findall(original)

    # 2. Last fenced block, minus any "here is the json" preamble
    if fences and fences[-1].strip():
        extracted = _PREAMBLE_RE.sub("", fences[-1].strip())
        extracted = _JSON_LABEL_RE.sub("", extracted).strip()
        result = _try_parse(extracted, "last code fence")
        if result.ok:
            return result

    # 3. Every fenced block, last to first
    for i in range(len(fences) - 1, -1, -1):
        content = fences[i].strip()
        if content:
            result = _try_parse(content, f"code fence #{i + 1} (reverse)")
            if result.ok:
                return result

    # 4. Bracket extraction for arrays
    if _is_array_shaped(original, expect):
        first_bracket = original.find("[")
        last_bracket = original.rfind("]")
        if first_bracket != -1 and last_bracket > first_bracket:
            result = _try_parse(original[first_bracket:last_bracket + 1], "bracket extraction (array)")
            if result.ok:
                return result

    # 5. Brace extraction for objects, then with whitespace collapsed
    first_brace = original.find("{")
    last_brace = original.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        candidate = original[first_brace:last_brace + 1]
        result = _try_parse(candidate, "brace extraction (raw)")
        if result.ok:
            return result

        cleaned = _WHITESPACE_RE.sub(" ", candidate).strip()
        result = _try_parse(cleaned, "brace extraction (cleaned)")
        if result.ok:
            return result

    logger.warning(f"[JSON] All parsing methods failed for response: {original[:300]!r}")
    return FAILED


def parse_agent_response_text(raw_text: Optional[str], expect: Optional[str] = None) -> Any:
    """Return the parsed value, or None when nothing could be recovered."""
    return parse_structured_output(raw_text, expect).value
