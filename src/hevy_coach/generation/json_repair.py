"""Best-effort recovery of JSON from model output.

This is a handful of regex substitutions, not a parser. It handles the usual
damage: prose or code fences around the payload, single quotes, trailing
commas, comments and missing commas between adjacent values.
"""

import json
import re
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

_EXTRACT_PATTERNS = [
    re.compile(r"```json\s*([\s\S]*?)\s*```"),
    re.compile(r"```\s*([\s\S]*?)\s*```"),
    re.compile(r"(\{[\s\S]*\})"),
    re.compile(r"(\[[\s\S]*\])"),
]

_FIXES = [
    (re.compile(r"'"), '"'),
    (re.compile(r"//.*$", re.MULTILINE), ""),
    (re.compile(r"/\*[\s\S]*?\*/"), ""),
    (re.compile(r",\s*}"), "}"),
    (re.compile(r",\s*]"), "]"),
    (re.compile(r"}\s*{"), "},{"),
    (re.compile(r"]\s*\["), "],["),
    (re.compile(r'":\s*"([^"]+)"\s*"([^"]+)":'), r'": "\1", "\2":'),
    (re.compile(r'":\s*(\d+)\s*"([^"]+)":'), r'": \1, "\2":'),
    (re.compile(r'":\s*(\w+)\s*"([^"]+)":'), r'": \1, "\2":'),
]


def extract_json(text: str) -> str | None:
    """Pull the JSON span out of text that may contain fences or prose."""
    for pattern in _EXTRACT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def repair_json(text: str) -> str:
    """Apply the repair substitutions to ``text``."""
    starts = [i for i in (text.find("{"), text.find("[")) if i >= 0]
    if starts:
        text = text[min(starts):]
    end = max(text.rfind("}"), text.rfind("]"))
    if end > 0:
        text = text[: end + 1]

    for pattern, replacement in _FIXES:
        text = pattern.sub(replacement, text)
    return text


def parse_json(text: str) -> Any:
    """Parse ``text``, retrying once on the repaired text.

    Raises:
        json.JSONDecodeError: The repaired text still does not parse.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as first_error:
        logger.debug("json_parse_failed", error=str(first_error))

    data = json.loads(repair_json(text))
    logger.info("json_repaired")
    return data
