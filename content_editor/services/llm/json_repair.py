"""Best-effort parsing of JSON objects out of model replies."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
FENCE_CLOSE = re.compile(r"```$")
TRAILING_COMMA = re.compile(r",\s*(\}|\])")
BARE_ELLIPSIS = re.compile(r'(?<!")\.\.\.(?!")')
GLUED_OBJECTS = re.compile(r"}\s*{")


class JSONRepairError(ValueError):
    """Raised when a model reply cannot be coerced into a JSON object."""


def _try_parse(candidate: Optional[str]) -> Any:
    if not candidate:
        return None
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def strip_fences(raw: str) -> str:
    cleaned = FENCE_OPEN.sub("", raw.strip())
    return FENCE_CLOSE.sub("", cleaned)


def repair_brackets(value: str) -> str:
    """Drop closing brackets outside strings that do not close an open bracket."""
    result: List[str] = []
    stack: List[str] = []
    in_string = False
    escape_next = False
    pairs = {"]": "[", "}": "{"}

    for char in value:
        if in_string:
            result.append(char)
            if escape_next:
                escape_next = False
            elif char == "\\":
                escape_next = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "[{":
            stack.append(char)
        elif char in pairs:
            if not stack or stack[-1] != pairs[char]:
                continue
            stack.pop()
        result.append(char)
    return "".join(result)


def extract_object(value: str) -> Optional[str]:
    """First balanced ``{...}`` slice of the value."""
    start = value.find("{")
    if start == -1:
        return None
    depth = 0
    for idx in range(start, len(value)):
        if value[idx] == "{":
            depth += 1
        elif value[idx] == "}":
            depth -= 1
            if depth == 0:
                return value[start : idx + 1]
    return None


def parse_model_json(raw: str) -> Dict[str, Any]:
    cleaned = strip_fences(raw)
    repaired = repair_brackets(cleaned)

    for attempt in (cleaned, repaired):
        parsed = _try_parse(attempt)
        if isinstance(parsed, dict):
            return parsed

    candidates: List[str] = []
    block = extract_object(repaired)
    if block:
        candidates.append(repair_brackets(block))
    no_trailing = TRAILING_COMMA.sub(r"\1", repaired)
    candidates.append(no_trailing)
    candidates.append(repair_brackets(BARE_ELLIPSIS.sub('"..."', no_trailing)))
    if block:
        candidates.append(
            repair_brackets(TRAILING_COMMA.sub(r"\1", BARE_ELLIPSIS.sub('"..."', block)))
        )
    candidates.append(repair_brackets(f"[{GLUED_OBJECTS.sub('},{', repaired)}]"))

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        parsed = _try_parse(candidate)
        if isinstance(parsed, dict):
            return parsed
        if isinstance(parsed, list):
            for item in parsed:
                if isinstance(item, dict):
                    return item

    logger.error("Model reply could not be parsed as JSON (%d chars)", len(raw))
    raise JSONRepairError("AI response could not be parsed as JSON")
