# src/parsing/json_repair.py
"""Best-effort completion of JSON documents cut off mid-structure.

Vision models occasionally stop at their output token limit, leaving a
document with unterminated strings and unclosed containers. The repair
closes what is open, drops dangling commas, and if that is still not
valid JSON, backs off to earlier value boundaries until it is.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from muscleai.core.errors import MalformedResponseError

logger = logging.getLogger(__name__)

_GREEDY_OBJECT = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA = re.compile(r",\s*$")

_CLOSERS = {"{": "}", "[": "]"}


def is_valid_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def extract_json_candidate(text: str) -> str:
    """Return the greedy ``{...}`` span of text, else the stripped text."""
    match = _GREEDY_OBJECT.search(text)
    return match.group(0) if match else text.strip()


def _scan(text: str) -> tuple[str, list[str], bool, list[int]]:
    """Walk text once, outside strings dropping commas that precede a closer.

    Returns:
        (cleaned text, open-container stack, inside-string flag,
        offsets in cleaned text of commas outside strings)
    """
    out: list[str] = []
    stack: list[str] = []
    commas: list[int] = []
    in_string = False
    escaped = False

    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]":
            _drop_trailing_comma(out, commas)
            # A mismatched closer is kept; the parser rejects it later.
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
        elif ch == ",":
            commas.append(len(out))
        out.append(ch)

    if in_string and escaped:
        out.pop()
    return "".join(out), stack, in_string, commas


def _drop_trailing_comma(out: list[str], commas: list[int]) -> None:
    i = len(out) - 1
    while i >= 0 and out[i].isspace():
        i -= 1
    if i >= 0 and out[i] == ",":
        del out[i]
        if commas and commas[-1] == i:
            commas.pop()


def _close(text: str) -> tuple[str, list[int]]:
    cleaned, stack, in_string, commas = _scan(text)
    if in_string:
        cleaned += '"'
    cleaned = _TRAILING_COMMA.sub("", cleaned.rstrip())
    return cleaned + "".join(_CLOSERS[c] for c in reversed(stack)), commas


def repair_truncated_json(text: str) -> str:
    """Complete a truncated JSON document.

    Closes an unterminated string, removes trailing commas before closers,
    and appends the missing closers in nesting order. If the result still
    does not parse, truncates back to each earlier comma outside a string
    (a point where every preceding value is complete) and closes again.

    Returns:
        The best candidate; callers must still check that it parses.
    """
    text = text.strip()
    repaired, commas = _close(text)
    if is_valid_json(repaired):
        return repaired

    cleaned, _, _, _ = _scan(text)
    for offset in reversed(commas):
        candidate, _ = _close(cleaned[:offset])
        if is_valid_json(candidate):
            logger.debug("Truncated repaired JSON back to offset %d", offset)
            return candidate
    return repaired


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse the JSON object carried by text, repairing once if needed.

    Raises:
        MalformedResponseError: If no JSON object can be recovered.
    """
    candidate = extract_json_candidate(text)
    try:
        data = json.loads(candidate)
    except ValueError:
        data = _parse_repaired(text, candidate)

    if not isinstance(data, dict):
        raise MalformedResponseError(
            "AI response is not a JSON object", details=type(data).__name__
        )
    return data


def _parse_repaired(text: str, candidate: str) -> Any:
    start = text.find("{")
    attempts = [text[start:]] if start >= 0 else []
    if candidate not in attempts:
        attempts.append(candidate)

    for attempt in attempts:
        repaired = repair_truncated_json(attempt)
        try:
            data = json.loads(repaired)
        except ValueError:
            continue
        logger.info(
            "Repaired truncated JSON response (%d -> %d chars)", len(attempt), len(repaired)
        )
        return data

    raise MalformedResponseError("AI response is not valid JSON", details=text[:500])
