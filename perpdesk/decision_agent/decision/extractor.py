"""Extraction of the rationale and the decision array from an oracle reply.

The reply is free text: reasoning first, then a JSON array of decision
objects. Everything before the first `[` is the rationale; the payload runs
from that `[` to its matching `]`.
"""

from __future__ import annotations

import json
from typing import List, Tuple

from pydantic import TypeAdapter, ValidationError

from ..exceptions import MalformedPayloadError, NoStructuredDataError
from ..models import ProposedAction

_QUOTE_TRANSLATION = str.maketrans(
    {
        "\u201c": '"',
        "\u201d": '"',
        "\u2018": "'",
        "\u2019": "'",
    }
)

_ACTIONS_ADAPTER = TypeAdapter(List[ProposedAction])


def normalize_quotes(text: str) -> str:
    """Replace typographic quotes with their ASCII equivalents.

    Each replacement is one character for one, so offsets into the text stay
    valid. Applying it twice is the same as applying it once.
    """
    return text.translate(_QUOTE_TRANSLATION)


def find_matching_bracket(text: str, start: int) -> int:
    """Index of the `]` closing the `[` at `start`, or -1 if unbalanced.

    Brackets inside double-quoted JSON strings are not counted.
    """
    if start < 0 or start >= len(text) or text[start] != "[":
        return -1

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
    return -1


def extract_rationale(text: str) -> str:
    """Stripped text before the first `[`, or the whole reply if none."""
    start = text.find("[")
    if start == -1:
        return text.strip()
    return text[:start].strip()


def parse_actions(payload: str, rationale: str = "") -> List[ProposedAction]:
    try:
        raw = json.loads(payload)
        return _ACTIONS_ADAPTER.validate_python(raw)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise MalformedPayloadError(
            f"decision payload could not be parsed: {exc}",
            payload=payload,
            rationale=rationale,
        ) from exc


class ResponseExtractor:
    """Splits an oracle reply into `(rationale, actions)`."""

    def extract(self, raw_text: str) -> Tuple[str, List[ProposedAction]]:
        raw_text = raw_text or ""
        rationale = extract_rationale(raw_text)
        text = normalize_quotes(raw_text)
        start = text.find("[")
        if start == -1:
            raise NoStructuredDataError(
                "oracle reply contains no decision array", rationale=rationale
            )

        end = find_matching_bracket(text, start)
        if end == -1:
            raise MalformedPayloadError(
                "decision array is not closed",
                payload=text[start:].strip(),
                rationale=rationale,
            )

        payload = text[start : end + 1].strip()
        return rationale, parse_actions(payload, rationale)
