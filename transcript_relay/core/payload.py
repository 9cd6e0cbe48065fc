"""Unwrap and validate structured JSON payloads from chat-model replies.

WHY: Chat models are asked for "ONLY a JSON object" but routinely wrap
it in a Markdown code fence. Best-effort stripping hides real deviations
(prose before the JSON, a truncated reply), so the relay accepts exactly
two shapes and rejects everything else with a clear error.

HOW: unwrap_json_payload() accepts bare JSON, or JSON inside a single
```json / ``` fence with only whitespace around it. The decoded value
is then checked against a JSON Schema with jsonschema, and converted
into IR dataclasses with the time-range checks the schema can't express.

RULES:
- Any deviation from the two accepted shapes raises MalformedResponseError
- Schema errors name the failing JSON path
- Every parsed item satisfies 0 <= start < end
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List

import jsonschema

from transcript_relay.core.ir import Suggestion, Topic
from transcript_relay.errors import MalformedResponseError

_FENCE_OPEN_RE = re.compile(r"^```[ \t]*(?:json)?[ \t]*$", re.IGNORECASE)
_FENCE_CLOSE = "```"

_TIMED_ITEM_PROPERTIES: Dict[str, Any] = {
    "start": {"type": "number", "minimum": 0},
    "end": {"type": "number", "minimum": 0},
}

TOPICS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["topics"],
    "properties": {
        "topics": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["topic", "start", "end"],
                "properties": dict(_TIMED_ITEM_PROPERTIES, topic={"type": "string"}),
            },
        },
    },
}

SUGGESTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["suggestions"],
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["suggestion", "start", "end"],
                "properties": dict(
                    _TIMED_ITEM_PROPERTIES,
                    suggestion={"type": "string", "minLength": 1},
                ),
            },
        },
    },
}


def unwrap_json_payload(content: str) -> Any:
    """Decode the JSON payload of a chat reply, unwrapping one code fence.

    Args:
        content: The raw ``message.content`` string from the chat API.

    Returns:
        The decoded JSON value.

    Raises:
        MalformedResponseError: The reply is empty, has text outside the
            fence, has an unclosed fence, or the payload is not valid JSON.
    """
    if not isinstance(content, str):
        raise MalformedResponseError(
            "Expected text content, got {}".format(type(content).__name__)
        )

    text = content.strip()
    if not text:
        raise MalformedResponseError("Model reply is empty")

    if text.startswith(_FENCE_CLOSE):
        lines = text.split("\n")
        if not _FENCE_OPEN_RE.match(lines[0].strip()):
            raise MalformedResponseError(
                "Unexpected code fence header: {!r}".format(lines[0])
            )
        if len(lines) < 3 or lines[-1].strip() != _FENCE_CLOSE:
            raise MalformedResponseError("Code fence is not closed")
        body = "\n".join(lines[1:-1])
        if _FENCE_CLOSE in body:
            raise MalformedResponseError("Reply contains more than one code fence")
        text = body.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            "Model reply is not valid JSON: {} at line {} column {}".format(
                exc.msg, exc.lineno, exc.colno
            )
        ) from exc


def validate_payload(payload: Any, schema: Dict[str, Any], what: str) -> None:
    """Validate a decoded payload against a JSON Schema.

    Raises:
        MalformedResponseError: naming ``what`` and the failing JSON path.
    """
    try:
        jsonschema.validate(instance=payload, schema=schema)
    except jsonschema.ValidationError as exc:
        path = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise MalformedResponseError(
            "Invalid {} payload at {}: {}".format(what, path, exc.message)
        ) from exc


def _check_range(start: float, end: float, what: str, index: int) -> None:
    if not (math.isfinite(start) and math.isfinite(end)):
        raise MalformedResponseError("{} {} has a non-finite time".format(what, index))
    if start >= end:
        raise MalformedResponseError(
            "{} {} has start {} >= end {}".format(what, index, start, end)
        )


def parse_topics(payload: Any) -> List[Topic]:
    """Validate a ``{"topics": [...]}`` payload and convert it to Topics."""
    validate_payload(payload, TOPICS_SCHEMA, "topics")
    topics: List[Topic] = []
    for i, item in enumerate(payload["topics"]):
        start, end = float(item["start"]), float(item["end"])
        _check_range(start, end, "Topic", i)
        topics.append(Topic(topic=item["topic"], start=start, end=end))
    return topics


def parse_suggestions(payload: Any) -> List[Suggestion]:
    """Validate a ``{"suggestions": [...]}`` payload and convert it to Suggestions."""
    validate_payload(payload, SUGGESTIONS_SCHEMA, "suggestions")
    suggestions: List[Suggestion] = []
    for i, item in enumerate(payload["suggestions"]):
        start, end = float(item["start"]), float(item["end"])
        _check_range(start, end, "Suggestion", i)
        suggestions.append(Suggestion(suggestion=item["suggestion"], start=start, end=end))
    return suggestions
