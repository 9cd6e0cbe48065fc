"""Response parsing for the transcription and chat-completion endpoints.

WHY: The remote APIs return loosely-typed JSON. Parsing it at the client
boundary means the rest of the relay only ever sees IR dataclasses, and
a missing field fails loudly here instead of as a KeyError three calls
later.

HOW: One parse function per endpoint, mapping the raw dict onto IR types
or raising the error class the client layer promises.

RULES:
- A transcription response without "text" is an UpstreamError
- Segments must each carry start, end, and text with 0 <= start < end;
  anything else is a MalformedResponseError
- A chat response must have choices[0].message.content as a string
"""

from __future__ import annotations

import math
from typing import Any, List

from transcript_relay.core.ir import TranscriptionResult, TranscriptSegment
from transcript_relay.errors import MalformedResponseError, UpstreamError


def parse_transcription(data: Any) -> TranscriptionResult:
    """Convert a verbose_json transcription body into a TranscriptionResult.

    RULES:
    - "segments" may be absent (plain json format); result has no segments
    - language and duration are copied when present and well-typed
    - "segments" present but not a list is a MalformedResponseError
    """
    if not isinstance(data, dict) or not isinstance(data.get("text"), str):
        raise UpstreamError("Transcription failed: response has no 'text' field")

    raw_segments = data.get("segments")
    if raw_segments is None:
        raw_segments = []
    elif not isinstance(raw_segments, list):
        raise MalformedResponseError(
            "Transcription 'segments' must be a list, got {}".format(type(raw_segments).__name__)
        )

    segments: List[TranscriptSegment] = []
    for i, raw in enumerate(raw_segments):
        try:
            segment = TranscriptSegment.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedResponseError(
                "Transcription segment {} is malformed: {!r}".format(i, raw)
            ) from exc
        if not (math.isfinite(segment.start) and math.isfinite(segment.end)):
            raise MalformedResponseError("Transcription segment {} has a non-finite time".format(i))
        if segment.start < 0 or segment.end <= segment.start:
            raise MalformedResponseError(
                "Transcription segment {} has invalid bounds {}-{}".format(
                    i, segment.start, segment.end
                )
            )
        segments.append(segment)

    language = data.get("language")
    duration = data.get("duration")
    return TranscriptionResult(
        text=data["text"],
        segments=segments,
        language=language if isinstance(language, str) else None,
        duration=float(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
    )


def parse_chat_content(data: Any) -> str:
    """Return ``choices[0].message.content`` from a chat-completion body."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError("Chat response has no choices[0].message.content") from exc
    if not isinstance(content, str):
        raise MalformedResponseError("Chat response content is not text")
    return content
