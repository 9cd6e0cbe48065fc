"""Subtitle block rendering and parsing.

WHY: Transcript segments and gap-fill suggestions are both delivered to
editors as subtitle-timed text. One renderer serves both so the two
outputs can be merged or compared line for line.

HOW: Each timed item becomes one block::

    <start> --> <end>
    <text>
    <blank line>

Blocks are concatenated in input order and trailing whitespace is
trimmed from the whole result. parse_subtitles() reverses the process.

RULES:
- No reordering, no merging of overlapping items; pass-through order
- Empty input renders to "" (not a lone newline)
- Block text is not stripped or re-wrapped; multi-line text is kept
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import List

from transcript_relay.core.ir import Suggestion, TranscriptSegment
from transcript_relay.core.timecode import format_timestamp, parse_timestamp
from transcript_relay.errors import InvalidInputError

BLOCK_SEPARATOR = "\n\n"
_ARROW = " --> "


def render_block(start: float, end: float, text: str) -> str:
    """Render one subtitle block including its trailing blank line."""
    return "{}{}{}\n{}{}".format(
        format_timestamp(start), _ARROW, format_timestamp(end), text, BLOCK_SEPARATOR
    )


def render_segments(segments: Iterable[TranscriptSegment]) -> str:
    """Render transcript segments as concatenated subtitle blocks.

    Args:
        segments: Segments in the order they should appear.

    Returns:
        All blocks joined, with trailing whitespace removed.
    """
    blocks = [render_block(seg.start, seg.end, seg.text) for seg in segments]
    return "".join(blocks).rstrip()


def render_suggestions(suggestions: Iterable[Suggestion]) -> str:
    """Render gap-fill suggestions with the same block format as segments."""
    blocks = [render_block(s.start, s.end, s.suggestion) for s in suggestions]
    return "".join(blocks).rstrip()


def parse_subtitles(content: str) -> List[TranscriptSegment]:
    """Parse rendered subtitle text back into segments.

    WHY: Lets callers load a previously written subtitle file (e.g. a
    gap-fill output) and lets tests verify the renderer round-trips.

    HOW: Splits on blank lines. The first line of each block must be a
    ``start --> end`` timing line; the remaining lines are the text.

    RULES:
    - Whitespace-only input yields an empty list
    - A block without a valid timing line raises InvalidInputError
    """
    segments: List[TranscriptSegment] = []
    if not content.strip():
        return segments

    for raw_block in content.strip().split(BLOCK_SEPARATOR):
        block = raw_block.strip("\n")
        if not block.strip():
            continue
        timing, _, text = block.partition("\n")
        if _ARROW not in timing:
            raise InvalidInputError("Missing timing line in block: {!r}".format(timing))
        start_text, end_text = timing.split(_ARROW, 1)
        segments.append(
            TranscriptSegment(
                start=parse_timestamp(start_text),
                end=parse_timestamp(end_text),
                text=text,
            )
        )
    return segments
