"""Subtitle formatters for transcript segments and gap-fill suggestions.

WHY: Editors import the transcription and the proposed filler as two
separate subtitle tracks so filler can be reviewed before it is used.

HOW: Both formatters delegate to core.subtitles; they only pick the
input list and the file suffix.

RULES:
- Registered as "subtitles" and "gap_fill" in FORMATTERS
- Media type: "application/x-subrip"
- An empty list renders to an empty file
"""

from __future__ import annotations

from typing import List

from transcript_relay.core.ir import Transcript
from transcript_relay.core.subtitles import render_segments, render_suggestions
from transcript_relay.formatters.base import BaseFormatter, FormatterOutput

SUBRIP_MEDIA_TYPE = "application/x-subrip"


class SubtitleFormatter(BaseFormatter):
    """Transcript segments as subtitle blocks."""

    @property
    def name(self) -> str:
        return "Subtitles"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix="-subtitles.srt",
                content=render_segments(transcript.result.segments),
                media_type=SUBRIP_MEDIA_TYPE,
            )
        ]


class GapFillFormatter(BaseFormatter):
    """Gap-fill suggestions as subtitle blocks."""

    @property
    def name(self) -> str:
        return "Gap Fill Subtitles"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix="-gapfill.srt",
                content=render_suggestions(transcript.suggestions),
                media_type=SUBRIP_MEDIA_TYPE,
            )
        ]
