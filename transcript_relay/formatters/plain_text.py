"""Plain text transcript formatter.

WHY: Editors need a readable transcript for review and archival — no
timecodes, just the text the transcription API returned.

RULES:
- Content is the transcription text, stripped, with one trailing newline
- Empty transcripts produce an empty file
- Output suffix: "-transcript.txt"
"""

from __future__ import annotations

from typing import List

from transcript_relay.core.ir import Transcript
from transcript_relay.formatters.base import BaseFormatter, FormatterOutput


class PlainTextFormatter(BaseFormatter):
    """Transcription text as a plain .txt file."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        text = transcript.result.text.strip()
        return [
            FormatterOutput(
                suffix="-transcript.txt",
                content=text + "\n" if text else "",
                media_type="text/plain",
            )
        ]
