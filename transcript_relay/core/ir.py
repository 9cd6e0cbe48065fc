"""Intermediate representation dataclasses for transcripts and gap fills.

WHY: The transcription API returns verbose JSON, the chat API returns
JSON embedded in prose, and the outputs (subtitles, topics, plain text)
each need a different slice of that data. The IR gives every stage one
well-typed, request-scoped shape to work with.

HOW: Six dataclasses:
  TranscriptSegment   — one transcribed utterance with start/end/text
  TranscriptionResult — full transcription text plus its segments
  Topic               — a labelled time range from topic extraction
  Gap                 — an interval no segment covers
  Suggestion          — AI filler text for (part of) a gap
  Transcript          — everything one request produced, for formatters

RULES:
- All times are float seconds from the start of the audio
- end > start for every timed entity; seconds are non-negative
- Segments are frozen: immutable once received from the API
- Nothing here is persisted; all objects live for one request
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class TranscriptSegment:
    """A transcribed utterance span.

    RULES:
    - start >= 0, end > start
    - text is passed through verbatim (the renderer does not strip it)
    """

    start: float
    end: float
    text: str

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptSegment:
        return cls(
            start=float(data["start"]),
            end=float(data["end"]),
            text=str(data["text"]),
        )

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "text": self.text}


@dataclass
class TranscriptionResult:
    """The usable part of a verbose_json transcription response.

    WHY: Whisper-style verbose responses carry many fields (tokens,
    avg_logprob, compression_ratio, ...). Downstream only needs the text,
    the timed segments, and the detected language/duration.

    RULES:
    - text is always present (the client rejects responses without it)
    - segments keep the API's chronological order
    - language and duration are None when the API omits them
    """

    text: str
    segments: list[TranscriptSegment] = field(default_factory=list)
    language: str | None = None
    duration: float | None = None

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "segments": [s.to_dict() for s in self.segments],
            "language": self.language,
            "duration": self.duration,
        }


@dataclass
class Topic:
    """A topic label covering [start, end] seconds. No uniqueness enforced."""

    topic: str
    start: float
    end: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Gap:
    """A timeline interval not covered by any segment."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


@dataclass
class Suggestion:
    """AI-generated filler text for part or all of a Gap."""

    suggestion: str
    start: float
    end: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Transcript:
    """Everything one relay request produced; the input to all formatters.

    RULES:
    - topics is empty when topic extraction was skipped
    - suggestions is empty when gap filling was skipped or found no gaps
    - source_filename is the audio file name, used for output naming
    """

    result: TranscriptionResult
    source_filename: str
    topics: list[Topic] = field(default_factory=list)
    suggestions: list[Suggestion] = field(default_factory=list)
