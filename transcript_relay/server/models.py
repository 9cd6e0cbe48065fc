"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint has its own request and response model. Multi-word
fields use camelCase aliases on the wire (``audioPath``) and snake_case
in Python; both spellings are accepted on input.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Error responses always have the shape {"error": message}
- Gap bounds are validated here (422) before any model call is made
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from transcript_relay.core.gaps import DEFAULT_MIN_GAP_SECONDS
from transcript_relay.core.ir import Gap, Suggestion, Topic, TranscriptionResult


# ---------------------------------------------------------------------------
# Shared item models
# ---------------------------------------------------------------------------


class SegmentModel(BaseModel):
    """One timed transcript segment."""

    start: float = Field(description="Segment start in seconds.")
    end: float = Field(description="Segment end in seconds.")
    text: str = Field(description="Transcribed text.")


class TranscriptionModel(BaseModel):
    """Transcription text plus timed segments."""

    text: str = Field(description="Full transcription text.")
    segments: List[SegmentModel] = Field(description="Timed segments in chronological order.")
    language: Optional[str] = Field(default=None, description="Detected language, if reported.")
    duration: Optional[float] = Field(default=None, description="Audio duration in seconds, if reported.")

    @classmethod
    def from_result(cls, result: TranscriptionResult) -> TranscriptionModel:
        return cls(**result.to_dict())


class TopicModel(BaseModel):
    topic: str = Field(description="Topic label.")
    start: float = Field(description="Topic start in seconds.")
    end: float = Field(description="Topic end in seconds.")

    @classmethod
    def from_topic(cls, topic: Topic) -> TopicModel:
        return cls(**topic.to_dict())


class SuggestionModel(BaseModel):
    suggestion: str = Field(description="Filler text proposed for the gap.")
    start: float = Field(description="Suggestion start in seconds.")
    end: float = Field(description="Suggestion end in seconds.")

    @classmethod
    def from_suggestion(cls, suggestion: Suggestion) -> SuggestionModel:
        return cls(**suggestion.to_dict())


class GapModel(BaseModel):
    """An uncovered interval of the timeline.

    RULES:
    - start >= 0 and end > start, otherwise the request is rejected (422)
    """

    start: float = Field(ge=0, description="Gap start in seconds.")
    end: float = Field(description="Gap end in seconds.")

    @model_validator(mode="after")
    def _check_bounds(self) -> GapModel:
        if self.end <= self.start:
            raise ValueError("gap end must be greater than start")
        return self

    def to_gap(self) -> Gap:
        return Gap(start=self.start, end=self.end)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TranscribeRequest(BaseModel):
    """Body of POST /transcribe."""

    model_config = ConfigDict(populate_by_name=True)

    audio_path: str = Field(alias="audioPath", description="Path to the audio file on the server.")


class SubtitlesRequest(BaseModel):
    """Body of POST /subtitles."""

    model_config = ConfigDict(populate_by_name=True)

    audio_path: str = Field(alias="audioPath", description="Path to the audio file on the server.")
    topics: bool = Field(default=True, description="Run topic extraction.")
    fill_gaps: bool = Field(default=False, alias="fillGaps", description="Detect and fill silent gaps.")
    min_gap: float = Field(
        default=DEFAULT_MIN_GAP_SECONDS,
        gt=0,
        alias="minGap",
        description="Smallest silence, in seconds, treated as a gap.",
    )


class FillGapsRequest(BaseModel):
    """Body of POST /gaps/fill."""

    model_config = ConfigDict(populate_by_name=True)

    transcript: str = Field(description="Transcript text given to the model as context.")
    gaps: List[GapModel] = Field(description="Gaps to fill, in output order.")
    output_path: Optional[str] = Field(
        default=None,
        alias="outputPath",
        description="Optional server-side file to write the rendered subtitles to.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TranscribeResponse(BaseModel):
    transcription: TranscriptionModel = Field(description="The transcription result.")


class SubtitlesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subtitles: str = Field(description="Transcript segments rendered as subtitle blocks.")
    topics: List[TopicModel] = Field(description="Extracted topics (empty when skipped).")
    gap_fill: Optional[str] = Field(
        default=None,
        alias="gapFill",
        description="Gap-fill suggestions rendered as subtitle blocks, when requested.",
    )


class FillGapsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subtitles: str = Field(description="Suggestions rendered as subtitle blocks.")
    suggestions: List[SuggestionModel] = Field(description="Validated suggestions in time order.")
    output_path: Optional[str] = Field(
        default=None,
        alias="outputPath",
        description="Where the subtitles were written, if requested.",
    )


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
