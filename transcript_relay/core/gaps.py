"""Gap detection, suggestion validation, and gap-fill orchestration.

WHY: Silent stretches in a transcript leave holes in the subtitle track.
The relay asks the chat model to propose filler for each hole, but the
model's timing can't be trusted: the orchestrator must check that what
comes back actually tiles the gap before anything is rendered or written.

HOW: detect_gaps() walks segments in time order and reports uncovered
intervals. GapFiller sends one chat request per gap through an injected
``complete`` callable (the client layer), unwraps and validates each
reply with validate_suggestions(), renders all suggestions with the
subtitle renderer, and optionally writes the result to a file.

RULES:
- A gap longer than LONG_GAP_SECONDS needs 2+ contiguous suggestions
- A gap of LONG_GAP_SECONDS or less needs exactly one suggestion
- Suggestions must lie strictly inside their gap, with no tolerance
- They must tile it: no overlaps, no holes, first starts at gap.start,
  last ends at gap.end (1 ms tolerance for these joins only)
- All-or-nothing: any invalid reply fails the whole call and nothing is
  written to the output path
- Gap filling is never retried here; the caller decides
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from pathlib import Path
from typing import List, Optional

from transcript_relay.config import CHAT_MODEL
from transcript_relay.core.ir import Gap, Suggestion, TranscriptSegment
from transcript_relay.core.payload import parse_suggestions, unwrap_json_payload
from transcript_relay.core.subtitles import render_suggestions
from transcript_relay.errors import InvalidInputError, MalformedResponseError
from transcript_relay.prompts import ChatRequest, load_prompt

logger = logging.getLogger(__name__)

LONG_GAP_SECONDS = 5.0
"""Gaps longer than this are split into several time-distributed suggestions."""

DEFAULT_MIN_GAP_SECONDS = 1.0

_TOLERANCE_S = 0.001

CompleteFn = Callable[[ChatRequest], Awaitable[str]]


# ---------------------------------------------------------------------------
# Gap detection
# ---------------------------------------------------------------------------


def detect_gaps(
    segments: Iterable[TranscriptSegment],
    min_gap: float = DEFAULT_MIN_GAP_SECONDS,
    duration: Optional[float] = None,
) -> List[Gap]:
    """Find timeline intervals of at least ``min_gap`` seconds no segment covers.

    WHY: Gap filling needs the holes; the transcription API only reports
    where speech is.

    HOW: Sort segments by start, sweep a coverage cursor from 0, and emit
    a Gap whenever the next segment starts at least ``min_gap`` after it.
    Overlapping segments extend the cursor instead of producing gaps.

    RULES:
    - A leading gap from 0.0 is reported like any other
    - A trailing gap is reported only when ``duration`` is known
    - min_gap must be positive
    """
    if min_gap <= 0:
        raise InvalidInputError("min_gap must be positive, got {!r}".format(min_gap))

    gaps: List[Gap] = []
    cursor = 0.0
    for seg in sorted(segments, key=lambda s: s.start):
        if seg.start - cursor >= min_gap:
            gaps.append(Gap(start=cursor, end=seg.start))
        cursor = max(cursor, seg.end)

    if duration is not None and duration - cursor >= min_gap:
        gaps.append(Gap(start=cursor, end=duration))
    return gaps


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_suggestions(gap: Gap, suggestions: Sequence[Suggestion]) -> List[Suggestion]:
    """Check that ``suggestions`` tile ``gap`` and return them in time order.

    Raises:
        MalformedResponseError: on any bounds, ordering, coverage, or count
            violation. The message names the gap.
    """
    label = "gap {:.3f}-{:.3f}s".format(gap.start, gap.end)
    if not suggestions:
        raise MalformedResponseError("No suggestions returned for {}".format(label))

    ordered = sorted(suggestions, key=lambda s: s.start)
    for s in ordered:
        if s.start >= s.end:
            raise MalformedResponseError(
                "Suggestion {:.3f}-{:.3f}s for {} has start >= end".format(s.start, s.end, label)
            )
        if s.start < gap.start or s.end > gap.end:
            raise MalformedResponseError(
                "Suggestion {:.3f}-{:.3f}s falls outside {}".format(s.start, s.end, label)
            )

    if abs(ordered[0].start - gap.start) > _TOLERANCE_S:
        raise MalformedResponseError("Suggestions for {} do not start at the gap start".format(label))
    if abs(ordered[-1].end - gap.end) > _TOLERANCE_S:
        raise MalformedResponseError("Suggestions for {} do not end at the gap end".format(label))

    for prev, cur in zip(ordered, ordered[1:]):
        if cur.start < prev.end - _TOLERANCE_S:
            raise MalformedResponseError(
                "Suggestions for {} overlap at {:.3f}s".format(label, cur.start)
            )
        if cur.start > prev.end + _TOLERANCE_S:
            raise MalformedResponseError(
                "Suggestions for {} leave a hole at {:.3f}-{:.3f}s".format(label, prev.end, cur.start)
            )

    if gap.duration > LONG_GAP_SECONDS and len(ordered) < 2:
        raise MalformedResponseError(
            "Expected two or more suggestions for {} ({:.1f}s), got {}".format(
                label, gap.duration, len(ordered)
            )
        )
    if gap.duration <= LONG_GAP_SECONDS and len(ordered) != 1:
        raise MalformedResponseError(
            "Expected exactly one suggestion for {} ({:.1f}s), got {}".format(
                label, gap.duration, len(ordered)
            )
        )
    return ordered


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def build_gap_request(
    transcript_context: str,
    gap: Gap,
    model: str = CHAT_MODEL,
) -> ChatRequest:
    """Build the chat request asking for filler content for one gap."""
    rule_key = "long" if gap.duration > LONG_GAP_SECONDS else "short"
    bounds = {
        "gap_start": "{:.3f}".format(gap.start),
        "gap_end": "{:.3f}".format(gap.end),
        "gap_duration": "{:.3f}".format(gap.duration),
        "long_gap_seconds": "{:g}".format(LONG_GAP_SECONDS),
    }
    split_rule = load_prompt("gap_fill.split_rules.{}".format(rule_key), **bounds).text
    prompt = load_prompt(
        "gap_fill",
        transcript=transcript_context,
        split_rule=split_rule,
        **bounds
    )
    return ChatRequest.from_prompt(model, prompt)


class GapFiller:
    """Ask the chat collaborator for gap filler and render the validated result.

    WHY: The request construction, reply validation, and rendering form one
    unit of business logic independent of how the chat API is reached.

    HOW: ``complete`` is any async callable taking a ChatRequest and
    returning the model's text reply (RelayClient.complete in production,
    an AsyncMock in tests). Gaps are processed in order, one request each.

    RULES:
    - Gaps must have start >= 0 and end > start
    - last_suggestions holds the validated suggestions of the latest call
    """

    def __init__(self, complete: CompleteFn, model: str = CHAT_MODEL) -> None:
        self._complete = complete
        self._model = model
        self.last_suggestions: List[Suggestion] = []

    async def fill_gaps(
        self,
        transcript_context: str,
        gaps: Iterable[Gap],
        output_path: Optional[Path] = None,
    ) -> str:
        """Generate, validate, and render filler for every gap.

        Args:
            transcript_context: Transcript text given to the model as context.
            gaps: Gaps in the order their blocks should be rendered.
            output_path: Optional file to write the rendered blocks to.

        Returns:
            The rendered subtitle blocks for all suggestions.
        """
        gaps = list(gaps)
        for gap in gaps:
            if gap.start < 0 or gap.end <= gap.start:
                raise InvalidInputError(
                    "Invalid gap {!r}: need 0 <= start < end".format(gap)
                )

        suggestions: List[Suggestion] = []
        for gap in gaps:
            request = build_gap_request(transcript_context, gap, self._model)
            logger.info(
                "Requesting gap fill for %.3f-%.3fs (%s)", gap.start, gap.end, request.prompt_id
            )
            reply = await self._complete(request)
            parsed = parse_suggestions(unwrap_json_payload(reply))
            suggestions.extend(validate_suggestions(gap, parsed))

        self.last_suggestions = suggestions
        rendered = render_suggestions(suggestions)

        if output_path is not None:
            output_path = Path(output_path)
            try:
                output_path.write_text(rendered, encoding="utf-8")
            except OSError as exc:
                raise InvalidInputError(
                    "Cannot write gap-fill output to {}: {}".format(output_path, exc)
                ) from exc
            logger.info("Wrote %d gap-fill blocks to %s", len(suggestions), output_path)
        return rendered
