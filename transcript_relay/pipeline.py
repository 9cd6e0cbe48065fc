"""End-to-end relay pipeline shared by the CLI and the HTTP server.

WHY: Both surfaces run the same chain — transcribe, extract topics,
detect and fill gaps — and must fail the same way. One function keeps
them from drifting apart.

HOW: Runs each step sequentially against a RelayClient and collects the
results into a Transcript IR for the formatters.

RULES:
- All-or-nothing: any step failing propagates; no partial Transcript
- Topic extraction and gap filling are optional
- The transcript text is the context given to the gap filler
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from transcript_relay.api.client import RelayClient
from transcript_relay.core.gaps import DEFAULT_MIN_GAP_SECONDS, detect_gaps
from transcript_relay.core.ir import Suggestion, Topic, Transcript

logger = logging.getLogger(__name__)


async def run_pipeline(
    client: RelayClient,
    audio_path: str | Path,
    topics: bool = True,
    fill_gaps: bool = False,
    min_gap: float = DEFAULT_MIN_GAP_SECONDS,
) -> Transcript:
    """Transcribe ``audio_path`` and enrich the result.

    Args:
        client: An entered RelayClient.
        audio_path: Audio/video file to transcribe.
        topics: Run topic extraction on the transcription.
        fill_gaps: Detect silent gaps and ask the model for filler.
        min_gap: Smallest silence, in seconds, treated as a gap.

    Returns:
        Transcript with the transcription, topics, and suggestions.
    """
    path = Path(audio_path)
    result = await client.transcribe(path)

    topic_list: List[Topic] = []
    if topics:
        topic_list = await client.extract_topics(result)

    suggestions: List[Suggestion] = []
    if fill_gaps:
        gaps = detect_gaps(result.segments, min_gap=min_gap, duration=result.duration)
        logger.info("Detected %d gaps of %.1fs or more in %s", len(gaps), min_gap, path.name)
        if gaps:
            filler = client.gap_filler()
            await filler.fill_gaps(result.text, gaps)
            suggestions = filler.last_suggestions

    return Transcript(
        result=result,
        source_filename=path.name,
        topics=topic_list,
        suggestions=suggestions,
    )
