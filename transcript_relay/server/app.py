"""FastAPI application exposing the relay over HTTP.

WHY: Front-ends and automation tools need an HTTP entry point that turns
an audio path into a transcription, subtitle blocks, topics, and gap
filler. FastAPI provides request validation and OpenAPI docs for free.

HOW: The lifespan loads Settings (failing fast without a credential) and
opens one shared RelayClient for the process. Endpoints fetch the client
through a dependency so tests can override it. Every failure in the
request chain, relay or not, is turned into ``500 {"error": message}`` by
the exception handlers.

RULES:
- POST /transcribe is the primary endpoint; its contract is fixed:
  {"audioPath"} -> 200 {"transcription"} | 500 {"error"}
- At most settings.max_concurrent_requests transcriptions are in flight;
  additional requests wait for a slot
- No partial results: a request either fully succeeds or returns 500
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from transcript_relay import __version__
from transcript_relay.api.client import RelayClient
from transcript_relay.config import (
    DEFAULT_HOST,
    DEFAULT_MAX_CONCURRENT_REQUESTS,
    DEFAULT_PORT,
    load_settings,
)
from transcript_relay.core.subtitles import render_segments, render_suggestions
from transcript_relay.errors import RelayError
from transcript_relay.pipeline import run_pipeline
from transcript_relay.server.models import (
    ErrorResponse,
    FillGapsRequest,
    FillGapsResponse,
    HealthResponse,
    SubtitlesRequest,
    SubtitlesResponse,
    SuggestionModel,
    TopicModel,
    TranscribeRequest,
    TranscribeResponse,
    TranscriptionModel,
)

logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {500: {"model": ErrorResponse, "description": "Relay or upstream failure"}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings and hold one RelayClient open for the process lifetime.

    Raises MissingCredentialError before the server accepts any traffic
    when the API key is absent.
    """
    settings = load_settings()
    async with RelayClient(settings) as client:
        app.state.client = client
        app.state.limiter = asyncio.Semaphore(settings.max_concurrent_requests)
        logger.info(
            "Relay ready: %s (transcription=%s, chat=%s, max in flight=%d)",
            settings.base_url,
            settings.transcription_model,
            settings.chat_model,
            settings.max_concurrent_requests,
        )
        yield
    app.state.client = None


app = FastAPI(
    lifespan=lifespan,
    title="Transcript Relay API",
    description=(
        "Relays audio to a speech-transcription API and transcripts to a "
        "chat model for topic segmentation and gap filling, and renders "
        "the results as subtitle-timed text blocks."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Dependencies and error handling
# ---------------------------------------------------------------------------


def get_client(request: Request) -> RelayClient:
    """The process-wide RelayClient opened by the lifespan."""
    client = getattr(request.app.state, "client", None)
    if client is None:
        raise RuntimeError("RelayClient is not initialised; is the lifespan running?")
    return client


async def get_limiter(request: Request) -> asyncio.Semaphore:
    """Semaphore capping in-flight transcriptions."""
    limiter = getattr(request.app.state, "limiter", None)
    if limiter is None:
        limiter = asyncio.Semaphore(DEFAULT_MAX_CONCURRENT_REQUESTS)
        request.app.state.limiter = limiter
    return limiter


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Any other failure in the request chain gets the same error body."""
    logger.error("%s %s failed unexpectedly: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})


# ---------------------------------------------------------------------------
# Endpoints: Transcription
# ---------------------------------------------------------------------------


@app.post(
    "/transcribe",
    response_model=TranscribeResponse,
    tags=["transcription"],
    summary="Transcribe an audio file",
    description="Send the audio file at audioPath to the transcription API and return the result.",
    responses=_ERROR_RESPONSES,
)
async def transcribe(
    body: TranscribeRequest,
    client: RelayClient = Depends(get_client),
    limiter: asyncio.Semaphore = Depends(get_limiter),
) -> TranscribeResponse:
    async with limiter:
        result = await client.transcribe(body.audio_path)
    return TranscribeResponse(transcription=TranscriptionModel.from_result(result))


@app.post(
    "/subtitles",
    response_model=SubtitlesResponse,
    tags=["transcription"],
    summary="Transcribe and render subtitles",
    description=(
        "Transcribe the audio file, render its segments as subtitle blocks, "
        "and optionally extract topics and fill silent gaps."
    ),
    responses=_ERROR_RESPONSES,
)
async def subtitles(
    body: SubtitlesRequest,
    client: RelayClient = Depends(get_client),
    limiter: asyncio.Semaphore = Depends(get_limiter),
) -> SubtitlesResponse:
    async with limiter:
        transcript = await run_pipeline(
            client,
            body.audio_path,
            topics=body.topics,
            fill_gaps=body.fill_gaps,
            min_gap=body.min_gap,
        )
    gap_fill = render_suggestions(transcript.suggestions) if body.fill_gaps else None
    return SubtitlesResponse(
        subtitles=render_segments(transcript.result.segments),
        topics=[TopicModel.from_topic(t) for t in transcript.topics],
        gap_fill=gap_fill,
    )


# ---------------------------------------------------------------------------
# Endpoints: Gap filling
# ---------------------------------------------------------------------------


@app.post(
    "/gaps/fill",
    response_model=FillGapsResponse,
    tags=["gaps"],
    summary="Generate filler for silent gaps",
    description=(
        "Ask the chat model for filler content for each gap, validate that the "
        "suggestions tile their gap, and render them as subtitle blocks. "
        "This call is never retried."
    ),
    responses=_ERROR_RESPONSES,
)
async def fill_gaps(
    body: FillGapsRequest,
    client: RelayClient = Depends(get_client),
) -> FillGapsResponse:
    output_path: Optional[Path] = Path(body.output_path) if body.output_path else None
    filler = client.gap_filler()
    rendered = await filler.fill_gaps(
        body.transcript,
        [g.to_gap() for g in body.gaps],
        output_path=output_path,
    )
    return FillGapsResponse(
        subtitles=rendered,
        suggestions=[SuggestionModel.from_suggestion(s) for s in filler.last_suggestions],
        output_path=str(output_path) if output_path else None,
    )


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the transcript-relay-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host=DEFAULT_HOST, port=DEFAULT_PORT)
