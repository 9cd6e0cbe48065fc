"""Async HTTP client for the transcription and chat-completion endpoints.

WHY: The relay needs to upload audio for transcription, ask a chat model
for topics, and ask it for gap filler. This module keeps every HTTP
detail (auth, multipart form, timeouts, retries, error mapping) behind
one client class so the pipeline, server, and CLI don't need to know
them.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. RelayClient is an
async context manager: enter it to get an authenticated client, exit
to close the connection pool. Settings (credential, models, timeout,
retry budget) are passed in explicitly. Each call is wrapped in a
bounded wait; transport errors, timeouts and non-2xx replies are mapped
onto the relay's exception taxonomy.

RULES:
- Always use the async context manager (async with RelayClient(settings) as client:)
- Every outbound call is bounded by settings.request_timeout
- transcribe() and extract_topics() retry transient failures with
  exponential backoff (1s initial, 2x factor, 8s max)
- Gap filling is never retried: it writes to an output sink
- One client may serve many concurrent requests; it holds no per-request state
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any, List, Optional, TypeVar

import httpx

from transcript_relay.api.models import parse_chat_content, parse_transcription
from transcript_relay.config import Settings
from transcript_relay.core.gaps import GapFiller
from transcript_relay.core.ir import Gap, Topic, TranscriptionResult
from transcript_relay.core.payload import parse_topics, unwrap_json_payload
from transcript_relay.errors import (
    AudioFileNotFoundError,
    MalformedResponseError,
    UpstreamError,
    UpstreamTimeoutError,
)
from transcript_relay.prompts import ChatRequest, load_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_RETRY_INITIAL_DELAY_S = 1.0
_RETRY_BACKOFF_FACTOR = 2.0
_RETRY_MAX_DELAY_S = 8.0

_CONNECT_TIMEOUT_S = 30.0

TRANSCRIPTION_RESPONSE_FORMAT = "verbose_json"
TRANSCRIPTION_TEMPERATURE = "0.0"


class RelayClient:
    """Async client for the OpenAI-compatible transcription and chat APIs.

    WHY: Provides a typed interface for the three remote operations the
    relay performs: transcribe, extract topics, and fill gaps.

    HOW: Wraps httpx.AsyncClient with Bearer token auth from Settings.
    ``transport`` lets tests substitute httpx.MockTransport;
    ``retry_delay`` lets them skip the backoff sleeps.

    RULES:
    - Use as: async with RelayClient(settings) as client: ...
    - The credential comes from Settings only, never from the environment
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay: float = _RETRY_INITIAL_DELAY_S,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._retry_delay = retry_delay
        self._client: httpx.AsyncClient | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def __aenter__(self) -> RelayClient:
        self._client = httpx.AsyncClient(
            base_url=self._settings.base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {self._settings.api_key}"},
            timeout=httpx.Timeout(self._settings.request_timeout, connect=_CONNECT_TIMEOUT_S),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "RelayClient must be used as an async context manager: "
                "async with RelayClient(settings) as client: ..."
            )
        return self._client

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST with a bounded wait, mapping failures onto relay errors."""
        client = self._ensure_client()
        timeout = self._settings.request_timeout
        try:
            resp = await asyncio.wait_for(client.post(url, **kwargs), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise UpstreamTimeoutError(
                f"Request to {url} timed out after {timeout:.0f}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Request to {url} failed: {exc}") from exc

        if resp.status_code not in (200, 201):
            raise UpstreamError(
                f"Request to {url} failed with status {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )
        return resp

    async def _with_retries(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run ``call``, retrying transient UpstreamErrors within the retry budget."""
        delay = self._retry_delay
        attempt = 0
        while True:
            try:
                return await call()
            except UpstreamError as exc:
                if not exc.transient or attempt >= self._settings.max_retries:
                    raise
                attempt += 1
                logger.warning(
                    "%s failed (%s); retry %d/%d in %.1fs",
                    operation, exc, attempt, self._settings.max_retries, delay,
                )
                await asyncio.sleep(delay)
                delay = min(delay * _RETRY_BACKOFF_FACTOR, _RETRY_MAX_DELAY_S)

    # ------------------------------------------------------------------
    # Transcription
    # ------------------------------------------------------------------

    async def transcribe(self, audio_path: str | Path) -> TranscriptionResult:
        """Upload an audio file and return its transcription.

        WHY: Every relay request starts from a transcription; segments feed
        the subtitle renderer and the text feeds topic extraction.

        HOW: Sends a multipart/form-data POST to /audio/transcriptions with
        the file, model, language, verbose_json format, and temperature 0.
        The file is reopened on each retry attempt.

        RULES:
        - Raises AudioFileNotFoundError if the path is not a readable file
        - Raises UpstreamError on non-2xx or a response without "text"
        - Raises UpstreamTimeoutError when the bounded wait expires

        Args:
            audio_path: Path to the audio/video file.

        Returns:
            TranscriptionResult with text and timed segments.
        """
        path = Path(audio_path)
        if not path.is_file() or not os.access(path, os.R_OK):
            raise AudioFileNotFoundError(f"Audio file not found or unreadable: {path}")

        form = {
            "model": self._settings.transcription_model,
            "language": self._settings.language,
            "response_format": TRANSCRIPTION_RESPONSE_FORMAT,
            "temperature": TRANSCRIPTION_TEMPERATURE,
        }

        async def _attempt() -> TranscriptionResult:
            try:
                f = open(path, "rb")
            except OSError as exc:
                raise AudioFileNotFoundError(f"Cannot read audio file {path}: {exc}") from exc
            with f:
                resp = await self._post(
                    "/audio/transcriptions",
                    data=form,
                    files={"file": (path.name, f)},
                )
            try:
                body = resp.json()
            except ValueError as exc:
                raise UpstreamError("Transcription failed: response is not JSON") from exc
            return parse_transcription(body)

        logger.info("Transcribing %s with %s", path.name, self._settings.transcription_model)
        result = await self._with_retries("Transcription of {}".format(path.name), _attempt)
        logger.info("Transcribed %s: %d segments", path.name, len(result.segments))
        return result

    # ------------------------------------------------------------------
    # Chat completion
    # ------------------------------------------------------------------

    async def complete(self, request: ChatRequest) -> str:
        """Send one chat-completion request and return the reply text.

        RULES:
        - Not retried here; callers choose whether to wrap in retries
        - Raises MalformedResponseError when the body lacks message content
        """
        resp = await self._post("/chat/completions", json=request.to_payload())
        try:
            body = resp.json()
        except ValueError as exc:
            raise MalformedResponseError("Chat response is not JSON") from exc
        return parse_chat_content(body)

    async def extract_topics(self, result: TranscriptionResult) -> List[Topic]:
        """Segment a transcription into topics via the chat model.

        HOW: Renders the ``topics`` prompt with the serialized transcription,
        sends it (with retries for transient failures), strips a single
        code fence from the reply, and validates the topics shape.

        RULES:
        - Raises MalformedResponseError if the reply is not the expected JSON
        - Malformed replies are not retried; only transient upstream errors are
        """
        prompt = load_prompt("topics", transcript=json.dumps(result.to_dict()))
        request = ChatRequest.from_prompt(self._settings.chat_model, prompt)

        reply = await self._with_retries("Topic extraction", lambda: self.complete(request))
        topics = parse_topics(unwrap_json_payload(reply))
        logger.info("Extracted %d topics (%s)", len(topics), request.prompt_id)
        return topics

    # ------------------------------------------------------------------
    # Gap filling
    # ------------------------------------------------------------------

    def gap_filler(self) -> GapFiller:
        """A GapFiller bound to this client's chat endpoint (no retries)."""
        return GapFiller(self.complete, model=self._settings.chat_model)

    async def fill_gaps(
        self,
        transcript_context: str,
        gaps: Sequence[Gap],
        output_path: Optional[Path] = None,
    ) -> str:
        """Generate filler for ``gaps`` and return the rendered subtitle blocks."""
        return await self.gap_filler().fill_gaps(transcript_context, gaps, output_path)
