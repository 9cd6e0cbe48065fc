"""Shared test fixtures for the transcript_relay test suite.

WHY: Several test modules need the same sample transcription response,
the same Settings, and the same way of faking the remote APIs.
Centralizing them here keeps the modules short and the data consistent.

HOW: Module-level constants hold a verbose_json transcription body and
its expected segments. Fixtures expose copies, a test Settings object,
and a fake audio file. Helpers build chat-completion replies and
httpx.MockTransport-backed clients.

RULES:
- No test talks to a real API; all HTTP goes through MockTransport
- The API key is a fixed dummy value; nothing reads the real environment
- Retries run with zero delay so tests never sleep
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from transcript_relay.api.client import RelayClient
from transcript_relay.config import Settings
from transcript_relay.core.ir import TranscriptionResult, TranscriptSegment


# ---------------------------------------------------------------------------
# Sample transcription (verbose_json shape)
# ---------------------------------------------------------------------------

SAMPLE_SEGMENTS: List[Dict[str, Any]] = [
    {"id": 0, "start": 0.0,  "end": 2.5,  "text": " Welcome back to the show.",       "avg_logprob": -0.21},
    {"id": 1, "start": 2.5,  "end": 6.25, "text": " Today we talk about compilers.",  "avg_logprob": -0.18},
    {"id": 2, "start": 9.25, "end": 12.0, "text": " Let's start with parsing.",       "avg_logprob": -0.25},
    {"id": 3, "start": 32.0, "end": 35.5, "text": " That's all for parsing.",         "avg_logprob": -0.30},
]

SAMPLE_TRANSCRIPTION: Dict[str, Any] = {
    "task": "transcribe",
    "language": "English",
    "duration": 36.0,
    "text": " Welcome back to the show. Today we talk about compilers. "
            "Let's start with parsing. That's all for parsing.",
    "segments": SAMPLE_SEGMENTS,
}

TEST_SETTINGS = Settings(
    api_key="test-key",
    base_url="https://relay.test/v1",
    max_retries=2,
    request_timeout=5.0,
)


@pytest.fixture
def settings():
    return TEST_SETTINGS


@pytest.fixture
def sample_transcription_body():
    """Full verbose_json transcription response dict."""
    return json.loads(json.dumps(SAMPLE_TRANSCRIPTION))


@pytest.fixture
def sample_result():
    """TranscriptionResult matching SAMPLE_TRANSCRIPTION."""
    return TranscriptionResult(
        text=SAMPLE_TRANSCRIPTION["text"],
        segments=[
            TranscriptSegment(start=s["start"], end=s["end"], text=s["text"])
            for s in SAMPLE_SEGMENTS
        ],
        language="English",
        duration=36.0,
    )


@pytest.fixture
def audio_file(tmp_path):
    """A small fake audio file on disk."""
    path = tmp_path / "talk.mp3"
    path.write_bytes(b"ID3 fake audio payload")
    return path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def chat_response(content: str, status_code: int = 200) -> httpx.Response:
    """A chat-completion response whose first choice carries ``content``."""
    return httpx.Response(
        status_code,
        json={
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "choices": [
                {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
            ],
        },
    )


def fenced(payload: Any) -> str:
    """Wrap a JSON payload in a ```json code fence, the way chat models do."""
    return "```json\n{}\n```".format(json.dumps(payload, indent=2))


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    settings: Settings = TEST_SETTINGS,
) -> RelayClient:
    """A RelayClient whose HTTP calls go to ``handler``; retries don't sleep."""
    return RelayClient(settings, transport=httpx.MockTransport(handler), retry_delay=0)
