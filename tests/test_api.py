"""Tests for the FastAPI relay API.

WHY: Validates the HTTP contract of every endpoint: happy paths, the
``500 {"error"}`` mapping of relay failures, request validation, and the
startup credential check.

HOW: The RelayClient dependency is overridden with a MagicMock whose
remote calls are AsyncMocks, so no test touches the network. Gap filling
uses a real GapFiller driven by a scripted ``complete`` mock. The
lifespan tests enter the TestClient as a context manager so startup runs.

RULES:
- All tests use the FastAPI TestClient (synchronous)
- The remote APIs are never called
- dependency_overrides are cleared after each test
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import fenced
from transcript_relay import __version__
from transcript_relay.api.models import parse_transcription
from transcript_relay.config import API_KEY_ENV
from transcript_relay.core.gaps import GapFiller
from transcript_relay.core.ir import Topic
from transcript_relay.errors import (
    AudioFileNotFoundError,
    MissingCredentialError,
    UpstreamError,
)
from transcript_relay.server.app import app, get_client


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_relay(sample_result):
    """A stand-in RelayClient with scripted async calls."""
    fake = MagicMock()
    fake.transcribe = AsyncMock(return_value=sample_result)
    fake.extract_topics = AsyncMock(return_value=[
        Topic(topic="Introduction", start=0.0, end=6.25),
        Topic(topic="Parsing", start=9.25, end=35.5),
    ])
    fake.complete = AsyncMock(side_effect=[
        fenced({"suggestions": [{"suggestion": "Moving on.", "start": 6.25, "end": 9.25}]}),
        fenced({"suggestions": [
            {"suggestion": "Parsing builds trees.", "start": 12.0, "end": 22.0},
            {"suggestion": "Lexing comes first.", "start": 22.0, "end": 32.0},
        ]}),
    ])
    fake.gap_filler = lambda: GapFiller(fake.complete, model="chat-test")
    return fake


@pytest.fixture
def client(fake_relay):
    app.dependency_overrides[get_client] = lambda: fake_relay
    app.state.limiter = None
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# POST /transcribe
# ---------------------------------------------------------------------------


class TestTranscribe:

    def test_returns_transcription(self, client, fake_relay):
        resp = client.post("/transcribe", json={"audioPath": "/data/talk.mp3"})

        assert resp.status_code == 200
        transcription = resp.json()["transcription"]
        assert transcription["language"] == "English"
        assert transcription["duration"] == 36.0
        assert len(transcription["segments"]) == 4
        assert transcription["segments"][0] == {
            "start": 0.0, "end": 2.5, "text": " Welcome back to the show.",
        }
        fake_relay.transcribe.assert_awaited_once_with("/data/talk.mp3")

    def test_missing_file_is_500_error(self, client, fake_relay):
        fake_relay.transcribe.side_effect = AudioFileNotFoundError("Audio file not found: /nope.mp3")

        resp = client.post("/transcribe", json={"audioPath": "/nope.mp3"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "Audio file not found: /nope.mp3"}

    def test_upstream_failure_is_500_error(self, client, fake_relay):
        fake_relay.transcribe.side_effect = UpstreamError("Transcription failed", status_code=503)

        resp = client.post("/transcribe", json={"audioPath": "/data/talk.mp3"})

        assert resp.status_code == 500
        assert "Transcription failed" in resp.json()["error"]

    def test_non_list_segments_is_json_500(self, client, fake_relay):
        fake_relay.transcribe.side_effect = lambda path: parse_transcription({"text": "hi", "segments": 5})

        resp = client.post("/transcribe", json={"audioPath": "/data/talk.mp3"})

        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("application/json")
        assert "segments" in resp.json()["error"]

    def test_unexpected_exception_is_json_500(self, fake_relay):
        app.dependency_overrides[get_client] = lambda: fake_relay
        fake_relay.transcribe.side_effect = TypeError("'int' object is not iterable")
        try:
            resp = TestClient(app, raise_server_exceptions=False).post(
                "/transcribe", json={"audioPath": "/data/talk.mp3"}
            )
        finally:
            app.dependency_overrides.clear()

        assert resp.status_code == 500
        assert resp.json() == {"error": "'int' object is not iterable"}

    def test_missing_audio_path_is_422(self, client):
        assert client.post("/transcribe", json={}).status_code == 422

    def test_accepts_snake_case_field(self, client):
        resp = client.post("/transcribe", json={"audio_path": "/data/talk.mp3"})
        assert resp.status_code == 200


# ---------------------------------------------------------------------------
# POST /subtitles
# ---------------------------------------------------------------------------


class TestSubtitles:

    def test_subtitles_and_topics(self, client, fake_relay):
        resp = client.post("/subtitles", json={"audioPath": "/data/talk.mp3"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["subtitles"].startswith("00:00:00,000 --> 00:00:02,500\n Welcome back to the show.")
        assert body["subtitles"].count(" --> ") == 4
        assert [t["topic"] for t in body["topics"]] == ["Introduction", "Parsing"]
        assert body["gapFill"] is None
        fake_relay.complete.assert_not_awaited()

    def test_without_topics(self, client, fake_relay):
        resp = client.post("/subtitles", json={"audioPath": "/data/talk.mp3", "topics": False})

        assert resp.status_code == 200
        assert resp.json()["topics"] == []
        fake_relay.extract_topics.assert_not_awaited()

    def test_with_gap_fill(self, client, fake_relay):
        resp = client.post("/subtitles", json={"audioPath": "/data/talk.mp3", "fillGaps": True})

        assert resp.status_code == 200
        gap_fill = resp.json()["gapFill"]
        assert gap_fill.count(" --> ") == 3
        assert "00:00:12,000 --> 00:00:22,000\nParsing builds trees." in gap_fill
        assert fake_relay.complete.await_count == 2

    def test_bad_min_gap_is_422(self, client):
        resp = client.post("/subtitles", json={"audioPath": "/a.mp3", "minGap": 0})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# POST /gaps/fill
# ---------------------------------------------------------------------------


class TestFillGaps:

    def test_fills_and_writes(self, client, tmp_path):
        out = tmp_path / "gaps.srt"
        resp = client.post("/gaps/fill", json={
            "transcript": "Welcome back. Let's start with parsing.",
            "gaps": [{"start": 6.25, "end": 9.25}, {"start": 12.0, "end": 32.0}],
            "outputPath": str(out),
        })

        assert resp.status_code == 200
        body = resp.json()
        assert body["outputPath"] == str(out)
        assert [s["suggestion"] for s in body["suggestions"]] == [
            "Moving on.", "Parsing builds trees.", "Lexing comes first.",
        ]
        assert out.read_text(encoding="utf-8") == body["subtitles"]

    def test_invalid_suggestions_are_500(self, client, fake_relay, tmp_path):
        fake_relay.complete.side_effect = [
            fenced({"suggestions": [{"suggestion": "Too long.", "start": 6.25, "end": 12.0}]}),
        ]
        out = tmp_path / "gaps.srt"

        resp = client.post("/gaps/fill", json={
            "transcript": "ctx",
            "gaps": [{"start": 6.25, "end": 9.25}],
            "outputPath": str(out),
        })

        assert resp.status_code == 500
        assert "outside" in resp.json()["error"]
        assert not out.exists()

    def test_reversed_gap_is_422(self, client, fake_relay):
        resp = client.post("/gaps/fill", json={
            "transcript": "ctx",
            "gaps": [{"start": 9.0, "end": 6.0}],
        })
        assert resp.status_code == 422
        fake_relay.complete.assert_not_awaited()

    def test_negative_gap_is_422(self, client):
        resp = client.post("/gaps/fill", json={
            "transcript": "ctx",
            "gaps": [{"start": -1.0, "end": 6.0}],
        })
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# GET /health and OpenAPI
# ---------------------------------------------------------------------------


class TestHealthCheck:

    def test_health_returns_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": __version__}


class TestOpenAPISchema:

    def test_all_endpoints_in_schema(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        assert {"/transcribe", "/subtitles", "/gaps/fill", "/health"} <= set(paths)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


class TestLifespan:

    def test_startup_fails_without_credential(self, monkeypatch):
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        with pytest.raises(MissingCredentialError):
            with TestClient(app):
                pass

    def test_startup_opens_client(self, monkeypatch):
        monkeypatch.setenv(API_KEY_ENV, "test-key")
        with TestClient(app) as c:
            assert c.get("/health").status_code == 200
            assert app.state.client is not None
        assert app.state.client is None
