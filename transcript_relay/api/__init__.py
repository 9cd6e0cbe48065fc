"""Client package — async HTTP interface to the transcription and chat APIs.

WHY: The relay forwards audio and transcripts to externally-owned model
APIs. This package encapsulates all of that communication behind one
async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. RelayClient provides
transcribe, complete, extract_topics, and fill_gaps. Response bodies are
parsed into IR dataclasses by models.py.

RULES:
- All HTTP calls go through RelayClient (no direct httpx usage elsewhere)
- Authentication is via Bearer token from Settings
"""

from transcript_relay.api.client import RelayClient

__all__ = ["RelayClient"]
