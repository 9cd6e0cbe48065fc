"""Configuration constants, .env loading, and the Settings object.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Model identifiers, the API base URL, supported
audio extensions, and timeouts are plain data, not buried in logic.

HOW: python-dotenv loads the .env file on import. Constants are defined
at module level and can be overridden via environment variables.
load_settings() snapshots them into an immutable Settings object that
is passed explicitly into the client layer; nothing reads the
credential from a global at call time.

RULES:
- The API key is loaded from .env / the environment, never hardcoded
- A missing or blank key raises MissingCredentialError (fatal at startup)
- Settings is frozen; build a new one to change values
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from transcript_relay.errors import MissingCredentialError

# Load .env from the project root (where the process is started from)
load_dotenv()

# ---------------------------------------------------------------------------
# Remote API defaults (OpenAI-compatible endpoints, Groq by default)
# ---------------------------------------------------------------------------

API_KEY_ENV = "GROQ_API_KEY"

DEFAULT_BASE_URL = os.getenv("RELAY_BASE_URL", "https://api.groq.com/openai/v1")
TRANSCRIPTION_MODEL = os.getenv("RELAY_TRANSCRIPTION_MODEL", "whisper-large-v3-turbo")
CHAT_MODEL = os.getenv("RELAY_CHAT_MODEL", "llama-3.3-70b-versatile")
TRANSCRIPTION_LANGUAGE = os.getenv("RELAY_LANGUAGE", "en")

DEFAULT_REQUEST_TIMEOUT_S = float(os.getenv("RELAY_REQUEST_TIMEOUT", "120"))
DEFAULT_MAX_RETRIES = int(os.getenv("RELAY_MAX_RETRIES", "2"))
DEFAULT_MAX_CONCURRENT_REQUESTS = int(os.getenv("RELAY_MAX_CONCURRENT_REQUESTS", "4"))

DEFAULT_HOST = os.getenv("RELAY_HOST", "0.0.0.0")
DEFAULT_PORT = int(os.getenv("RELAY_PORT", "5000"))

# ---------------------------------------------------------------------------
# Supported audio/video file extensions
# ---------------------------------------------------------------------------

SUPPORTED_AUDIO_FORMATS: set[str] = {
    ".flac", ".m4a", ".mp3", ".mp4", ".mpeg", ".mpga",
    ".ogg", ".opus", ".wav", ".webm",
}
"""Extensions accepted by the transcription endpoint (lowercase, with dot)."""


@dataclass(frozen=True)
class Settings:
    """Process-lifetime configuration for the client layer.

    RULES:
    - api_key is required and non-empty
    - request_timeout bounds every outbound call, in seconds
    - max_retries applies to idempotent calls only (never gap filling)
    - max_concurrent_requests caps in-flight transcriptions in the server
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    transcription_model: str = TRANSCRIPTION_MODEL
    chat_model: str = CHAT_MODEL
    language: str = TRANSCRIPTION_LANGUAGE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_S
    max_retries: int = DEFAULT_MAX_RETRIES
    max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS


def load_api_key() -> str:
    """Load the API key from the environment.

    WHY: The bearer token is required for every remote call. Loading it
    from the environment (via .env) keeps it out of source code.

    RULES:
    - Raises MissingCredentialError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv(API_KEY_ENV, "").strip()
    if not key:
        raise MissingCredentialError(
            "API key not configured. "
            "Add {} to the .env file or the environment.".format(API_KEY_ENV)
        )
    return key


def load_settings() -> Settings:
    """Build Settings from the environment, failing fast without a credential."""
    return Settings(api_key=load_api_key())
