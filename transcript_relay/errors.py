"""Exception taxonomy for the relay.

WHY: The HTTP boundary, the CLI, and the retry loop each need to tell
failures apart: a bad audio path is not retried, a 503 from the model API
is, and a model reply that isn't valid JSON is neither. Typed exceptions
make those decisions explicit instead of string-matching messages.

HOW: Every relay failure derives from RelayError so the HTTP layer can
catch the whole family in one handler. Where a builtin already carries
the right meaning (FileNotFoundError, TimeoutError, ValueError), the
relay exception also inherits from it so generic callers keep working.

RULES:
- Raise the most specific subclass; never raise RelayError directly
- UpstreamError carries the HTTP status code when one was received
- MissingCredentialError is a startup failure, never a request failure
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for every failure raised by transcript_relay."""


class InvalidInputError(RelayError, ValueError):
    """A caller-supplied value is out of range (negative or non-finite time, bad timestamp text)."""


class AudioFileNotFoundError(RelayError, FileNotFoundError):
    """The audio path does not resolve to a readable file."""


class UpstreamError(RelayError):
    """A remote endpoint returned a non-success response or could not be reached.

    RULES:
    - status_code is None for transport failures (no response received)
    - transient is True for 429/5xx and transport failures; only those are
      eligible for retry
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    @property
    def transient(self) -> bool:
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class UpstreamTimeoutError(UpstreamError, TimeoutError):
    """An outbound call exceeded its bounded wait."""


class MalformedResponseError(RelayError):
    """A remote reply was well-formed HTTP but its payload could not be used."""


class MissingCredentialError(RelayError):
    """The API credential is absent; the process must not serve traffic."""
