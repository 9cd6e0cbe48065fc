"""Subtitle timestamp formatting and parsing (HH:MM:SS,mmm).

WHY: Every rendered block carries two timestamps, and the gap-fill
validator compares times at millisecond precision. Both directions of
the conversion live here so they stay exact inverses.

HOW: format_timestamp() truncates to whole milliseconds, then splits
them into hours, minutes, seconds and millis with integer division.
parse_timestamp() reads the same shape back into float seconds.

RULES:
- Truncate, never round: 1.9999 -> "00:00:01,999"
- Hours are NOT wrapped at 24: 90000 -> "25:00:00,000"
- Hours of 100 or more widen the field instead of being cut
- Negative, NaN, infinite, and non-numeric inputs raise InvalidInputError
"""

from __future__ import annotations

import math
import re

from transcript_relay.errors import InvalidInputError

_TIMESTAMP_RE = re.compile(r"^(\d{2,}):([0-5]\d):([0-5]\d),(\d{3})$")


def format_timestamp(seconds: float) -> str:
    """Convert non-negative seconds to an ``HH:MM:SS,mmm`` subtitle timestamp.

    Args:
        seconds: Offset from the start of the audio, in seconds.

    Returns:
        The zero-padded timestamp string.

    Raises:
        InvalidInputError: seconds is negative, NaN, infinite, or not a number.
    """
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise InvalidInputError("Timestamp must be a number, got {!r}".format(seconds))
    if not math.isfinite(seconds):
        raise InvalidInputError("Timestamp must be finite, got {!r}".format(seconds))
    if seconds < 0:
        raise InvalidInputError("Timestamp must be non-negative, got {!r}".format(seconds))

    total_ms = math.floor(seconds * 1000)
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


def parse_timestamp(text: str) -> float:
    """Parse an ``HH:MM:SS,mmm`` timestamp back into seconds.

    The result is rounded to whole milliseconds.
    """
    match = _TIMESTAMP_RE.match(text.strip())
    if match is None:
        raise InvalidInputError("Not a subtitle timestamp: {!r}".format(text))
    hours, minutes, secs, millis = (int(g) for g in match.groups())
    total_ms = ((hours * 60 + minutes) * 60 + secs) * 1000 + millis
    return round(total_ms / 1000, 3)
