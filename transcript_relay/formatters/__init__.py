"""Output formatter registry — pluggable format hub.

WHY: The CLI and the server need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["subtitles"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from transcript_relay.formatters.plain_text import PlainTextFormatter
from transcript_relay.formatters.subtitles import GapFillFormatter, SubtitleFormatter
from transcript_relay.formatters.topics import TopicsFormatter

if TYPE_CHECKING:
    from transcript_relay.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "subtitles": SubtitleFormatter,
    "gap_fill": GapFillFormatter,
    "topics": TopicsFormatter,
    "plain_text": PlainTextFormatter,
}
