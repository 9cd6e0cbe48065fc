"""Topic list formatter.

Writes ``{"topics": [{"topic", "start", "end"}, ...]}`` as indented JSON,
the same shape the chat model is asked to return, so the file can be fed
back through core.payload.parse_topics.
"""

from __future__ import annotations

import json
from typing import List

from transcript_relay.core.ir import Transcript
from transcript_relay.formatters.base import BaseFormatter, FormatterOutput


class TopicsFormatter(BaseFormatter):

    @property
    def name(self) -> str:
        return "Topics JSON"

    def format(self, transcript: Transcript) -> List[FormatterOutput]:
        payload = {"topics": [t.to_dict() for t in transcript.topics]}
        return [
            FormatterOutput(
                suffix="-topics.json",
                content=json.dumps(payload, indent=2, ensure_ascii=False) + "\n",
                media_type="application/json",
            )
        ]
