"""Transcript Relay — transcription, topic, and gap-fill relay for subtitle work.

WHY: Speech-to-text and language models are hosted elsewhere; editors
need their output as subtitle-timed text. This package forwards audio to
a transcription API, forwards the transcript to a chat model for topic
segmentation and gap filling, and renders the result as subtitle blocks.

HOW: Three layers — the client (api/) talks to the remote endpoints,
the core (core/) validates and renders, and the outer surfaces (cli.py,
server/) wire them into a pipeline. Output formats are pluggable
(formatters/).

RULES:
- All formatters consume the same Transcript IR
- The core never performs network I/O
- Configuration is passed explicitly; the credential is never global state
"""

__version__ = "0.1.0"
