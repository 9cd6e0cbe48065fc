"""Core formatting, validation, and intermediate representation modules.

WHY: The core package holds the deterministic part of the relay — the IR
dataclasses, timestamp formatting, subtitle rendering, payload
unwrapping, and gap-fill validation. None of it talks to the network,
so all of it is testable without a model API.

HOW: ir.py defines the data structures, timecode.py and subtitles.py
render them, payload.py turns chat replies into IR objects, and gaps.py
detects gaps and orchestrates filling them through an injected
completion callable.

RULES:
- No HTTP here; remote calls are injected (see gaps.GapFiller)
- IR dataclasses are the contract — change with care
"""
