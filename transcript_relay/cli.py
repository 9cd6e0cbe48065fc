"""Command-line interface for the transcript relay.

WHY: Users need a simple way to turn an audio file into subtitle blocks,
topics, and gap filler from the terminal, without running the server.

HOW: Uses argparse to accept an input file, output selection, and the
topic/gap-fill switches. Runs the shared async pipeline via
asyncio.run(). Status messages go to stderr; output files are saved next
to the source (or to --output-dir).

RULES:
- Positional argument: input audio/video file path
- Validates the file and its extension before any API call
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-subtitles-2.srt)
- Status output goes to stderr (not stdout)
- Exit code 1 on any relay failure, 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from transcript_relay.api.client import RelayClient
from transcript_relay.config import SUPPORTED_AUDIO_FORMATS, load_settings
from transcript_relay.core.gaps import DEFAULT_MIN_GAP_SECONDS
from transcript_relay.errors import RelayError
from transcript_relay.formatters import FORMATTERS
from transcript_relay.formatters.base import FormatterOutput
from transcript_relay.pipeline import run_pipeline


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Pick a path for one output file that does not clobber an earlier run.

    ``talk`` + ``-subtitles.srt`` is tried first. When that file exists,
    ``talk-subtitles-2.srt``, ``talk-subtitles-3.srt``, ... are tried in turn.
    """
    label, dot, ext = suffix.rpartition(".")
    if not label:
        label, dot, ext = suffix, "", ""
    tail = dot + ext

    path = output_dir / (stem + suffix)
    n = 1
    while path.exists():
        n += 1
        path = output_dir / "{}{}-{}{}".format(stem, label, n, tail)
    return path


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    """Write one formatter output to a conflict-free path and return it."""
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _parse_formats(value: Optional[str]) -> List[str]:
    if not value:
        return list(FORMATTERS.keys())
    format_keys = [f.strip() for f in value.split(",") if f.strip()]
    for key in format_keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            _fail("Unknown format '{}'. Available formats: {}".format(key, available))
    return format_keys


async def _run(args: argparse.Namespace) -> List[Path]:
    """Execute the pipeline and save the selected outputs.

    RULES:
    - Validate input file, extension, output dir, and formats before any API call
    - The credential is loaded once, here, and passed to the client
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_AUDIO_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_AUDIO_FORMATS))
        ))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    format_keys = _parse_formats(args.formats)
    settings = load_settings()

    async with RelayClient(settings) as client:
        _status("Transcribing {}...".format(input_path.name))
        transcript = await run_pipeline(
            client,
            input_path,
            topics=args.topics,
            fill_gaps=args.fill_gaps,
            min_gap=args.min_gap,
        )

    _status("  {} segments, {} topics, {} gap suggestions".format(
        len(transcript.result.segments),
        len(transcript.topics),
        len(transcript.suggestions),
    ))

    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        for output in formatter.format(transcript):
            saved_path = _save_output(output, input_path.stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    return saved_files


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="transcript-relay",
        description="Transcribe an audio file and produce subtitle blocks, "
                    "topics, and optional gap filler.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the audio or video file to transcribe.",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--topics",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Extract topics from the transcript (default: %(default)s).",
    )

    parser.add_argument(
        "--fill-gaps",
        action="store_true",
        help="Detect silent gaps and ask the model for filler content.",
    )

    parser.add_argument(
        "--min-gap",
        type=float,
        default=DEFAULT_MIN_GAP_SECONDS,
        help="Smallest silence in seconds treated as a gap (default: %(default)s).",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log requests and retries to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the transcript-relay console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except RelayError as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
