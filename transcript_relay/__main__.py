"""Package entry point for ``python -m transcript_relay``.

WHY: Users run the relay as ``python -m transcript_relay input.mp3`` for
CLI mode, or ``python -m transcript_relay --serve`` to start the HTTP API.

HOW: Checks sys.argv for the ``--serve`` flag. If present, starts the
FastAPI app under uvicorn. Otherwise, delegates to the CLI's main().
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from transcript_relay.server.app import run_api
        run_api()
    else:
        from transcript_relay.cli import main
        main()
