"""Host process entry point.

Reads request frames from stdin, dispatches each to a handler, and writes
exactly one response frame per request to stdout.  The loop ends cleanly
on end of input, on a frame or message it can't decode, or when stdout
goes away.

Logging constraint:
  stdout carries protocol frames.  ALL application logging MUST go to
  stderr or the caller reads log text as a frame header.
  ``_configure_logging()`` enforces this.

Usage::

    python -m src.host
    HOST_LOG_LEVEL=DEBUG python -m src.host
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import BinaryIO

from config import settings
from src.host.handlers import dispatch
from src.host.protocol import (
    ProtocolError,
    dump_message,
    parse_request,
    read_frame,
    write_frame,
)

logger = logging.getLogger(__name__)


def handle_message(data: bytes) -> bytes:
    """Decode one request body and return the encoded response body."""
    request = parse_request(data)
    logger.debug("Received %s request", request.action)
    return dump_message(dispatch(request))


def serve(stdin: BinaryIO, stdout: BinaryIO) -> int:
    """Run the request loop; return the number of requests answered."""
    answered = 0
    while True:
        try:
            data = read_frame(stdin)
            if data is None:
                break
            request = parse_request(data)
        except ProtocolError as exc:
            logger.error("Stopping on undecodable input: %s", exc)
            break

        response = dispatch(request)
        try:
            write_frame(stdout, response)
        except OSError as exc:
            logger.error("Stopping, response could not be written: %s", exc)
            break
        answered += 1

    logger.debug("Host loop finished after %d request(s)", answered)
    return answered


def _configure_logging(level: str | None = None) -> None:
    """Send every logger in the host process to stderr.

    ``level`` overrides ``HOST_LOG_LEVEL``.  An already-configured root
    logger keeps its handlers; only the level changes.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.host_log_level).upper())
    if root.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Save/execute host process")
    parser.add_argument(
        "--log-level",
        default=settings.host_log_level,
        help="Logging level written to stderr (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    logger.info("Host started")
    serve(sys.stdin.buffer, sys.stdout.buffer)


if __name__ == "__main__":
    main()
