"""
Command line entry point.
"""

import asyncio
import logging
import sys
from collections.abc import Mapping, Sequence
from typing import BinaryIO, Optional

from . import __version__
from .api import send
from .config import build_parser, config_from_args
from .email import read_body
from .errors import SMTPSendError, UsageError


__all__ = ("EXIT_FAILURE", "EXIT_OK", "EXIT_USAGE", "main")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
LOG_FORMAT = "%(levelname)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
    )


def main(
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[BinaryIO] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    """
    Parse flags, send the message, and return the process exit code.

    The body is read from ``stdin`` (standard input by default) when no
    inline message is given. Malformed flags return ``EXIT_USAGE`` rather
    than exiting.
    """
    parser = build_parser()
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # argparse has already printed usage (or --version / --help output).
        return int(exc.code or EXIT_OK)

    try:
        config = config_from_args(args, environ=environ)
    except SMTPSendError as exc:
        configure_logging()
        logger.error("%s", exc)
        if isinstance(exc, UsageError):
            parser.print_help(sys.stderr)
            return EXIT_USAGE
        return EXIT_FAILURE

    configure_logging(verbose=config.verbose)

    if stdin is None:
        stdin = sys.stdin.buffer
    body = read_body(config.message, stdin)

    try:
        response = asyncio.run(send(config, body))
    except SMTPSendError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE

    logger.debug("Server response: %s", response)

    return EXIT_OK
