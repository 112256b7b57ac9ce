"""Logging setup and run-phase banners for the publisher CLI."""

from __future__ import annotations

import logging
from typing import Final

BANNER_WIDTH: Final[int] = 60
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Transport libraries log every request or cache lookup at INFO or DEBUG.
_CHATTY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "hishel", "httpx_retries")


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Initialise the root logger for CLI output.

    ``verbose`` switches the publisher to DEBUG and lets the transport
    libraries through as well. Pass ``force=True`` to replace handlers that
    an earlier call (or a test harness) installed.
    """

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


def banner(title: str) -> str:
    """Return ``title`` framed for run-phase log lines."""

    rule = "=" * BANNER_WIDTH
    return f"\n{rule}\n{title.upper().center(BANNER_WIDTH)}\n{rule}"
