"""
pkgsig diagnostics logging

Loggers are plain stdlib loggers under the "pkgsig" namespace. Components
take an optional logger argument so callers (and tests) can inject their
own; nothing here registers process-wide state except configure_cli_logging,
which only the command line entry point calls.
"""
from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "pkgsig"

# Longest value written to a log line; key files can be large
MAX_LOG_VALUE = 512


def sanitize_for_log(text: Optional[str], limit: int = MAX_LOG_VALUE) -> Optional[str]:
    """Sanitize text for a log line to prevent log injection.

    Replaces control characters that could break log parsers:
    newlines, carriage returns, tabs, null bytes, and ANSI escapes.
    Long values are truncated.
    """
    if text is None:
        return None
    cleaned = (
        str(text)
        .replace("\x00", "\\x00")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x1b", "\\x1b")
    )
    if len(cleaned) > limit:
        cleaned = cleaned[:limit] + "..."
    return cleaned


def resolve_logger(logger: Optional[logging.Logger], name: str) -> logging.Logger:
    """Return the injected logger, or the module logger for ``name``."""
    return logger if logger is not None else logging.getLogger(name)


def configure_cli_logging(verbose: bool = False, console: Optional[Console] = None) -> logging.Logger:
    """
    Attach a Rich handler to the pkgsig logger for command line use.

    Safe to call more than once; an existing Rich handler is reused.

    Args:
        verbose: Log DEBUG and up instead of WARNING and up
        console: Console to write to (defaults to stderr)

    Returns:
        The configured "pkgsig" logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
