"""pkgsig logging helpers."""

from .diagnostics import (
    ROOT_LOGGER_NAME,
    configure_cli_logging,
    resolve_logger,
    sanitize_for_log,
)

__all__ = [
    "ROOT_LOGGER_NAME", "configure_cli_logging", "resolve_logger", "sanitize_for_log",
]
