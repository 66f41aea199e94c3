"""Logging utilities using rich console."""
from __future__ import annotations

import logging
from rich.console import Console
from rich.logging import RichHandler

# stdout is reserved for DOT output
console = Console(stderr=True)

PACKAGE_LOGGER = "cargo_graph"


def setup_logging(verbose: bool = False) -> None:
    """
    Route the package's log records through rich on stderr.

    Only the ``cargo_graph`` logger is configured, so embedding applications
    keep control of the root logger.

    Args:
        verbose: If True, set log level to DEBUG, otherwise INFO
    """
    handler = RichHandler(console=console, rich_tracebacks=True, show_path=verbose)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
