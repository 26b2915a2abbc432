"""Logging setup: rich-formatted records on stderr, keeping stdout for reports."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the ``git_scanline`` logger.

    Args:
        verbose: Enable DEBUG level logging.
        quiet: Only show errors.

    Returns:
        The package logger.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_time=verbose,
        show_path=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("git_scanline")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    return logger
