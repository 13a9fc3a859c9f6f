"""Logging setup for the derivcast CLI.

Library code only ever calls ``logging.getLogger(__name__)``; handlers are
installed here, by the entry point, never on import.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "INFO", *, verbose: bool = False) -> logging.Logger:
    """Route derivcast logs through a rich handler on stderr.

    Args:
        level: Log level name used when *verbose* is off.
        verbose: Force DEBUG and show source paths.

    Returns:
        The ``derivcast`` package logger.
    """
    resolved = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_time=True,
        show_path=verbose,
    )
    logging.basicConfig(level=resolved, format="%(message)s", datefmt="[%X]", handlers=[handler])

    logger = logging.getLogger("derivcast")
    logger.setLevel(resolved)
    return logger
