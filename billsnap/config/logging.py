"""
Logging - Root logger setup for the CLI and API server.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", rich: bool = False, console: Console | None = None) -> None:
    """
    Configure the root logger once. Safe to call from the CLI, server or tests.

    Args:
        level: Level name ("DEBUG", "INFO", ...)
        rich: Render records with rich (CLI) instead of plain text (server)
        console: Console the rich handler writes to
    """
    handlers: list[logging.Handler]
    if rich:
        handlers = [
            RichHandler(
                console=console or Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            )
        ]
        fmt = "%(message)s"
    else:
        handlers = [logging.StreamHandler()]
        fmt = LOG_FORMAT

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=handlers,
        force=True,
    )

    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
