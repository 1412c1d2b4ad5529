"""Logging setup shared by the CLI and scripts."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()


def setup_logging(level: str = "INFO", log_console: Optional[Console] = None) -> None:
    """
    Route the root logger through rich.

    Calling this again replaces the previously installed handler.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(
        console=log_console or console,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="[%X]",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(level.upper())
