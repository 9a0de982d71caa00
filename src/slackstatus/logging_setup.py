# Rich console logging for the CLI.
# Created: 2026-10-18

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING") -> None:
    """Route all log records through a Rich handler on stderr.

    Safe to call more than once; later calls only change the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if any(isinstance(h, RichHandler) for h in root.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
