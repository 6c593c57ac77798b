"""
Logging setup shared by the CLI and the tool servers.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", *, stderr: bool = True) -> None:
    """
    Route all log records through a single RichHandler.

    Tool servers must keep stdout free for the protocol stream, so records
    go to stderr unless ``stderr`` is False.
    """
    handler = RichHandler(
        console=Console(stderr=stderr),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # Third-party clients are chatty at INFO
    for noisy in ("googleapiclient.discovery_cache", "httpx", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
