"""
Tool servers - one FastMCP server per external service, served over stdio.
"""

from typing import Callable, Dict

from mcp.server.fastmcp import FastMCP

from ..config import AppConfig
from . import calendar_server, gmail_server, pdf_server, search_server

SERVER_FACTORIES: Dict[str, Callable[[AppConfig], FastMCP]] = {
    "calendar": calendar_server.create_server,
    "gmail": gmail_server.create_server,
    "pdf": pdf_server.create_server,
    "search": search_server.create_server,
}


def build_server(name: str, config: AppConfig) -> FastMCP:
    """
    Build the bundled server called ``name``.

    Raises:
        ValueError: If no bundled server has that name
    """
    try:
        factory = SERVER_FACTORIES[name.lower()]
    except KeyError:
        known = ", ".join(sorted(SERVER_FACTORIES))
        raise ValueError(f"Unknown tool server '{name}'. Known servers: {known}") from None
    return factory(config)


__all__ = ["SERVER_FACTORIES", "build_server"]
