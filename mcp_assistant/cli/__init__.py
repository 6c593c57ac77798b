"""
CLI layer - Typer application and the interactive REPL.
"""

from .app import app

__all__ = ["app"]
