"""
Entry point for ``python -m mcp_assistant``.

Tool servers are spawned this way: ``python -m mcp_assistant serve calendar``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
