"""
mcp-assistant - broker between an operator and calendar, mail, search and PDF tool servers.
"""

__version__ = "0.4.0"
