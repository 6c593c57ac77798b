"""
Client side of the tool protocol: subprocess connections and the routing hub.
"""

from .hub import ToolHub
from .tool_server import ToolServerConnection, parse_tool_content

__all__ = ["ToolHub", "ToolServerConnection", "parse_tool_content"]
