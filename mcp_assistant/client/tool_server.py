"""
Connection to one tool server subprocess over MCP stdio.
"""

import json
import logging
import os
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from ..config import ServerConfig
from ..domain.exceptions import ToolCallError, ToolServerError

logger = logging.getLogger(__name__)


def parse_tool_content(result: Any) -> Any:
    """
    Decode the JSON payload of a tool result's first text item.

    Returns None when there is no text content or the text is not JSON.
    """
    content = getattr(result, "content", None) or []
    if not content:
        return None

    text = getattr(content[0], "text", None)
    if text is None:
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _error_text(result: Any) -> str:
    content = getattr(result, "content", None) or []
    texts = [item.text for item in content if getattr(item, "text", None)]
    return " ".join(texts) or "tool call failed"


class ToolServerConnection:
    """
    Spawns one server, discovers its tools and forwards tool calls to it.

    Lifecycle:
        initialize -> list_tools -> call_tool ... -> close (via the exit stack)
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.name = config.name
        self.tool_names: List[str] = []
        self._session: Optional[ClientSession] = None

    def _parameters(self) -> StdioServerParameters:
        return StdioServerParameters(
            command=self.config.command,
            args=list(self.config.args),
            env={**os.environ, **self.config.env},
        )

    async def connect(self, stack: AsyncExitStack) -> List[str]:
        """
        Start the subprocess and register its cleanup on ``stack``.

        Returns:
            Names of the tools the server exposes

        Raises:
            ToolServerError: If the server cannot be started or initialized
        """
        logger.debug("Starting tool server '%s': %s %s", self.name, self.config.command, self.config.args)
        try:
            read, write = await stack.enter_async_context(stdio_client(self._parameters()))
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
            listing = await session.list_tools()
        except Exception as e:
            raise ToolServerError(f"Could not start tool server '{self.name}': {e}") from e

        self._session = session
        self.tool_names = [tool.name for tool in listing.tools]
        logger.info("Tool server '%s' ready with %d tool(s)", self.name, len(self.tool_names))
        return self.tool_names

    async def call(self, tool: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call ``tool`` and return its decoded JSON payload.

        Raises:
            ToolServerError: If the server is not connected
            ToolCallError: If the server reports the call as failed
        """
        if self._session is None:
            raise ToolServerError(f"Tool server '{self.name}' is not connected")

        logger.debug("Calling %s.%s with %s", self.name, tool, arguments)
        result = await self._session.call_tool(tool, arguments or {})

        if result.isError:
            raise ToolCallError(tool, _error_text(result))

        return parse_tool_content(result)
