"""
Hub that owns every tool server connection and routes calls by tool name.
"""

import logging
from contextlib import AsyncExitStack
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import ServerConfig
from ..domain.exceptions import ToolServerError
from .tool_server import ToolServerConnection

logger = logging.getLogger(__name__)


class ToolHub:
    """
    Async context manager over all configured tool servers.

    Example:
        async with ToolHub(config.servers) as hub:
            payload = await hub.call("calendar_find_free", {...})
    """

    def __init__(
        self,
        servers: Sequence[ServerConfig],
        connection_factory: Callable[[ServerConfig], ToolServerConnection] = ToolServerConnection,
    ):
        self._server_configs = list(servers)
        self._connection_factory = connection_factory
        self._connections: Dict[str, ToolServerConnection] = {}
        self._routes: Dict[str, ToolServerConnection] = {}
        self._stack: Optional[AsyncExitStack] = None

    async def __aenter__(self) -> "ToolHub":
        self._stack = AsyncExitStack()
        try:
            for server in self._server_configs:
                connection = self._connection_factory(server)
                tool_names = await connection.connect(self._stack)
                self.register(connection, tool_names)
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close every server subprocess."""
        if self._stack is not None:
            stack, self._stack = self._stack, None
            await stack.aclose()
        self._connections.clear()
        self._routes.clear()

    def register(self, connection: ToolServerConnection, tool_names: List[str]) -> None:
        """Record a connected server; the first server to expose a tool owns it."""
        self._connections[connection.name] = connection
        for tool in tool_names:
            if tool in self._routes:
                logger.warning(
                    "Tool '%s' from '%s' shadowed by '%s'",
                    tool, connection.name, self._routes[tool].name,
                )
                continue
            self._routes[tool] = connection

    @property
    def servers(self) -> Dict[str, List[str]]:
        """Map server name -> tool names, in connection order."""
        return {name: list(conn.tool_names) for name, conn in self._connections.items()}

    def route(self, tool: str) -> ToolServerConnection:
        """
        Raises:
            ToolServerError: If no connected server exposes ``tool``
        """
        try:
            return self._routes[tool]
        except KeyError:
            raise ToolServerError(f"Unknown tool: {tool}") from None

    async def call(self, tool: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        return await self.route(tool).call(tool, arguments)
