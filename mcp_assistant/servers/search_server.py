"""
Web search tool server backed by SerpAPI.
"""

from typing import Annotated, Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from ..adapters.search_client import SerpAPIClient
from ..config import AppConfig


class SearchTools:
    def __init__(self, client: SerpAPIClient):
        self.client = client

    def web_search(
        self,
        query: Annotated[str, Field(min_length=1, description="Search query")],
        num: Annotated[int, Field(ge=1, le=10, description="Max results (default 5)")] = 5,
    ) -> Dict[str, Any]:
        """Search the web and return top results (title, url, snippet)"""
        results = self.client.search(query, num)
        return {"query": query, "results": results}


def create_server(config: AppConfig, tools: Optional[SearchTools] = None) -> FastMCP:
    """Build the ``web-search-mcp`` server."""
    tools = tools or SearchTools(
        SerpAPIClient(config.search.serpapi_key, endpoint=config.search.endpoint)
    )
    server = FastMCP("web-search-mcp", instructions="Real-time web search via SerpAPI")

    server.tool()(tools.web_search)

    return server
