"""
SerpAPI client for real-time web search.
"""

from typing import Any, Dict, List, Optional

import requests

from ..domain.exceptions import SearchError


class SerpAPIClient:
    """Queries the Google engine of SerpAPI and keeps only organic results."""

    def __init__(
        self,
        api_key: Optional[str],
        endpoint: str = "https://serpapi.com/search.json",
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self._session = session or requests.Session()

    def search(self, query: str, num: int = 5) -> List[Dict[str, Any]]:
        """
        Return up to ``num`` results as ``{title, url, snippet}`` dicts.

        Raises:
            SearchError: If no API key is configured or the request fails
        """
        if not self.api_key:
            raise SearchError("Missing SERPAPI_KEY in environment")

        params = {
            "engine": "google",
            "q": query,
            "num": num,
            "api_key": self.api_key,
        }

        try:
            response = self._session.get(self.endpoint, params=params, timeout=30)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise SearchError(f"Web search failed: {e}") from e
        except ValueError as e:
            raise SearchError(f"Web search returned invalid JSON: {e}") from e

        if data.get("error"):
            raise SearchError(f"Web search failed: {data['error']}")

        return [
            {
                "title": result.get("title"),
                "url": result.get("link"),
                "snippet": result.get("snippet"),
            }
            for result in (data.get("organic_results") or [])[:num]
        ]
