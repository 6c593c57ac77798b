"""
Tests for the SerpAPI search client.
"""

from unittest.mock import MagicMock

import pytest
import requests

from mcp_assistant.adapters.search_client import SerpAPIClient
from mcp_assistant.domain.exceptions import SearchError


def _session(payload=None, error=None) -> MagicMock:
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value.json.return_value = payload
    return session


def test_missing_key_raises():
    client = SerpAPIClient(None, session=_session({}))
    with pytest.raises(SearchError, match="Missing SERPAPI_KEY in environment"):
        client.search("python")


def test_maps_organic_results():
    session = _session({
        "organic_results": [
            {"title": f"Result {i}", "link": f"https://example.com/{i}", "snippet": f"Snippet {i}"}
            for i in range(8)
        ]
    })
    client = SerpAPIClient("key", session=session)

    results = client.search("python", num=3)

    assert results == [
        {"title": "Result 0", "url": "https://example.com/0", "snippet": "Snippet 0"},
        {"title": "Result 1", "url": "https://example.com/1", "snippet": "Snippet 1"},
        {"title": "Result 2", "url": "https://example.com/2", "snippet": "Snippet 2"},
    ]
    session.get.assert_called_once_with(
        "https://serpapi.com/search.json",
        params={"engine": "google", "q": "python", "num": 3, "api_key": "key"},
        timeout=30,
    )


def test_no_organic_results():
    assert SerpAPIClient("key", session=_session({})).search("nothing") == []


def test_provider_error_raises():
    client = SerpAPIClient("key", session=_session({"error": "Invalid API key."}))
    with pytest.raises(SearchError, match="Invalid API key."):
        client.search("python")


def test_network_error_raises():
    client = SerpAPIClient("key", session=_session(error=requests.exceptions.ConnectionError("down")))
    with pytest.raises(SearchError, match="Web search failed"):
        client.search("python")
