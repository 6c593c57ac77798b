"""
Gmail tool server: profile, drafts and sending.
"""

import logging
from typing import Any, Callable, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import EmailStr

from ..adapters.gmail_client import GmailClient
from ..adapters.google_auth import GoogleAuthenticator
from ..config import AppConfig

logger = logging.getLogger(__name__)


class GmailTools:
    """Tool implementations bound to one Gmail client (created on first use)."""

    def __init__(
        self,
        config: AppConfig,
        client_factory: Optional[Callable[[], GmailClient]] = None,
    ):
        self.config = config
        self._client_factory = client_factory or self._build_client
        self._client: Optional[GmailClient] = None

    def _build_client(self) -> GmailClient:
        credentials = GoogleAuthenticator(self.config.google, "gmail").get_credentials()
        return GmailClient(credentials)

    @property
    def client(self) -> GmailClient:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def gmail_profile(self) -> Dict[str, Any]:
        """Get Gmail profile (email address)"""
        return self.client.get_profile()

    def gmail_create_draft(self, to: EmailStr, subject: str, body: str) -> Dict[str, Any]:
        """Create a Gmail draft"""
        draft = self.client.create_draft(str(to), subject, body)
        return {"draftId": draft.get("id")}

    def gmail_send_message(self, to: EmailStr, subject: str, body: str) -> Dict[str, Any]:
        """Send a raw email immediately (use with confirmation!)"""
        sent = self.client.send_message(str(to), subject, body)
        logger.info("Sent message %s", sent.get("id"))
        return {"id": sent.get("id"), "labelIds": sent.get("labelIds")}


def create_server(config: AppConfig, tools: Optional[GmailTools] = None) -> FastMCP:
    """Build the ``gmail-mcp`` server."""
    tools = tools or GmailTools(config)
    server = FastMCP("gmail-mcp", instructions="Gmail draft/send tools")

    server.tool()(tools.gmail_profile)
    server.tool()(tools.gmail_create_draft)
    server.tool()(tools.gmail_send_message)

    return server
