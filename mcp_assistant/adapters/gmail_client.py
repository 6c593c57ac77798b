"""
Gmail API client for drafts and outgoing mail.
"""

from typing import Any, Dict

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..domain.exceptions import MailAPIError
from ..domain.messages import build_raw_message


class GmailClient:
    """Thin wrapper over the Gmail v1 ``users`` resource for the signed-in user."""

    USER_ID = "me"

    def __init__(self, credentials, service=None):
        self._service = service or build(
            "gmail", "v1", credentials=credentials, cache_discovery=False
        )

    def get_profile(self) -> Dict[str, Any]:
        try:
            return self._service.users().getProfile(userId=self.USER_ID).execute()
        except HttpError as exc:
            raise MailAPIError(f"Failed to read Gmail profile: {exc}") from exc

    def create_draft(self, to: str, subject: str, body: str) -> Dict[str, Any]:
        """Create a draft and return the API's draft resource."""
        raw = build_raw_message(to, subject, body)
        try:
            return self._service.users().drafts().create(
                userId=self.USER_ID,
                body={"message": {"raw": raw}},
            ).execute()
        except HttpError as exc:
            raise MailAPIError(f"Failed to create draft: {exc}") from exc

    def send_message(self, to: str, subject: str, body: str) -> Dict[str, Any]:
        """Send a message immediately and return the sent message resource."""
        raw = build_raw_message(to, subject, body)
        try:
            return self._service.users().messages().send(
                userId=self.USER_ID,
                body={"raw": raw},
            ).execute()
        except HttpError as exc:
            raise MailAPIError(f"Failed to send message: {exc}") from exc
