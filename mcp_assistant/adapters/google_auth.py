"""
Google OAuth2 authorization (authorization-code flow with a local redirect).
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..config import GoogleConfig
from ..domain.exceptions import AuthenticationError
from .local_redirect import LocalRedirectAuthorization

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/calendar.readonly",
]

GMAIL_SCOPES = [
    "https://www.googleapis.com/auth/gmail.compose",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/gmail.readonly",
]

SERVICE_SCOPES = {
    "calendar": CALENDAR_SCOPES,
    "gmail": GMAIL_SCOPES,
}


class GoogleAuthenticator:
    """
    Provides authorized credentials for one Google service.

    Flow:
    1. Reuse the token persisted for the service, refreshing it if expired
    2. Otherwise open the consent page in a browser
    3. Let InstalledAppFlow catch the redirect and exchange the code (with timeout)
    4. Persist the tokens (owner-only file)
    """

    def __init__(
        self,
        config: GoogleConfig,
        service: str,
        open_browser: bool = True,
    ):
        """
        Initialize the authenticator.

        Args:
            config: OAuth client settings
            service: ``calendar`` or ``gmail``; selects scopes and token file
            open_browser: Whether to open the consent page in a browser
        """
        if service not in SERVICE_SCOPES:
            raise ValueError(f"Unknown Google service: {service}")

        self.config = config
        self.service = service
        self.scopes: List[str] = SERVICE_SCOPES[service]
        self.token_file: Path = config.token_file(service)
        self._open_browser = open_browser

    def get_credentials(self, force_refresh: bool = False) -> Credentials:
        """
        Get valid credentials, using the token file or a new consent flow.

        Raises:
            AuthenticationError: If authorization fails or times out
        """
        if not force_refresh:
            creds = self._load_token()
            if creds is not None:
                if creds.valid:
                    return creds
                if creds.expired and creds.refresh_token:
                    try:
                        creds.refresh(Request())
                    except RefreshError as exc:
                        logger.warning("Could not refresh %s token: %s", self.service, exc)
                    else:
                        self._save_token(creds)
                        return creds

        return self._authorize()

    def _client_config(self) -> dict:
        if not self.config.client_id or not self.config.client_secret:
            raise AuthenticationError("Missing GOOGLE_CLIENT_ID/SECRET")

        return {
            "installed": {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": [self.config.redirect_uri],
            }
        }

    def _authorize(self) -> Credentials:
        flow = InstalledAppFlow.from_client_config(self._client_config(), scopes=self.scopes)

        logger.info("Opening browser for Google OAuth (%s)...", self.service)
        with LocalRedirectAuthorization(
            flow,
            self.config.redirect_uri,
            timeout_seconds=self.config.oauth_timeout_seconds,
            open_browser=self._open_browser,
            service_name=self.service.capitalize(),
        ) as pending:
            creds = pending.wait()

        self._save_token(creds)
        logger.info("%s authorization complete", self.service.capitalize())
        return creds

    def _load_token(self) -> Optional[Credentials]:
        if not self.token_file.exists():
            return None
        try:
            info = json.loads(self.token_file.read_text(encoding="utf-8"))
            return Credentials.from_authorized_user_info(info, self.scopes)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load token file %s: %s", self.token_file, exc)
            return None

    def _save_token(self, creds: Credentials) -> None:
        try:
            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            self.token_file.write_text(creds.to_json(), encoding="utf-8")
            # Set restrictive permissions (owner only)
            self.token_file.chmod(0o600)
        except OSError as exc:
            logger.warning("Could not save token to %s: %s", self.token_file, exc)

    def clear_token(self) -> bool:
        """Delete the persisted token; returns True if one existed."""
        if self.token_file.exists():
            self.token_file.unlink()
            return True
        return False
