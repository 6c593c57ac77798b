"""
Adapters layer - External integrations (Google APIs, SerpAPI, PDF parsing, LLMs).
"""

from .calendar_client import GoogleCalendarClient
from .gmail_client import GmailClient
from .google_auth import GoogleAuthenticator
from .llm_client import AnswerGenerator
from .local_redirect import LocalRedirectAuthorization
from .search_client import SerpAPIClient

__all__ = [
    "AnswerGenerator",
    "GmailClient",
    "GoogleAuthenticator",
    "GoogleCalendarClient",
    "LocalRedirectAuthorization",
    "SerpAPIClient",
]
