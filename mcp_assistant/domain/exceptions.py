"""
Domain-specific exception hierarchy for the assistant and its tool servers.
"""


class AssistantError(Exception):
    """Base class for all application-level errors."""


class AuthenticationError(AssistantError):
    """Raised when authorization or token handling fails."""


class CalendarAPIError(AssistantError):
    """Raised when calendar data cannot be fetched or written."""


class MailAPIError(AssistantError):
    """Raised when a mail draft or send request fails."""


class SearchError(AssistantError):
    """Raised when the web search provider cannot be queried."""


class DocumentError(AssistantError):
    """Raised when a document cannot be loaded or read."""


class LLMError(AssistantError):
    """Raised when no text-generation backend produced an answer."""


class ToolServerError(AssistantError):
    """Raised when a tool server cannot be reached or does not own a tool."""


class ToolCallError(AssistantError):
    """Raised when a tool server reports a failed tool call."""

    def __init__(self, tool: str, message: str):
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.message = message
