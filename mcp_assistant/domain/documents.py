"""
Session-scoped store of loaded documents.

Each client session owns its own loaded document, addressed by an explicit
session handle, so several sessions can share one PDF server safely.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List

from .exceptions import DocumentError

DEFAULT_SESSION = "default"


@dataclass(frozen=True)
class LoadedDocument:
    """Per-page text of one document."""
    source: str
    pages: List[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


class DocumentSessions:
    """Thread-safe mapping of session handle -> loaded document."""

    def __init__(self) -> None:
        self._documents: Dict[str, LoadedDocument] = {}
        self._lock = threading.Lock()

    def load(self, session: str, source: str, pages: List[str]) -> LoadedDocument:
        """Replace the session's document with a freshly extracted one."""
        document = LoadedDocument(source=source, pages=list(pages))
        with self._lock:
            self._documents[session] = document
        return document

    def get(self, session: str) -> LoadedDocument:
        """
        Return the session's document.

        Raises:
            DocumentError: If nothing (or an empty document) is loaded
        """
        with self._lock:
            document = self._documents.get(session)

        if document is None or document.page_count == 0:
            raise DocumentError("No PDF loaded. Call load_pdf first.")
        return document

    def page_count(self, session: str) -> int:
        return self.get(session).page_count

    def page_text(self, session: str, page: int) -> str:
        """
        Return the text of a 1-based page.

        Raises:
            DocumentError: If nothing is loaded or the page is out of range
        """
        document = self.get(session)
        if page < 1 or page > document.page_count:
            raise DocumentError(f"Page out of range (1..{document.page_count})")
        return document.pages[page - 1] or ""

    def close(self, session: str) -> None:
        """Forget the session's document, if any."""
        with self._lock:
            self._documents.pop(session, None)
