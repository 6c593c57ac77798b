"""
PDF tool server: loads a PDF and exposes per-page text extraction.

Loaded documents are kept per session handle; callers pass the same handle
to every tool to address their own document.
"""

import logging
from typing import Annotated, Any, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from ..adapters import pdf_loader
from ..config import AppConfig
from ..domain.documents import DEFAULT_SESSION, DocumentSessions

logger = logging.getLogger(__name__)

SessionHandle = Annotated[str, Field(min_length=1, description="Session handle owning the loaded PDF")]


class PdfTools:
    """Tool implementations over a session-keyed document store."""

    def __init__(
        self,
        sessions: Optional[DocumentSessions] = None,
        fetch: Callable[[str], bytes] = pdf_loader.read_source,
        extract: Callable[[bytes], List[str]] = pdf_loader.extract_pages,
    ):
        self.sessions = sessions or DocumentSessions()
        self._fetch = fetch
        self._extract = extract

    def load_pdf(
        self,
        target: Annotated[str, Field(min_length=1, description="Path or HTTP(S) URL to a PDF")],
        session: SessionHandle = DEFAULT_SESSION,
    ) -> Dict[str, Any]:
        """Load a PDF from a local path or URL into memory"""
        pages = self._extract(self._fetch(target))
        document = self.sessions.load(session, target, pages)
        logger.info("Loaded %s (%d pages) for session %s", target, document.page_count, session)
        return {"ok": True, "pages": document.page_count, "source": target}

    def page_count(self, session: SessionHandle = DEFAULT_SESSION) -> Dict[str, Any]:
        """Get page count of the loaded PDF"""
        return {"pages": self.sessions.page_count(session)}

    def extract_text(
        self,
        page: Annotated[int, Field(ge=1, description="1-based page index")],
        session: SessionHandle = DEFAULT_SESSION,
    ) -> Dict[str, Any]:
        """Extract text for a specific page (1-based)"""
        return {"page": page, "text": self.sessions.page_text(session, page)}

    def close_pdf(self, session: SessionHandle = DEFAULT_SESSION) -> Dict[str, Any]:
        """Forget the PDF loaded for a session"""
        self.sessions.close(session)
        return {"ok": True}


def create_server(config: AppConfig, tools: Optional[PdfTools] = None) -> FastMCP:
    """Build the ``pdf-reader-mcp`` server."""
    tools = tools or PdfTools()
    server = FastMCP(
        "pdf-reader-mcp",
        instructions="Loads a PDF and exposes simple per-page text extraction",
    )

    server.tool()(tools.load_pdf)
    server.tool()(tools.page_count)
    server.tool()(tools.extract_text)
    server.tool()(tools.close_pdf)

    return server
