"""
Fetch a PDF from a local path or URL and extract per-page text with pypdf.
"""

import io
import re
from pathlib import Path
from typing import List, Optional

import requests
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..domain.exceptions import DocumentError

_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def is_url(target: str) -> bool:
    return bool(_URL_PATTERN.match(target))


def read_source(target: str, base_dir: Optional[Path] = None) -> bytes:
    """
    Return the raw bytes of ``target``.

    Relative paths are resolved against ``base_dir`` (default: CWD).

    Raises:
        DocumentError: If the URL cannot be fetched or the file is missing
    """
    if is_url(target):
        try:
            response = requests.get(target, timeout=60)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise DocumentError(
                f"Failed to fetch PDF: {e.response.status_code} {e.response.reason}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise DocumentError(f"Failed to fetch PDF: {e}") from e
        return response.content

    path = Path(target).expanduser()
    if not path.is_absolute():
        path = (base_dir or Path.cwd()) / path
    path = path.resolve()

    if not path.is_file():
        raise DocumentError(f"File not found: {path}")

    return path.read_bytes()


def extract_pages(data: bytes) -> List[str]:
    """
    Extract the text of every page, in order.

    Raises:
        DocumentError: If the bytes are not a readable PDF
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        return [_normalize(page.extract_text() or "") for page in reader.pages]
    except PdfReadError as e:
        raise DocumentError(f"Could not read PDF: {e}") from e


def _normalize(text: str) -> str:
    # Collapse layout whitespace into single spaces
    return " ".join(text.split())
