from __future__ import annotations

"""PDF page text and fragment extraction."""

import asyncio
import re
from pathlib import Path
from typing import Any

from src.scan.types import PageText


class DocumentUnreadableError(RuntimeError):
    """Raised when a document cannot be opened or parsed as a PDF."""
    pass


_WHITESPACE_RE = re.compile(r"\s+")
PDF_MAGIC = b"%PDF"


def _clean_fragment(text: str) -> str:
    """Collapse whitespace runs inside a rendered line."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def page_fragments(page: Any) -> list[str]:
    """Return one fragment per text line, blank fragments between blocks."""
    layout = page.get_text("dict", sort=True)
    fragments: list[str] = []
    for block in layout.get("blocks", []):
        if block.get("type", 0) != 0:
            continue
        lines: list[str] = []
        for line in block.get("lines", []):
            text = _clean_fragment("".join(span.get("text", "") for span in line.get("spans", [])))
            if text:
                lines.append(text)
        if not lines:
            continue
        if fragments:
            fragments.append("")
        fragments.extend(lines)
    return fragments


class PDFDocument:
    """Page source over a PyMuPDF document."""

    def __init__(self, reader: Any) -> None:
        self._reader = reader

    @property
    def page_count(self) -> int:
        return self._reader.page_count

    def page_text(self, number: int) -> PageText:
        """Extract page ``number`` (1-based) synchronously."""
        if number < 1 or number > self.page_count:
            raise IndexError(f"Page {number} out of range 1..{self.page_count}")
        try:
            fragments = page_fragments(self._reader.load_page(number - 1))
        except Exception as exc:
            raise DocumentUnreadableError(f"Failed to read page {number}: {exc}") from exc
        return PageText.from_fragments(number, fragments)

    async def read_page(self, number: int) -> PageText:
        return await asyncio.to_thread(self.page_text, number)

    def close(self) -> None:
        self._reader.close()

    def __enter__(self) -> PDFDocument:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _open(**kwargs: Any) -> PDFDocument:
    try:
        import fitz
    except ImportError as exc:
        raise DocumentUnreadableError("PyMuPDF is required to load PDF files") from exc

    try:
        reader = fitz.open(**kwargs)
    except Exception as exc:
        raise DocumentUnreadableError(f"Unable to open PDF: {exc}") from exc
    if not reader.is_pdf:
        reader.close()
        raise DocumentUnreadableError("Document is not a PDF")
    if reader.needs_pass:
        reader.close()
        raise DocumentUnreadableError("PDF is password protected")
    if reader.page_count < 1:
        reader.close()
        raise DocumentUnreadableError("PDF has no pages")
    return PDFDocument(reader)


def open_pdf_file(path: Path) -> PDFDocument:
    """Open a PDF from disk."""
    if not path.exists():
        raise DocumentUnreadableError(f"PDF not found: {path}")
    return _open(filename=str(path), filetype="pdf")


def open_pdf_bytes(data: bytes) -> PDFDocument:
    """Open a PDF held in memory."""
    if not data.startswith(PDF_MAGIC):
        raise DocumentUnreadableError("Data is not a PDF")
    return _open(stream=data, filetype="pdf")
