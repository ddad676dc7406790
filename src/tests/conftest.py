from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("PDFSCAN_ALLOW_ANONYMOUS", "true")
os.environ["PDFSCAN_SUMMARIZER"] = "extractive"
os.environ["PDFSCAN_STORAGE_DIR"] = tempfile.mkdtemp(prefix="pdfscan-tests-")
os.environ.pop("PDFSCAN_API_KEYS", None)
os.environ.pop("PDFSCAN_API_KEY_MAP", None)
os.environ.pop("PDFSCAN_TRANSACTIONS_DB_URI", None)
os.environ.pop("GEMINI_API_KEY", None)


def build_pdf(pages: list[list[str]]) -> bytes:
    """Render a PDF where each page is a list of short text lines."""
    import fitz

    document = fitz.open()
    for lines in pages:
        page = document.new_page()
        y = 72
        for line in lines:
            if line:
                page.insert_text((72, y), line, fontsize=11)
            y += 40 if not line else 16
    data = document.tobytes()
    document.close()
    return data


@pytest.fixture
def pdf_bytes():
    """Factory fixture building PDF bytes from per-page lines."""
    return build_pdf


@pytest.fixture
def anyio_backend():
    """The code under test is built on asyncio; run anyio tests on it only."""
    return "asyncio"
