from __future__ import annotations

"""Streamlit viewer for the PDF term scanning FastAPI backend."""

import asyncio
import html
from typing import Any

import httpx
import streamlit as st

from src.app.settings import settings
from src.scan.aggregate import format_results_for_copy
from src.scan.types import HighlightSets, MatchRecord
from src.viewer.state import (
    ViewerState,
    apply_scan,
    begin_document,
    fail_scan,
    highlight,
    locate_when_ready,
    next_page,
    previous_page,
    select_match,
    set_page_count,
)


DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_REQUEST_TIMEOUT = 300.0

_PAGE_CSS = """
<style>
.pdf-page { font-family: serif; line-height: 1.6; padding: 1rem; border: 1px solid #ddd; }
.pdf-page .text-highlight { background: #fef3c7; }
.pdf-page .term-highlight { background: #fbbf24; font-weight: 600; }
.pdf-page .separator { height: 0.8rem; }
</style>
"""


def _headers(api_key: str | None) -> dict[str, str]:
    """Build optional API key headers for backend requests."""
    if not api_key:
        return {}
    return {"X-API-Key": api_key.strip()}


def _health_check(api_url: str, api_key: str | None) -> tuple[bool, str]:
    """Return backend health status and a human-readable message."""
    url = api_url.rstrip("/") + "/health"
    try:
        with httpx.Client(timeout=5.0) as client:
            response = client.get(url, headers=_headers(api_key))
        if response.status_code == 200:
            return True, "API is reachable."
        return False, f"API responded with status {response.status_code}."
    except httpx.HTTPError as exc:
        return False, f"API connection failed: {exc}"


def _upload(api_url: str, api_key: str | None, name: str, data: bytes) -> dict[str, Any]:
    with httpx.Client(timeout=DEFAULT_REQUEST_TIMEOUT) as client:
        response = client.post(
            api_url.rstrip("/") + "/documents",
            files={"file": (name, data, "application/pdf")},
            headers=_headers(api_key),
        )
    response.raise_for_status()
    return response.json()


def _scan(api_url: str, api_key: str | None, doc_id: str, query: str) -> dict[str, Any]:
    with httpx.Client(timeout=DEFAULT_REQUEST_TIMEOUT) as client:
        response = client.post(
            api_url.rstrip("/") + f"/documents/{doc_id}/scan",
            json={"query": query},
            headers=_headers(api_key),
        )
    response.raise_for_status()
    return response.json()


async def _page_fragments(api_url: str, api_key: str | None, doc_id: str, page: int) -> list[str] | None:
    """Fetch a page's fragments; None while the page cannot be rendered."""
    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.get(
                api_url.rstrip("/") + f"/documents/{doc_id}/pages/{page}",
                headers=_headers(api_key),
            )
    except httpx.HTTPError:
        return None
    if response.status_code != 200:
        return None
    return response.json().get("fragments", [])


def _load_page(
    api_url: str, api_key: str | None, doc_id: str, state: ViewerState
) -> tuple[list[str] | None, HighlightSets]:
    """Fetch the current page and highlight the selected term once it renders."""
    rendered: dict[str, list[str] | None] = {"fragments": None}

    async def _fragments() -> list[str] | None:
        rendered["fragments"] = await _page_fragments(api_url, api_key, doc_id, state.current_page)
        return rendered["fragments"]

    if state.selected is None:
        fragments = asyncio.run(_fragments())
        return fragments, highlight(state, fragments)
    sets = asyncio.run(
        locate_when_ready(
            _fragments,
            state.selected.term,
            attempts=settings.highlight_attempts,
            delay=settings.highlight_delay,
        )
    )
    return rendered["fragments"], sets


def _render_page(fragments: list[str], paragraph: set[int], terms: set[int]) -> str:
    parts = [_PAGE_CSS, '<div class="pdf-page">']
    for idx, fragment in enumerate(fragments):
        if not fragment.strip():
            parts.append('<div class="separator"></div>')
            continue
        classes = []
        if idx in paragraph:
            classes.append("text-highlight")
        if idx in terms:
            classes.append("term-highlight")
        parts.append(f'<span class="{" ".join(classes)}">{html.escape(fragment)}</span> ')
    parts.append("</div>")
    return "".join(parts)


def _render_spans(spans: list[dict[str, Any]]) -> str:
    return "".join(
        f"<mark>{html.escape(span['text'])}</mark>" if span.get("highlighted") else html.escape(span["text"])
        for span in spans
    )


st.set_page_config(page_title="PDF Term Viewer", layout="wide")
st.title("PDF Term Viewer")
st.caption("Upload a PDF, review every term match with its summary, and jump to it in place.")

if "viewer" not in st.session_state:
    st.session_state.viewer = ViewerState()
    st.session_state.document_id = None
    st.session_state.spans = []

with st.sidebar:
    st.header("Connection")
    api_url = st.text_input("API base URL", value=DEFAULT_API_URL)
    api_key = st.text_input("API key (optional)", type="password")
    query = st.text_input("Search terms (separate with |)", value="breach|training")
    if st.button("Health Check"):
        ok, message = _health_check(api_url, api_key)
        if ok:
            st.success(message)
        else:
            st.error(message)

uploaded = st.file_uploader("Upload PDF File (up to 5MB)", type=["pdf"])
if st.button("Upload & Scan", type="primary") and uploaded is not None:
    try:
        document = _upload(api_url, api_key, uploaded.name, uploaded.getvalue())
    except httpx.HTTPStatusError as exc:
        st.error(exc.response.json().get("detail", "Upload failed"))
    except httpx.HTTPError as exc:
        st.error(f"API connection failed: {exc}")
    else:
        state = begin_document(st.session_state.viewer, document["url"])
        version = state.document_version
        state = set_page_count(state, document.get("page_count") or 0)
        st.session_state.document_id = document["document_id"]
        with st.spinner("Analyzing document..."):
            try:
                payload = _scan(api_url, api_key, document["document_id"], query)
            except httpx.HTTPError:
                state = fail_scan(state, version, "Error while searching PDF, please try again later.")
                st.session_state.spans = []
            else:
                records = [
                    MatchRecord(
                        page=item["page"],
                        term=item["term"],
                        context=item["context"],
                        summary=item["summary"],
                        offset=item["offset"],
                    )
                    for item in payload["results"]
                ]
                st.session_state.spans = [item.get("spans", []) for item in payload["results"]]
                state = apply_scan(state, version, records)
        st.session_state.viewer = state

state: ViewerState = st.session_state.viewer
doc_id = st.session_state.document_id

if doc_id:
    preview, results_col = st.columns([3, 2])

    with preview:
        st.subheader("PDF Preview")
        fragments, (paragraph, term_hits) = _load_page(api_url, api_key, doc_id, state)
        if fragments is None:
            st.info("Rendering page...")
        else:
            st.markdown(_render_page(fragments, paragraph, term_hits), unsafe_allow_html=True)
        nav_prev, nav_label, nav_next = st.columns([1, 3, 1])
        if nav_prev.button("‹ Prev", disabled=state.current_page <= 1):
            st.session_state.viewer = previous_page(state)
            st.rerun()
        nav_label.write(f"Page {state.current_page} of {state.page_count or 0}")
        if nav_next.button("Next ›", disabled=state.current_page >= (state.page_count or 1)):
            st.session_state.viewer = next_page(state)
            st.rerun()

    with results_col:
        if state.error:
            st.error(state.error)
        elif state.results:
            st.subheader(f"Search Results ({len(state.results)})")
            with st.expander("Copy All"):
                st.code(format_results_for_copy(state.results), language=None)
            for idx, record in enumerate(state.results):
                selected = state.selected is record
                with st.container(border=True):
                    st.caption(f"{record.term} · Page {record.page}" + (" · selected" if selected else ""))
                    st.write(record.summary)
                    spans = st.session_state.spans[idx] if idx < len(st.session_state.spans) else []
                    st.markdown(_render_spans(spans) or html.escape(record.context), unsafe_allow_html=True)
                    if st.button("Show in document", key=f"result-{idx}", disabled=selected):
                        st.session_state.viewer = select_match(state, record)
                        st.rerun()
        else:
            st.write("No matching terms found. Try a different PDF.")

st.divider()
st.caption("Tip: Start the API with `uvicorn src.app.main:app --port 8000`.")
