from __future__ import annotations

"""Immutable viewer session state and its transitions."""

import asyncio
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Sequence

from src.scan.highlights import locate
from src.scan.types import HighlightSets, MatchRecord, empty_highlights


@dataclass(frozen=True)
class ViewerState:
    """What the host UI shows: document, page, results and selection.

    ``document_version`` increases with every loaded document; scans tagged
    with an older version are discarded.
    """
    document_version: int = 0
    document_url: str | None = None
    page_count: int | None = None
    current_page: int = 1
    results: tuple[MatchRecord, ...] = ()
    selected: MatchRecord | None = None
    loading: bool = False
    error: str | None = None


def begin_document(state: ViewerState, url: str) -> ViewerState:
    """Switch to a new document, clearing results and selection."""
    return ViewerState(
        document_version=state.document_version + 1,
        document_url=url,
        loading=True,
    )


def apply_scan(
    state: ViewerState, version: int, records: Sequence[MatchRecord]
) -> ViewerState:
    """Store scan results and auto-select the first one.

    Results from a scan started for an earlier document are ignored.
    """
    if version != state.document_version:
        return state
    results = tuple(records)
    if not results:
        return replace(state, results=(), selected=None, loading=False, error=None)
    first = results[0]
    return replace(
        state,
        results=results,
        selected=first,
        current_page=first.page,
        loading=False,
        error=None,
    )


def fail_scan(state: ViewerState, version: int, message: str) -> ViewerState:
    if version != state.document_version:
        return state
    return replace(state, results=(), selected=None, loading=False, error=message)


def select_match(state: ViewerState, record: MatchRecord) -> ViewerState:
    """Select one of the current results and show its page."""
    if not any(item is record for item in state.results):
        raise ValueError("Record is not part of the current results")
    return replace(state, selected=record, current_page=record.page)


def set_page_count(state: ViewerState, page_count: int) -> ViewerState:
    count = max(page_count, 0)
    page = min(state.current_page, max(count, 1))
    return replace(state, page_count=count, current_page=page)


def go_to_page(state: ViewerState, page: int) -> ViewerState:
    last = state.page_count or 1
    return replace(state, current_page=min(max(page, 1), max(last, 1)))


def next_page(state: ViewerState) -> ViewerState:
    return go_to_page(state, state.current_page + 1)


def previous_page(state: ViewerState) -> ViewerState:
    return go_to_page(state, state.current_page - 1)


def highlight(state: ViewerState, fragments: Sequence[str] | None) -> HighlightSets:
    """Highlight the selected term on the displayed page.

    ``None`` fragments mean the page has not rendered yet; nothing is marked.
    """
    if state.selected is None or fragments is None:
        return empty_highlights()
    return locate(fragments, state.selected.term)


async def locate_when_ready(
    get_fragments: Callable[[], Awaitable[Sequence[str] | None]],
    term: str,
    *,
    attempts: int = 5,
    delay: float = 0.1,
) -> HighlightSets:
    """Poll for rendered fragments, then locate the term.

    Gives up with empty sets once ``attempts`` polls found nothing.
    """
    for attempt in range(max(attempts, 1)):
        fragments = await get_fragments()
        if fragments is not None:
            return locate(fragments, term)
        if attempt + 1 < attempts:
            await asyncio.sleep(delay)
    return empty_highlights()
