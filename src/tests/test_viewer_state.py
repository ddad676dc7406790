from __future__ import annotations

"""Viewer session state transition tests."""

import pytest

from src.scan.types import MatchRecord
from src.viewer.state import (
    ViewerState,
    apply_scan,
    begin_document,
    fail_scan,
    go_to_page,
    highlight,
    locate_when_ready,
    next_page,
    previous_page,
    select_match,
    set_page_count,
)


def records() -> list[MatchRecord]:
    return [
        MatchRecord(page=2, term="breach", context="breach on page two", summary="s1"),
        MatchRecord(page=4, term="training", context="training on page four", summary="s2"),
    ]


def test_begin_document_clears_results_and_selection() -> None:
    state = apply_scan(begin_document(ViewerState(), "a.pdf"), 1, records())
    assert state.selected is not None

    reloaded = begin_document(state, "b.pdf")

    assert reloaded.document_version == state.document_version + 1
    assert reloaded.document_url == "b.pdf"
    assert reloaded.results == ()
    assert reloaded.selected is None
    assert reloaded.current_page == 1
    assert reloaded.loading is True


def test_apply_scan_selects_first_record_and_page() -> None:
    state = begin_document(ViewerState(), "a.pdf")
    items = records()

    state = apply_scan(state, state.document_version, items)

    assert state.selected is items[0]
    assert state.current_page == 2
    assert state.loading is False


def test_apply_scan_with_no_matches_keeps_selection_empty() -> None:
    state = begin_document(ViewerState(), "a.pdf")

    state = apply_scan(state, state.document_version, [])

    assert state.results == ()
    assert state.selected is None
    assert state.loading is False


def test_stale_scan_is_discarded() -> None:
    first = begin_document(ViewerState(), "old.pdf")
    stale_version = first.document_version
    current = begin_document(first, "new.pdf")

    after = apply_scan(current, stale_version, records())
    failed = fail_scan(current, stale_version, "boom")

    assert after is current
    assert failed is current


def test_fail_scan_sets_error_without_results() -> None:
    state = begin_document(ViewerState(), "a.pdf")

    state = fail_scan(state, state.document_version, "Error while searching PDF")

    assert state.error == "Error while searching PDF"
    assert state.results == ()
    assert state.loading is False


def test_select_match_uses_identity() -> None:
    state = begin_document(ViewerState(), "a.pdf")
    items = records()
    state = apply_scan(state, state.document_version, items)

    state = select_match(state, items[1])

    assert state.selected is items[1]
    assert state.current_page == 4
    with pytest.raises(ValueError):
        select_match(state, MatchRecord(page=4, term="training", context="training on page four", summary="s2"))


def test_page_navigation_is_clamped() -> None:
    state = set_page_count(ViewerState(), 3)

    assert previous_page(state).current_page == 1
    state = next_page(next_page(next_page(state)))
    assert state.current_page == 3
    assert go_to_page(state, 0).current_page == 1
    assert go_to_page(ViewerState(), 5).current_page == 1


def test_highlight_waits_for_fragments_and_selection() -> None:
    state = begin_document(ViewerState(), "a.pdf")
    assert highlight(state, ["breach"]) == (set(), set())

    state = apply_scan(state, state.document_version, records())
    assert highlight(state, None) == (set(), set())
    assert highlight(state, ["", "a breach", "x", "", "y"]) == ({1, 2}, {1})


@pytest.mark.anyio
async def test_locate_when_ready_polls_until_fragments_arrive() -> None:
    responses = [None, None, ["", "The breach was", "bad.", "", "Unrelated text."]]

    async def get_fragments():
        return responses.pop(0)

    result = await locate_when_ready(get_fragments, "breach", attempts=5, delay=0)

    assert result == ({1, 2}, {1})
    assert responses == []


@pytest.mark.anyio
async def test_locate_when_ready_gives_up_quietly() -> None:
    calls = []

    async def get_fragments():
        calls.append(1)
        return None

    result = await locate_when_ready(get_fragments, "breach", attempts=3, delay=0)

    assert result == (set(), set())
    assert len(calls) == 3
