from __future__ import annotations

"""Document-level scanning, ordering and summary fallback tests."""

import asyncio
import random

import pytest

from src.scan.aggregate import format_results_for_copy, scan_document, summarize_or_sentinel
from src.scan.types import SUMMARY_FAILED, MatchRecord, PageText
from src.summaries.llm import SummarizationError

pytestmark = pytest.mark.anyio


class ListSource:
    """Page source over in-memory page strings, recording read order."""

    def __init__(self, pages: list[str]) -> None:
        self._pages = pages
        self.reads: list[int] = []

    @property
    def page_count(self) -> int:
        return len(self._pages)

    async def read_page(self, number: int) -> PageText:
        self.reads.append(number)
        return PageText(number=number, text=self._pages[number - 1])


class EchoSummarizer:
    async def summarize(self, text: str) -> str:
        return f"summary of {text}"


class FailingSummarizer:
    def __init__(self, fail_on: str) -> None:
        self.fail_on = fail_on

    async def summarize(self, text: str) -> str:
        if self.fail_on in text:
            raise SummarizationError("quota exceeded")
        return f"ok: {text}"


class JitterSummarizer:
    """Completes in random order to expose ordering bugs."""

    async def summarize(self, text: str) -> str:
        await asyncio.sleep(random.uniform(0, 0.02))
        return text.upper()


class SlowSummarizer:
    async def summarize(self, text: str) -> str:
        await asyncio.sleep(1)
        return "too late"


PAGES = [
    "training, breach on page one",
    "no terms here",
    "Annual training report, done",
]


async def test_results_follow_page_then_term_order() -> None:
    source = ListSource(PAGES)

    results = await scan_document(source, ["breach", "training"], EchoSummarizer())

    assert [(record.page, record.term, record.context) for record in results] == [
        (1, "breach", "breach on page one"),
        (1, "training", "training"),
        (3, "training", "Annual training report"),
    ]
    assert results[0].summary == "summary of breach on page one"
    assert source.reads == [1, 2, 3]


async def test_query_string_terms_are_split() -> None:
    results = await scan_document(ListSource(PAGES), "Breach|TRAINING", EchoSummarizer())

    assert [record.term for record in results] == ["breach", "training", "training"]


async def test_empty_terms_return_empty_without_reading() -> None:
    source = ListSource(PAGES)

    assert await scan_document(source, [], EchoSummarizer()) == []
    assert source.reads == []


async def test_no_matches_is_empty_result() -> None:
    assert await scan_document(ListSource(PAGES), ["audit"], EchoSummarizer()) == []


async def test_summary_failure_uses_sentinel_and_keeps_other_records() -> None:
    results = await scan_document(
        ListSource(PAGES), ["breach", "training"], FailingSummarizer(fail_on="page one")
    )

    assert len(results) == 3
    assert results[0].summary == SUMMARY_FAILED
    assert results[1].summary == "ok: training"
    assert results[2].summary == "ok: Annual training report"


async def test_summary_timeout_uses_sentinel() -> None:
    summary = await summarize_or_sentinel(SlowSummarizer(), "context", timeout=0.05)

    assert summary == SUMMARY_FAILED


async def test_concurrent_summaries_keep_canonical_order() -> None:
    pages = [", ".join(f"breach {idx}" for idx in range(10))]

    results = await scan_document(
        ListSource(pages), ["breach"], JitterSummarizer(), concurrency=4
    )

    assert [record.context for record in results] == [f"breach {idx}" for idx in range(10)]
    assert [record.summary for record in results] == [f"BREACH {idx}" for idx in range(10)]


async def test_scan_is_idempotent() -> None:
    first = await scan_document(ListSource(PAGES), ["breach", "training"], EchoSummarizer())
    second = await scan_document(ListSource(PAGES), ["breach", "training"], EchoSummarizer())

    assert first == second


def test_format_results_for_copy() -> None:
    records = [
        MatchRecord(page=1, term="breach", context="breach on page one"),
        MatchRecord(page=3, term="training", context="Annual training report"),
    ]

    assert format_results_for_copy(records) == (
        "Page 1: breach on page one\n\nPage 3: Annual training report"
    )
