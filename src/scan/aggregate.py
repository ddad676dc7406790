from __future__ import annotations

"""Whole-document scanning: pages in order, summaries in canonical order."""

import asyncio
import logging
from dataclasses import replace
from typing import Sequence

from src.scan.extractor import extract
from src.scan.normalize import normalize_terms
from src.scan.types import SUMMARY_FAILED, MatchRecord, PageSource, Summarizer

logger = logging.getLogger(__name__)


async def summarize_or_sentinel(
    summarizer: Summarizer,
    text: str,
    timeout: float | None = None,
) -> str:
    """Summarize text, falling back to the sentinel on any failure."""
    try:
        if timeout is not None and timeout > 0:
            summary = await asyncio.wait_for(summarizer.summarize(text), timeout=timeout)
        else:
            summary = await summarizer.summarize(text)
    except Exception as exc:
        logger.warning(
            "summary_failed",
            extra={"error": type(exc).__name__, "context_chars": len(text)},
        )
        return SUMMARY_FAILED
    if not isinstance(summary, str):
        logger.warning("summary_failed", extra={"error": "non_text_summary"})
        return SUMMARY_FAILED
    return summary.strip()


async def summarize_records(
    records: Sequence[MatchRecord],
    summarizer: Summarizer,
    *,
    concurrency: int = 1,
    timeout: float | None = None,
) -> list[MatchRecord]:
    """Attach summaries to records, keeping their order."""
    if not records:
        return []
    if concurrency <= 1:
        summarized: list[MatchRecord] = []
        for record in records:
            summary = await summarize_or_sentinel(summarizer, record.context, timeout)
            summarized.append(replace(record, summary=summary))
        return summarized

    semaphore = asyncio.Semaphore(concurrency)

    async def _bounded(record: MatchRecord) -> MatchRecord:
        async with semaphore:
            summary = await summarize_or_sentinel(summarizer, record.context, timeout)
        return replace(record, summary=summary)

    return list(await asyncio.gather(*(_bounded(record) for record in records)))


async def scan_document(
    source: PageSource,
    terms: Sequence[str] | str,
    summarizer: Summarizer,
    *,
    concurrency: int = 1,
    timeout: float | None = None,
) -> list[MatchRecord]:
    """Scan every page for every term and summarize each match.

    Pages are read one after another; the result is ordered by page, then
    term, then offset regardless of how summaries complete.
    """
    normalized = normalize_terms(terms)
    if not normalized:
        return []
    page_count = source.page_count
    logger.info("scan_started", extra={"page_count": page_count, "terms": normalized})
    results: list[MatchRecord] = []
    for number in range(1, page_count + 1):
        page = await source.read_page(number)
        records = extract(page, normalized)
        if not records:
            continue
        results.extend(
            await summarize_records(
                records,
                summarizer,
                concurrency=concurrency,
                timeout=timeout,
            )
        )
    failed = sum(1 for record in results if record.summary == SUMMARY_FAILED)
    logger.info(
        "scan_completed",
        extra={"page_count": page_count, "matches": len(results), "summary_failures": failed},
    )
    return results


def format_results_for_copy(records: Sequence[MatchRecord]) -> str:
    """Render results as ``Page N: context`` blocks separated by blank lines."""
    return "\n\n".join(f"Page {record.page}: {record.context}" for record in records)
