from __future__ import annotations

"""Term occurrence search with comma-delimited context windows."""

from typing import Iterable, Iterator

from src.scan.normalize import normalize_terms, occurrence_pattern
from src.scan.types import MatchRecord, PageText

CONTEXT_DELIMITER = ","


def find_occurrences(text: str, term: str) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` offsets of every case-insensitive occurrence."""
    if not term:
        return
    for match in occurrence_pattern(term).finditer(text):
        yield match.start(1), match.end(1)


def context_bounds(text: str, match_start: int, match_end: int) -> tuple[int, int]:
    """Expand a match to the surrounding comma-delimited span.

    The delimiting commas themselves fall outside the returned bounds.
    """
    context_start = text.rfind(CONTEXT_DELIMITER, 0, match_start) + 1
    context_end = text.find(CONTEXT_DELIMITER, match_end)
    if context_end == -1:
        context_end = len(text)
    return context_start, context_end


def extract_context(text: str, match_start: int, match_end: int) -> str:
    start, end = context_bounds(text, match_start, match_end)
    return text[start:end].strip()


def extract(page: PageText, terms: Iterable[str]) -> list[MatchRecord]:
    """Return unsummarized match records for one page.

    Records are ordered by term (as supplied), then by offset. Repeated and
    overlapping occurrences each yield their own record, even when their
    contexts are identical.
    """
    records: list[MatchRecord] = []
    for term in normalize_terms(list(terms)):
        for start, end in find_occurrences(page.text, term):
            records.append(
                MatchRecord(
                    page=page.number,
                    term=term,
                    context=extract_context(page.text, start, end),
                    offset=start,
                )
            )
    return records
