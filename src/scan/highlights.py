from __future__ import annotations

"""Fragment-level highlight location and in-context term marking."""

import re
from typing import Sequence

from src.scan.normalize import contains_term, is_blank, normalize_terms
from src.scan.types import HighlightSets, TextSpan, empty_highlights


def locate(fragments: Sequence[str] | None, term: str) -> HighlightSets:
    """Find the paragraph around the first term hit and every fragment hit.

    Blank fragments separate paragraphs. Only the first fragment containing
    the term decides the paragraph; later hits are still reported in
    ``terms``.
    """
    if not fragments or not term.strip():
        return empty_highlights()
    term_indices = {
        idx for idx, fragment in enumerate(fragments) if contains_term(fragment, term)
    }
    if not term_indices:
        return empty_highlights()
    first = min(term_indices)

    start = 0
    for idx in range(first, -1, -1):
        if is_blank(fragments[idx]):
            start = idx + 1
            break

    end = len(fragments) - 1
    for idx in range(first, len(fragments)):
        if is_blank(fragments[idx]):
            end = idx - 1
            break

    return HighlightSets(paragraph=set(range(start, end + 1)), terms=term_indices)


def mark_terms(text: str, terms: Sequence[str]) -> list[TextSpan]:
    """Split text into spans, flagging each term occurrence."""
    if not text:
        return []
    tokens = sorted(normalize_terms(list(terms), unique=True), key=len, reverse=True)
    if not tokens:
        return [TextSpan(text=text)]
    pattern = re.compile("|".join(re.escape(token) for token in tokens), re.IGNORECASE)
    spans: list[TextSpan] = []
    cursor = 0
    for match in pattern.finditer(text):
        if match.start() > cursor:
            spans.append(TextSpan(text=text[cursor:match.start()]))
        spans.append(TextSpan(text=match.group(0), highlighted=True))
        cursor = match.end()
    if cursor < len(text):
        spans.append(TextSpan(text=text[cursor:]))
    return spans
