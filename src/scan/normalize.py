from __future__ import annotations

"""Search term parsing and case-insensitive matching helpers."""

import re
from typing import Iterable

TERM_SEPARATOR = "|"


def normalize_terms(raw: str | Iterable[str] | None, *, unique: bool = False) -> list[str]:
    """Return lower-cased, stripped, non-empty terms in supplied order.

    Accepts either a ``|``-joined query string or an iterable of terms.
    Repeated terms are kept unless ``unique`` is set, so each repeat yields
    its own match records.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        candidates: Iterable[str] = raw.split(TERM_SEPARATOR)
    else:
        candidates = raw
    seen: set[str] = set()
    terms: list[str] = []
    for candidate in candidates:
        term = candidate.strip().lower()
        if not term or (unique and term in seen):
            continue
        seen.add(term)
        terms.append(term)
    return terms


def contains_term(text: str, term: str) -> bool:
    """Case-insensitive substring test."""
    if not term:
        return False
    return term.lower() in text.lower()


def is_blank(text: str) -> bool:
    return not text.strip()


def occurrence_pattern(term: str) -> re.Pattern[str]:
    """Pattern yielding every occurrence of ``term``, overlapping ones included.

    The zero-width lookahead lets ``finditer`` advance one character at a time,
    and offsets refer to the original text rather than a lower-cased copy.
    """
    return re.compile(f"(?=({re.escape(term)}))", re.IGNORECASE)
