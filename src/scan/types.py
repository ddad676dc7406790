from __future__ import annotations

"""Core data types for term scanning and highlighting."""

from dataclasses import dataclass, field
from typing import NamedTuple, Protocol


SUMMARY_FAILED = "Failed to generate summary."


@dataclass(frozen=True)
class PageText:
    """Extracted text of one page plus its rendered fragments."""
    number: int
    text: str
    fragments: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_fragments(cls, number: int, fragments: list[str] | tuple[str, ...]) -> PageText:
        """Build a page whose text is the fragments joined by single spaces."""
        items = tuple(fragments)
        return cls(number=number, text=" ".join(items), fragments=items)


@dataclass(frozen=True)
class MatchRecord:
    """One occurrence of a term with its comma-delimited context."""
    page: int
    term: str
    context: str
    summary: str | None = None
    offset: int = 0


class HighlightSets(NamedTuple):
    """Fragment indices to mark for a selected match."""
    paragraph: set[int]
    terms: set[int]


@dataclass(frozen=True)
class TextSpan:
    """A slice of context text, flagged when it is a term occurrence."""
    text: str
    highlighted: bool = False


class PageSource(Protocol):
    """Anything that can hand out page text one page at a time."""

    @property
    def page_count(self) -> int: ...

    async def read_page(self, number: int) -> PageText: ...


class Summarizer(Protocol):
    """Text in, summary out; raises on failure."""

    async def summarize(self, text: str) -> str: ...


def empty_highlights() -> HighlightSets:
    return HighlightSets(paragraph=set(), terms=set())
