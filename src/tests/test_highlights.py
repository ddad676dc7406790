from __future__ import annotations

"""Highlight locator and context marking tests."""

from src.scan.highlights import locate, mark_terms


def test_locate_paragraph_between_blank_fragments() -> None:
    fragments = ["", "The breach was", "bad.", "", "Unrelated text."]

    paragraph, terms = locate(fragments, "breach")

    assert paragraph == {1, 2}
    assert terms == {1}


def test_locate_without_match_returns_empty_sets() -> None:
    result = locate(["Nothing", "here"], "breach")

    assert result.paragraph == set()
    assert result.terms == set()


def test_locate_without_blank_fragments_spans_page() -> None:
    paragraph, terms = locate(["Intro", "a BREACH", "outro"], "breach")

    assert paragraph == {0, 1, 2}
    assert terms == {1}


def test_only_first_occurrence_defines_paragraph() -> None:
    fragments = ["Start", "breach one", " ", "middle", "", "breach two", "tail"]

    paragraph, terms = locate(fragments, "breach")

    assert paragraph == {0, 1}
    assert terms == {1, 5}


def test_locate_tolerates_missing_fragments() -> None:
    assert locate([], "breach") == (set(), set())
    assert locate(None, "breach") == (set(), set())


def test_mark_terms_flags_each_occurrence() -> None:
    spans = mark_terms("Training after the breach, more training", ["breach", "training"])

    assert [span.text for span in spans if span.highlighted] == ["Training", "breach", "training"]
    assert "".join(span.text for span in spans) == "Training after the breach, more training"


def test_mark_terms_prefers_longer_terms() -> None:
    spans = mark_terms("data breaches", ["breach", "breaches"])

    assert [span.text for span in spans if span.highlighted] == ["breaches"]


def test_mark_terms_without_terms_returns_plain_span() -> None:
    spans = mark_terms("plain text", [])

    assert len(spans) == 1
    assert spans[0].highlighted is False
