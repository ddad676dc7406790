from __future__ import annotations

"""CLI utility to scan a local PDF for terms and print each match."""

import argparse
import asyncio
from pathlib import Path

from src.app.dependencies import get_summarizer
from src.app.settings import settings
from src.loaders.pdf import DocumentUnreadableError, open_pdf_file
from src.scan.aggregate import format_results_for_copy, scan_document
from src.scan.normalize import normalize_terms
from src.summaries.extractive import ExtractiveSummarizer


async def _scan(path: Path, terms: list[str], offline: bool) -> list:
    summarizer = ExtractiveSummarizer() if offline else get_summarizer()
    with open_pdf_file(path) as document:
        return await scan_document(
            document,
            terms,
            summarizer,
            concurrency=settings.summary_concurrency,
            timeout=settings.summary_timeout,
        )


def main() -> None:
    """Scan a PDF using the configured summarizer."""
    parser = argparse.ArgumentParser(description="Scan a PDF for terms and summarize matches.")
    parser.add_argument("pdf", type=Path, help="Path to the PDF file.")
    parser.add_argument(
        "--term",
        action="append",
        dest="terms",
        default=[],
        help="Search term (repeatable). Defaults to PDFSCAN_DEFAULT_TERMS.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the extractive summarizer instead of the configured provider.",
    )
    parser.add_argument(
        "--copy",
        action="store_true",
        help="Print results in the 'Page N: context' copy format only.",
    )
    args = parser.parse_args()

    terms = normalize_terms(args.terms) or normalize_terms(settings.default_terms)
    if not terms:
        raise SystemExit("Provide at least one --term")

    try:
        results = asyncio.run(_scan(args.pdf, terms, args.offline))
    except DocumentUnreadableError as exc:
        raise SystemExit(f"Cannot read {args.pdf}: {exc}") from exc

    if args.copy:
        print(format_results_for_copy(results))
        return

    print(f"PDF: {args.pdf}")
    print(f"Terms: {terms}")
    print(f"Matches: {len(results)}\n")
    for record in results:
        print(f"- (p.{record.page}) [{record.term}] {record.context}")
        print(f"  {record.summary}")


if __name__ == "__main__":
    main()
