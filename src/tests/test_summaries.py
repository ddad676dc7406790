from __future__ import annotations

"""Summarizer factory and offline summarizer tests."""

import pytest

from src.summaries.extractive import ExtractiveSummarizer
from src.summaries.llm import (
    GeminiSummarizer,
    OllamaSummarizer,
    SummarizerConfigError,
    build_prompt,
    build_summarizer,
)


def _build(provider: str, **overrides):
    options = {
        "api_key_openai": None,
        "api_key_gemini": None,
        "openai_base_url": "https://api.openai.com/v1",
        "openai_model": None,
        "gemini_model": "gemini-2.0-flash",
        "ollama_base_url": "http://localhost:11434/",
        "ollama_model": "llama3.1",
        "temperature": 0.2,
        "max_tokens": 128,
        "timeout": 5.0,
        "context_max_chars": 100,
    }
    options.update(overrides)
    return build_summarizer(provider, **options)


def test_factory_requires_provider_credentials() -> None:
    with pytest.raises(SummarizerConfigError):
        _build("gemini")
    with pytest.raises(SummarizerConfigError):
        _build("openai", api_key_openai="key")
    with pytest.raises(SummarizerConfigError):
        _build("unknown")


def test_factory_builds_each_provider() -> None:
    assert isinstance(_build("google", api_key_gemini="key"), GeminiSummarizer)
    ollama = _build("ollama")
    assert isinstance(ollama, OllamaSummarizer)
    assert ollama.base_url == "http://localhost:11434"
    assert isinstance(_build("extractive"), ExtractiveSummarizer)


def test_prompt_is_clipped() -> None:
    prompt = build_prompt("  " + "x" * 50 + "  ", max_chars=10)

    assert prompt == "Summarize this: " + "x" * 10


@pytest.mark.anyio
async def test_extractive_summary_truncates_on_word_boundary() -> None:
    summarizer = ExtractiveSummarizer(max_chars=20)

    summary = await summarizer.summarize("breach happened in the east wing yesterday")

    assert summary == "Summary based on the matched text: breach happened in..."
