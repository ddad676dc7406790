from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from src.app.settings import settings
from src.metadata.transactions import TransactionStore
from src.storage.local import LocalDocumentStorage
from src.summaries.extractive import ExtractiveSummarizer
from src.summaries.llm import (
    GeminiSummarizer,
    OllamaSummarizer,
    OpenAISummarizer,
    build_summarizer,
)


@lru_cache
def get_storage() -> LocalDocumentStorage:
    return LocalDocumentStorage(Path(settings.storage_dir), public_base_url=settings.public_base_url)


@lru_cache
def get_transaction_store() -> TransactionStore | None:
    if not settings.transactions_db_uri:
        return None
    return TransactionStore(settings.transactions_db_uri)


@lru_cache
def get_summarizer() -> GeminiSummarizer | OpenAISummarizer | OllamaSummarizer | ExtractiveSummarizer:
    return build_summarizer(
        settings.summarizer,
        api_key_openai=settings.openai_api_key,
        api_key_gemini=settings.gemini_api_key,
        openai_base_url=settings.openai_base_url,
        openai_model=settings.openai_chat_model,
        gemini_model=settings.gemini_model,
        ollama_base_url=settings.ollama_base_url,
        ollama_model=settings.ollama_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.summary_timeout,
        context_max_chars=settings.llm_context_max_chars,
    )


def reset_dependency_cache() -> None:
    get_storage.cache_clear()
    get_transaction_store.cache_clear()
    get_summarizer.cache_clear()
