from __future__ import annotations

"""LLM summarizers for match contexts."""

from dataclasses import dataclass
import asyncio
import logging

import httpx

from src.summaries.extractive import ExtractiveSummarizer


class SummarizationError(RuntimeError):
    """Raised when a summary request fails or the response is invalid."""
    pass


class SummarizerConfigError(ValueError):
    """Raised when a summarizer provider is missing required settings."""
    pass


logger = logging.getLogger(__name__)


_PROMPT_PREFIX = "Summarize this: "


def build_prompt(text: str, max_chars: int) -> str:
    """Build the summary prompt, clipping oversized contexts."""
    content = text.strip()
    if max_chars > 0 and len(content) > max_chars:
        content = content[:max_chars]
    return f"{_PROMPT_PREFIX}{content}"


@dataclass(frozen=True)
class GeminiSummarizer:
    """Summarizer backed by Gemini generative models."""
    api_key: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float
    context_max_chars: int

    async def summarize(self, text: str) -> str:
        """Summarize text using Gemini."""
        try:
            import google.generativeai as genai
        except ImportError as exc:
            raise SummarizationError("google-generativeai is required for GeminiSummarizer") from exc

        prompt = build_prompt(text, self.context_max_chars)

        def _run() -> str:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(self.model)
            response = model.generate_content(
                prompt,
                generation_config={
                    "temperature": self.temperature,
                    "max_output_tokens": self.max_tokens,
                },
            )
            return getattr(response, "text", "") or ""

        try:
            content = await asyncio.wait_for(asyncio.to_thread(_run), timeout=self.timeout)
        except Exception as exc:
            raise SummarizationError(str(exc)) from exc
        return _require_text(content, "gemini")


@dataclass(frozen=True)
class OpenAISummarizer:
    """Summarizer backed by OpenAI chat completions."""
    api_key: str
    base_url: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float
    context_max_chars: int

    async def summarize(self, text: str) -> str:
        """Summarize text using OpenAI chat completions."""
        payload = {
            "model": self.model,
            "messages": [
                {"role": "user", "content": build_prompt(text, self.context_max_chars)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise SummarizationError(str(exc)) from exc
        except ValueError as exc:
            raise SummarizationError("Invalid OpenAI response") from exc

        choices = data.get("choices") or []
        if not choices:
            raise SummarizationError("Invalid OpenAI response")
        message = choices[0].get("message") or {}
        return _require_text(message.get("content"), "openai")


@dataclass(frozen=True)
class OllamaSummarizer:
    """Summarizer backed by the Ollama chat API."""
    base_url: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float
    context_max_chars: int

    async def summarize(self, text: str) -> str:
        """Summarize text using Ollama."""
        payload = {
            "model": self.model,
            "messages": [
                {"role": "user", "content": build_prompt(text, self.context_max_chars)},
            ],
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/api/chat", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise SummarizationError(str(exc)) from exc
        except ValueError as exc:
            raise SummarizationError("Invalid Ollama response") from exc
        message = data.get("message") or {}
        return _require_text(message.get("content"), "ollama")


def _require_text(content: object, provider: str) -> str:
    """Return stripped model output or fail on empty/non-text content."""
    if not isinstance(content, str) or not content.strip():
        logger.warning("summary_empty_response", extra={"provider": provider})
        raise SummarizationError(f"Empty or invalid {provider} summary")
    return content.strip()


def build_summarizer(
    provider: str,
    *,
    api_key_openai: str | None,
    api_key_gemini: str | None,
    openai_base_url: str,
    openai_model: str | None,
    gemini_model: str | None,
    ollama_base_url: str,
    ollama_model: str,
    temperature: float,
    max_tokens: int,
    timeout: float,
    context_max_chars: int,
) -> GeminiSummarizer | OpenAISummarizer | OllamaSummarizer | ExtractiveSummarizer:
    """Factory for summarizers based on provider."""
    normalized = provider.strip().lower()
    if normalized in {"gemini", "google"}:
        if not api_key_gemini:
            raise SummarizerConfigError("GEMINI_API_KEY is required for Gemini provider")
        if not gemini_model:
            raise SummarizerConfigError("GEMINI_MODEL is required for Gemini provider")
        return GeminiSummarizer(
            api_key=api_key_gemini,
            model=gemini_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            context_max_chars=context_max_chars,
        )
    if normalized == "openai":
        if not api_key_openai:
            raise SummarizerConfigError("OPENAI_API_KEY is required for OpenAI provider")
        if not openai_model:
            raise SummarizerConfigError("OPENAI_CHAT_MODEL is required for OpenAI provider")
        return OpenAISummarizer(
            api_key=api_key_openai,
            base_url=openai_base_url.rstrip("/"),
            model=openai_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            context_max_chars=context_max_chars,
        )
    if normalized == "ollama":
        return OllamaSummarizer(
            base_url=ollama_base_url.rstrip("/"),
            model=ollama_model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
            context_max_chars=context_max_chars,
        )
    if normalized == "extractive":
        return ExtractiveSummarizer()
    raise SummarizerConfigError(f"Unsupported summarizer provider: {provider}")
