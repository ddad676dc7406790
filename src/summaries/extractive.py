from __future__ import annotations

"""Offline summarizer that clips the context instead of calling a model."""

from dataclasses import dataclass


@dataclass
class ExtractiveSummarizer:
    """Return the leading part of the context as its summary."""
    max_chars: int = 240

    async def summarize(self, text: str) -> str:
        snippet = self._truncate(text.strip())
        if not snippet:
            return ""
        return f"Summary based on the matched text: {snippet}"

    def _truncate(self, text: str) -> str:
        """Trim text to the max character budget without cutting words."""
        if len(text) <= self.max_chars:
            return text
        return text[: self.max_chars].rsplit(" ", 1)[0] + "..."
