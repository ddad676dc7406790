from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional in minimal setups
    load_dotenv = None

if load_dotenv is not None:
    load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    log_level: str = os.getenv("PDFSCAN_LOG_LEVEL", "INFO")
    default_terms_raw: str = os.getenv("PDFSCAN_DEFAULT_TERMS", "breach|training")
    storage_dir_raw: str = os.getenv("PDFSCAN_STORAGE_DIR", "./data/uploads")
    public_base_url: str = os.getenv("PDFSCAN_PUBLIC_BASE_URL", "")
    upload_max_bytes: int = int(os.getenv("PDFSCAN_UPLOAD_MAX_BYTES", str(5 * 1024 * 1024)))
    summarizer_raw: str = os.getenv("PDFSCAN_SUMMARIZER", "extractive")
    summary_timeout: float = float(os.getenv("PDFSCAN_SUMMARY_TIMEOUT", "30"))
    summary_concurrency: int = int(os.getenv("PDFSCAN_SUMMARY_CONCURRENCY", "1"))
    highlight_attempts: int = int(os.getenv("PDFSCAN_HIGHLIGHT_ATTEMPTS", "5"))
    highlight_delay: float = float(os.getenv("PDFSCAN_HIGHLIGHT_DELAY", "0.1"))
    transactions_db_uri_raw: str | None = os.getenv("PDFSCAN_TRANSACTIONS_DB_URI")
    metrics_enabled: bool = _env_flag("PDFSCAN_METRICS_ENABLED", "true")
    api_keys_raw: str = os.getenv("PDFSCAN_API_KEYS", "")
    api_key_map_raw: str = os.getenv("PDFSCAN_API_KEY_MAP", "")
    allow_anonymous_raw: str = os.getenv("PDFSCAN_ALLOW_ANONYMOUS", "false")
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    openai_chat_model: str | None = os.getenv("OPENAI_CHAT_MODEL")
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    ollama_model: str = os.getenv("OLLAMA_MODEL", "llama3.1")
    llm_temperature: float = float(os.getenv("PDFSCAN_LLM_TEMPERATURE", "0.2"))
    llm_max_tokens: int = int(os.getenv("PDFSCAN_LLM_MAX_TOKENS", "256"))
    llm_context_max_chars: int = int(os.getenv("PDFSCAN_LLM_CONTEXT_MAX_CHARS", "4000"))

    @property
    def default_terms(self) -> str:
        return os.getenv("PDFSCAN_DEFAULT_TERMS", self.default_terms_raw)

    @property
    def storage_dir(self) -> str:
        return os.getenv("PDFSCAN_STORAGE_DIR", self.storage_dir_raw)

    @property
    def summarizer(self) -> str:
        return os.getenv("PDFSCAN_SUMMARIZER", self.summarizer_raw)

    @property
    def transactions_db_uri(self) -> str | None:
        return os.getenv("PDFSCAN_TRANSACTIONS_DB_URI", self.transactions_db_uri_raw or "") or None

    @property
    def allow_anonymous(self) -> bool:
        return _env_flag("PDFSCAN_ALLOW_ANONYMOUS", self.allow_anonymous_raw)

    @property
    def api_keys(self) -> set[str]:
        raw = os.getenv("PDFSCAN_API_KEYS", self.api_keys_raw)
        return {value.strip() for value in raw.split(",") if value.strip()}

    @property
    def api_key_map(self) -> dict[str, dict[str, str]]:
        raw = os.getenv("PDFSCAN_API_KEY_MAP", self.api_key_map_raw).strip()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}
        result: dict[str, dict[str, str]] = {}
        for key, value in data.items():
            if not isinstance(key, str) or not isinstance(value, dict):
                continue
            user_id = value.get("user_id")
            if not isinstance(user_id, str) or not user_id.strip():
                user_id = key_user_id(key)
            full_name = value.get("full_name")
            group_name = value.get("group_name")
            result[key] = {
                "user_id": user_id.strip(),
                "full_name": full_name if isinstance(full_name, str) else "Unknown User",
                "group_name": group_name if isinstance(group_name, str) else "",
            }
        return result


def key_user_id(api_key: str) -> str:
    """Derive a stable user ID from an API key."""
    digest = hashlib.sha256(api_key.encode("utf-8")).hexdigest()
    return f"user-{digest[:12]}"


settings = Settings()
