"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError on an unusable configuration
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ`` or by passing
    keyword arguments directly.
    """

    # ── API Keys ────────────────────────────────────────────────────────────
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "")
    )
    groq_api_key: str = field(
        default_factory=lambda: os.environ.get("GROQ_API_KEY", "")
    )

    # ── Endpoints ───────────────────────────────────────────────────────────
    ollama_host: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_HOST", "http://localhost:11434")
    )
    groq_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "GROQ_BASE_URL", "https://api.groq.com/openai/v1"
        )
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5001"))
    )

    # ── Search ──────────────────────────────────────────────────────────────
    max_search_results: int = field(
        default_factory=lambda: int(os.environ.get("MAX_SEARCH_RESULTS", "5"))
    )
    max_web_searches: int = field(
        default_factory=lambda: int(os.environ.get("MAX_WEB_SEARCHES", "3"))
    )
    #: Attach Wikipedia sources to backends without built-in search.
    search_supplement: bool = field(
        default_factory=lambda: _env_flag("SEARCH_SUPPLEMENT", "1")
    )

    # ── Orchestration ───────────────────────────────────────────────────────
    max_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENCY", "4"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "60"))
    )

    # ── AI Models ───────────────────────────────────────────────────────────
    #: The only model offered by the web-search backend.
    search_model: str = "claude-haiku-4-5"
    #: Default Groq model, also the fallback when listing fails.
    groq_model: str = "llama-3.3-70b-versatile"

    def validate(self) -> None:
        """Raise ``ValueError`` if any setting is unusable."""
        if self.max_concurrency < 1:
            raise ValueError(
                f"MAX_CONCURRENCY must be at least 1 (got {self.max_concurrency})."
            )
        parsed = urlparse(self.ollama_host)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"OLLAMA_HOST must be an http(s) URL (got {self.ollama_host!r})."
            )
