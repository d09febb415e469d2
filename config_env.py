# Configuration from environment variables (.env or hosting dashboard).
# Loaded once at process start; the resulting settings object is immutable.

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _env_int(key: str, default: int) -> int:
    s = _env(key)
    if not s:
        return default
    try:
        return int(s)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {s!r}")


def _env_float(key: str, default: float) -> float:
    s = _env(key)
    if not s:
        return default
    try:
        return float(s)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {s!r}")


def normalize_database_url(raw_url: str) -> str:
    """Hosted Postgres gives postgres:// but asyncpg needs postgresql+asyncpg://"""
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return raw_url


# ============================================================================
# Defaults
# ============================================================================
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./local_directory.db"
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

DEFAULT_LLM_BASE_URL = "https://api.openai.com/v1"
DEFAULT_VISION_MODEL = "gpt-4o-mini"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"


@dataclass(frozen=True)
class DirectorySettings:
    database_url: str = DEFAULT_DATABASE_URL
    default_page_size: int = DEFAULT_PAGE_SIZE
    max_page_size: int = MAX_PAGE_SIZE

    # OpenAI-compatible provider for visual search
    llm_api_key: str = ""
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    vision_model: str = DEFAULT_VISION_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    http_timeout: float = 30.0

    log_level: str = "INFO"

    def validate(self) -> "DirectorySettings":
        if self.default_page_size <= 0:
            raise ValueError("DEFAULT_PAGE_SIZE must be positive")
        if self.max_page_size < self.default_page_size:
            raise ValueError("MAX_PAGE_SIZE must be >= DEFAULT_PAGE_SIZE")
        if self.http_timeout <= 0:
            raise ValueError("HTTP_TIMEOUT must be positive")
        if not self.database_url:
            raise ValueError("DATABASE_URL must not be empty")
        return self

    @property
    def vision_enabled(self) -> bool:
        return bool(self.llm_api_key)


def load_settings() -> DirectorySettings:
    """Read the environment and return validated settings."""
    raw_url = _env("DATABASE_URL")
    if raw_url:
        database_url = normalize_database_url(raw_url)
    else:
        # Local fallback: async sqlite via aiosqlite
        database_url = _env("DATABASE_URL_FALLBACK", DEFAULT_DATABASE_URL)

    return DirectorySettings(
        database_url=database_url,
        default_page_size=_env_int("DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        max_page_size=_env_int("MAX_PAGE_SIZE", MAX_PAGE_SIZE),
        llm_api_key=_env("OPENAI_API_KEY", _env("LLM_API_KEY")),
        llm_base_url=_env("LLM_BASE_URL", DEFAULT_LLM_BASE_URL),
        vision_model=_env("VISION_MODEL", DEFAULT_VISION_MODEL),
        embedding_model=_env("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
        http_timeout=_env_float("HTTP_TIMEOUT", 30.0),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    ).validate()


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_settings: Optional[DirectorySettings] = None


def get_settings() -> DirectorySettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
