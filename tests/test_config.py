import pytest

from config_env import (
    DEFAULT_DATABASE_URL,
    DEFAULT_PAGE_SIZE,
    DirectorySettings,
    load_settings,
    normalize_database_url,
)

_ENV_KEYS = (
    "DATABASE_URL", "DATABASE_URL_FALLBACK", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE",
    "OPENAI_API_KEY", "LLM_API_KEY", "LLM_BASE_URL", "HTTP_TIMEOUT", "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestNormalizeUrl:
    @pytest.mark.parametrize("raw,expected", [
        ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ("sqlite+aiosqlite:///./x.db", "sqlite+aiosqlite:///./x.db"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_database_url(raw) == expected


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings()
        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.default_page_size == DEFAULT_PAGE_SIZE
        assert not settings.vision_enabled

    def test_database_url_wins_over_fallback(self, clean_env):
        clean_env.setenv("DATABASE_URL", "postgres://u:p@h/db")
        clean_env.setenv("DATABASE_URL_FALLBACK", "sqlite+aiosqlite://")
        assert load_settings().database_url == "postgresql+asyncpg://u:p@h/db"

    def test_llm_key_aliases(self, clean_env):
        clean_env.setenv("LLM_API_KEY", "sk-alt")
        assert load_settings().llm_api_key == "sk-alt"
        clean_env.setenv("OPENAI_API_KEY", "sk-main")
        settings = load_settings()
        assert settings.llm_api_key == "sk-main"
        assert settings.vision_enabled

    def test_log_level_uppercased(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "debug")
        assert load_settings().log_level == "DEBUG"

    def test_bad_integer(self, clean_env):
        clean_env.setenv("DEFAULT_PAGE_SIZE", "twenty")
        with pytest.raises(ValueError, match="DEFAULT_PAGE_SIZE"):
            load_settings()

    def test_max_below_default_rejected(self, clean_env):
        clean_env.setenv("DEFAULT_PAGE_SIZE", "50")
        clean_env.setenv("MAX_PAGE_SIZE", "10")
        with pytest.raises(ValueError):
            load_settings()


def test_settings_are_immutable():
    settings = DirectorySettings()
    with pytest.raises(AttributeError):
        settings.default_page_size = 5
