"""Tests for configuration precedence."""
import pytest

from vaultbot.config import BotConfig

ENV_VARS = [
    "TELEGRAM_BOT_TOKEN", "TELEGRAM_API_URL", "TELEGRAM_WEBHOOK_SECRET", "DATABASE_URL",
    "VAULTBOT_LOG_DIR", "GEMINI_API_KEY", "VAULTBOT_GEMINI_MODEL", "VOYAGE_API_KEY",
    "VAULTBOT_EMBEDDING_MODEL", "PENDING_TTL_SECONDS", "PENDING_SWEEP_INTERVAL",
    "CONTEXT_SIMILARITY_THRESHOLD", "CONTEXT_TOP_K", "VAULT_PER_RECORD_SALT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestBotConfig:

    def test_defaults(self):
        config = BotConfig()
        assert config.telegram_api_url == "https://api.telegram.org"
        assert config.pending_ttl_seconds == 60
        assert config.pending_sweep_interval == 30
        assert config.similarity_threshold == 0.5
        assert config.top_k == 4
        assert config.per_record_salt is False
        assert config.gemini_model == "gemini-1.5-flash"
        assert config.embedding_model == "voyage-3"
        assert not config.uses_database

    def test_env_overrides_defaults(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "env-token")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        monkeypatch.setenv("PENDING_TTL_SECONDS", "90")
        monkeypatch.setenv("CONTEXT_SIMILARITY_THRESHOLD", "0.7")
        monkeypatch.setenv("CONTEXT_TOP_K", "2")
        monkeypatch.setenv("VAULT_PER_RECORD_SALT", "yes")

        config = BotConfig()
        assert config.telegram_bot_token == "env-token"
        assert config.uses_database
        assert config.pending_ttl_seconds == 90
        assert config.similarity_threshold == 0.7
        assert config.top_k == 2
        assert config.per_record_salt is True

    def test_explicit_beats_env(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "env-token")
        monkeypatch.setenv("VAULT_PER_RECORD_SALT", "true")
        monkeypatch.setenv("CONTEXT_SIMILARITY_THRESHOLD", "0.7")

        config = BotConfig(telegram_bot_token="arg-token", per_record_salt=False, similarity_threshold=0.0)
        assert config.telegram_bot_token == "arg-token"
        assert config.per_record_salt is False
        assert config.similarity_threshold == 0.0

    def test_explicit_zero_and_negative_values_are_kept(self, monkeypatch):
        monkeypatch.setenv("PENDING_TTL_SECONDS", "90")
        monkeypatch.setenv("CONTEXT_TOP_K", "2")
        monkeypatch.setenv("CONTEXT_SIMILARITY_THRESHOLD", "0.7")

        config = BotConfig(pending_ttl_seconds=0, top_k=0, similarity_threshold=-0.25, pending_sweep_interval=0)
        assert config.pending_ttl_seconds == 0
        assert config.top_k == 0
        assert config.similarity_threshold == -0.25
        assert config.pending_sweep_interval == 0
