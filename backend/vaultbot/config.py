"""Bot configuration with explicit argument > env var > defaults precedence."""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BotConfig:
    """Configuration for the bot process."""
    telegram_bot_token: str = ""
    telegram_api_url: str = ""
    telegram_webhook_secret: str = ""
    database_url: str = ""
    log_dir: str = ""

    # Embedding / generation providers
    gemini_api_key: str = ""
    gemini_model: str = ""
    voyage_api_key: str = ""
    embedding_model: str = ""

    # Pending passphrase challenges
    pending_ttl_seconds: float | None = None
    pending_sweep_interval: float | None = None

    # Context retrieval
    similarity_threshold: float | None = None
    top_k: int | None = None

    # Key derivation
    per_record_salt: bool | None = None

    # How long bot replies stay in the chat (seconds, 0 = keep)
    status_message_lifetime: float = 5
    context_list_lifetime: float = 15
    credential_reveal_lifetime: float = 30

    def __post_init__(self):
        # Apply env var defaults for anything not passed explicitly
        if not self.telegram_bot_token:
            self.telegram_bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "")
        if not self.telegram_api_url:
            self.telegram_api_url = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
        if not self.telegram_webhook_secret:
            self.telegram_webhook_secret = os.getenv("TELEGRAM_WEBHOOK_SECRET", "")
        if not self.database_url:
            self.database_url = os.getenv("DATABASE_URL", "")
        if not self.log_dir:
            self.log_dir = os.getenv("VAULTBOT_LOG_DIR", "")

        if not self.gemini_api_key:
            self.gemini_api_key = os.getenv("GEMINI_API_KEY", "")
        if not self.gemini_model:
            self.gemini_model = os.getenv("VAULTBOT_GEMINI_MODEL", "gemini-1.5-flash")
        if not self.voyage_api_key:
            self.voyage_api_key = os.getenv("VOYAGE_API_KEY", "")
        if not self.embedding_model:
            self.embedding_model = os.getenv("VAULTBOT_EMBEDDING_MODEL", "voyage-3")

        if self.pending_ttl_seconds is None:
            self.pending_ttl_seconds = float(os.getenv("PENDING_TTL_SECONDS", "60"))
        if self.pending_sweep_interval is None:
            self.pending_sweep_interval = float(os.getenv("PENDING_SWEEP_INTERVAL", "30"))

        if self.similarity_threshold is None:
            self.similarity_threshold = float(os.getenv("CONTEXT_SIMILARITY_THRESHOLD", "0.5"))
        if self.top_k is None:
            self.top_k = int(os.getenv("CONTEXT_TOP_K", "4"))

        if self.per_record_salt is None:
            self.per_record_salt = _env_bool("VAULT_PER_RECORD_SALT")

    @property
    def uses_database(self) -> bool:
        """Whether records go to PostgreSQL rather than process memory."""
        return bool(self.database_url)
