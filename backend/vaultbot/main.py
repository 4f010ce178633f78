"""
FastAPI app for the vault bot.

Receives Telegram webhook updates and routes them to the dispatcher.
Run with: uvicorn vaultbot.main:app
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .ai import EmbeddingClient, GenerationClient
from .api.webhook import router as webhook_router
from .bot import SecretVaultDispatcher
from .config import BotConfig
from .context import ContextIndex
from .db import (
    ContextRepository,
    CredentialRepository,
    InMemoryContextRepository,
    InMemoryCredentialRepository,
    close_db,
    init_db,
)
from .logging import get_logger, setup_logging
from .telegram import TelegramClient
from .vault import SecretCipher, pending_registry


def build_dispatcher(config: BotConfig, messenger, embedder, generator) -> SecretVaultDispatcher:
    """Wire the dispatcher to storage chosen by config."""
    if config.uses_database:
        credentials = CredentialRepository()
        contexts = ContextRepository()
    else:
        credentials = InMemoryCredentialRepository()
        contexts = InMemoryContextRepository()

    pending_registry.ttl_seconds = config.pending_ttl_seconds

    return SecretVaultDispatcher(
        messenger=messenger,
        registry=pending_registry,
        cipher=SecretCipher(per_record_salt=config.per_record_salt),
        credentials=credentials,
        contexts=ContextIndex(contexts),
        embedder=embedder,
        generator=generator,
        config=config,
    )


def create_app(config: Optional[BotConfig] = None) -> FastAPI:
    """Create the bot's FastAPI app."""
    config = config or BotConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        setup_logging(config.log_dir or None)
        logger = get_logger("main")
        logger.info("Starting vault bot...")

        if config.uses_database:
            await init_db(config.database_url)
        else:
            logger.warning("DATABASE_URL not set - credentials and contexts are kept in memory only")

        telegram = TelegramClient(config.telegram_bot_token, config.telegram_api_url)
        embedder = EmbeddingClient(config.voyage_api_key, config.embedding_model)
        generator = GenerationClient(config.gemini_api_key, config.gemini_model)

        app.state.config = config
        app.state.dispatcher = build_dispatcher(config, telegram, embedder, generator)

        janitor = asyncio.create_task(
            app.state.dispatcher.registry.run_janitor(config.pending_sweep_interval)
        )
        try:
            yield
        finally:
            logger.info("Shutting down...")
            janitor.cancel()
            await asyncio.gather(janitor, return_exceptions=True)
            await telegram.close()
            await embedder.close()
            await generator.close()
            if config.uses_database:
                await close_db()

    app = FastAPI(
        title="Vault Bot",
        description="Telegram bot for passphrase-encrypted credentials and semantic context",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.include_router(webhook_router)
    return app


app = create_app()


# ---------- Entry Point ----------

def run():
    """Run the server."""
    import os

    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    run()
