"""Telegram bot for passphrase-encrypted credentials and semantic context memory."""

__version__ = "0.1.0"
