"""Telegram Bot API transport."""

from .client import Messenger, TelegramClient

__all__ = ["Messenger", "TelegramClient"]
