"""Chat command handling."""

from .commands import Command, parse_command
from .dispatcher import SecretVaultDispatcher

__all__ = ["Command", "parse_command", "SecretVaultDispatcher"]
