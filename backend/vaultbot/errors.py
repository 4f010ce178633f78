"""Error taxonomy for the bot.

Every error carries a ``user_message`` that is safe to send back to the chat.
Details meant for operators go to the logs, never to the user.
"""

from typing import Optional


class VaultBotError(Exception):
    """Base class for all handled bot errors."""

    user_message = "❌ Something went wrong."

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ValidationError(VaultBotError):
    """Malformed command arguments."""

    def __init__(self, usage: str, user_message: Optional[str] = None):
        super().__init__(f"invalid arguments, usage: {usage}", user_message or f"❌ Usage: {usage}")
        self.usage = usage


class NotFound(VaultBotError):
    """A referenced credential or context does not exist in the caller's scope."""

    user_message = "❌ Not found."


class DecryptionFailed(VaultBotError):
    """Wrong passphrase or corrupted ciphertext.

    The two causes are indistinguishable on purpose, so there is exactly one
    message for both.
    """

    user_message = "❌ Decryption failed. Wrong key?"

    def __init__(self, detail: str = "decryption failed"):
        super().__init__(detail)


class UpstreamFailure(VaultBotError):
    """A collaborator (database, embedding, generation, transport) failed."""

    def __init__(self, service: str, detail: str = "", user_message: Optional[str] = None):
        super().__init__(f"{service} failure: {detail}" if detail else f"{service} failure", user_message)
        self.service = service
