"""
Command dispatcher for the credential vault and context memory.

Two-step flows (/creds, /show) park a challenge in the pending registry and
treat the user's next message as the passphrase. There is no separate mode
field: the registry entry is the state.

Messages that carried a password or passphrase are deleted after use, along
with the bot's own prompts. Deletion is best-effort and only shortens the
exposure window.
"""

import asyncio
from typing import Optional, Protocol

from ..ai import Embedder, TextGenerator
from ..config import BotConfig
from ..context import ContextIndex
from ..db.models import CredentialRecord, Scope
from ..errors import DecryptionFailed, NotFound, UpstreamFailure, VaultBotError
from ..logging import get_logger
from ..telegram.client import Messenger
from ..vault import (
    AwaitingDecryptionKey,
    AwaitingEncryptionKey,
    PendingChallenge,
    PendingOperationRegistry,
    SecretCipher,
)
from .commands import (
    HELP_TEXT,
    WELCOME_TEXT,
    Command,
    parse_command,
    parse_context,
    parse_creds,
    parse_query,
    parse_show,
)

logger = get_logger("bot")

ENCRYPTION_PROMPT = "🔑 Please provide the encryption key (send as a separate message):"
DECRYPTION_PROMPT = "🔑 Please provide the decryption key:"

# Commands that run even while a passphrase is pending
PRIORITY_COMMANDS = frozenset({"start", "help", "creds"})


class CredentialStore(Protocol):
    async def create(
        self, scope: Scope, title: str, username: str, encrypted_password: str
    ) -> CredentialRecord: ...

    async def get(self, scope: Scope, credential_id: int) -> Optional[CredentialRecord]: ...

    async def list(self, scope: Scope) -> list[CredentialRecord]: ...


def build_grounded_prompt(contexts: list[str], prompt: str) -> str:
    context_text = "\n\n".join(contexts)
    return (
        f"Context:\n{context_text}\n\n"
        f"Prompt: {prompt}\n\n"
        "Please provide insights based on the given context."
    )


class SecretVaultDispatcher:
    """Single entry point for inbound chat messages."""

    def __init__(
        self,
        messenger: Messenger,
        registry: PendingOperationRegistry,
        cipher: SecretCipher,
        credentials: CredentialStore,
        contexts: ContextIndex,
        embedder: Embedder,
        generator: TextGenerator,
        config: BotConfig,
    ):
        self.messenger = messenger
        self.registry = registry
        self.cipher = cipher
        self.credentials = credentials
        self.contexts = contexts
        self.embedder = embedder
        self.generator = generator
        self.config = config

    async def handle(
        self,
        chat_id: int,
        user_id: int,
        text: str,
        message_id: Optional[int] = None,
    ) -> None:
        """Process one inbound message. Every outbound action is issued before returning.

        Messages from the same (chat, user) pair are handled one at a time.
        """
        scope = Scope(chat_id, user_id)
        ids = {"chat_id": chat_id, "user_id": user_id}
        lock = self.registry.lock(chat_id, user_id)
        async with lock:
            try:
                await self._dispatch(scope, text.strip(), message_id)
            except VaultBotError as e:
                if isinstance(e, UpstreamFailure):
                    logger.error(f"{e}", exc_info=e.__cause__, extra=ids)
                else:
                    logger.info(f"Rejected: {type(e).__name__}", extra=ids)
                await self._notify(chat_id, e.user_message, self.config.status_message_lifetime)
            except Exception:
                logger.exception("Unhandled error while handling message", extra=ids)
                await self._notify(chat_id, VaultBotError.user_message, self.config.status_message_lifetime)

    # --- Routing ---

    async def _dispatch(self, scope: Scope, text: str, message_id: Optional[int]) -> None:
        command = parse_command(text)

        # A pending challenge claims the next message unless the command outranks it
        if not self._outranks_challenge(scope, command):
            challenge = self.registry.try_consume(scope.chat_id, scope.user_id)
            if challenge is not None:
                await self._complete_challenge(scope, challenge, text, message_id)
                return

        handler = self._handlers().get(command.name) if command else None
        if handler is None:
            logger.debug(f"Ignoring message from chat={scope.chat_id}: no command and no pending challenge")
            return
        await handler(scope, command, message_id)

    def _outranks_challenge(self, scope: Scope, command: Optional[Command]) -> bool:
        """/start, /help and /creds always run. /show runs unless a store is awaiting its key."""
        if command is None:
            return False
        if command.name in PRIORITY_COMMANDS:
            return True
        if command.name == "show":
            pending = self.registry.peek(scope.chat_id, scope.user_id)
            return pending is None or not isinstance(pending.operation, AwaitingEncryptionKey)
        return False

    def _handlers(self) -> dict:
        return {
            "start": self._start,
            "help": self._help,
            "creds": self._begin_store_credential,
            "show": self._begin_show_credential,
            "listcreds": self._list_credentials,
            "context": self._store_context,
            "getcontext": self._query_context,
            "listcontext": self._list_context,
        }

    async def _complete_challenge(
        self,
        scope: Scope,
        challenge: PendingChallenge,
        passphrase: str,
        message_id: Optional[int],
    ) -> None:
        # The reply is a passphrase and the prompt asked for it: both go
        await self._delete(scope.chat_id, message_id)
        await self._delete(scope.chat_id, challenge.prompt_message_id)

        operation = challenge.operation
        if isinstance(operation, AwaitingEncryptionKey):
            await self._finish_store_credential(scope, operation, passphrase)
        elif isinstance(operation, AwaitingDecryptionKey):
            await self._finish_show_credential(scope, operation, passphrase)
        else:
            raise TypeError(f"Unknown pending operation {type(operation).__name__}")

    # --- Simple commands ---

    async def _start(self, scope: Scope, command: Command, message_id: Optional[int]) -> None:
        await self.messenger.send_text(scope.chat_id, WELCOME_TEXT)

    async def _help(self, scope: Scope, command: Command, message_id: Optional[int]) -> None:
        await self.messenger.send_text(scope.chat_id, HELP_TEXT)

    # --- Credential store flow ---

    async def _begin_store_credential(
        self, scope: Scope, command: Command, message_id: Optional[int]
    ) -> None:
        # The command text may hold a password even when malformed
        await self._delete(scope.chat_id, message_id)

        title, username, password = parse_creds(command.args)
        prompt_id = await self.messenger.send_text(scope.chat_id, ENCRYPTION_PROMPT)
        await self._begin(
            scope, AwaitingEncryptionKey(title=title, username=username, password=password), prompt_id
        )

    async def _finish_store_credential(
        self, scope: Scope, operation: AwaitingEncryptionKey, passphrase: str
    ) -> None:
        failure = "❌ Failed to store credentials."
        try:
            encrypted = await asyncio.to_thread(self.cipher.encrypt, operation.password, passphrase)
        except Exception as e:
            raise UpstreamFailure("encryption", type(e).__name__, failure) from e

        try:
            record = await self.credentials.create(
                scope, operation.title, operation.username, encrypted
            )
        except Exception as e:
            raise UpstreamFailure("database", "credential insert failed", failure) from e

        logger.info(f"Stored credential {record.id} for chat={scope.chat_id}")
        await self._notify(
            scope.chat_id, "✅ Credentials stored successfully!", self.config.status_message_lifetime
        )

    # --- Credential show flow ---

    async def _begin_show_credential(
        self, scope: Scope, command: Command, message_id: Optional[int]
    ) -> None:
        credential_id = parse_show(command.args)
        record = await self._load_credential(scope, credential_id)

        await self._delete(scope.chat_id, message_id)
        prompt_id = await self.messenger.send_text(scope.chat_id, DECRYPTION_PROMPT)
        await self._begin(
            scope,
            AwaitingDecryptionKey(
                credential_id=record.id, encrypted_password=record.encrypted_password
            ),
            prompt_id,
        )

    async def _finish_show_credential(
        self, scope: Scope, operation: AwaitingDecryptionKey, passphrase: str
    ) -> None:
        try:
            password = await asyncio.to_thread(
                self.cipher.decrypt, operation.encrypted_password, passphrase
            )
        except DecryptionFailed:
            logger.info(f"Decryption failed for credential {operation.credential_id}")
            raise

        record = await self._load_credential(scope, operation.credential_id)
        await self.messenger.send_text(
            scope.chat_id,
            f"🔐 Credential Details:\nTitle: {record.title}\n"
            f"Username: {record.username}\nPassword: {password}",
            delete_after=self.config.credential_reveal_lifetime,
        )
        logger.info(f"Revealed credential {record.id} for chat={scope.chat_id}")

    async def _list_credentials(
        self, scope: Scope, command: Command, message_id: Optional[int]
    ) -> None:
        try:
            records = await self.credentials.list(scope)
        except Exception as e:
            raise UpstreamFailure("database", "credential list failed", "❌ Failed to fetch credentials.") from e

        if not records:
            text = "📭 No credentials stored yet."
        else:
            lines = "\n".join(f"{r.id}. {r.title} ({r.username})" for r in records)
            text = f"🔐 Your stored credentials:\n{lines}\n\nUse /show <number> to view details."
        await self._notify(scope.chat_id, text, self.config.status_message_lifetime)

    async def _load_credential(self, scope: Scope, credential_id: int) -> CredentialRecord:
        try:
            record = await self.credentials.get(scope, credential_id)
        except Exception as e:
            raise UpstreamFailure("database", "credential lookup failed", "❌ Failed to fetch credentials.") from e
        if record is None:
            raise NotFound(f"credential {credential_id}", "❌ Credential not found.")
        return record

    # --- Context commands (never touch the pending registry) ---

    async def _store_context(
        self, scope: Scope, command: Command, message_id: Optional[int]
    ) -> None:
        title, content = parse_context(command.args)
        try:
            embedding = await self.embedder.embed(content)
            await self.contexts.insert(scope, title, content, embedding)
        except Exception as e:
            raise UpstreamFailure("context", "store failed", "❌ Failed to store context.") from e

        await self._notify(
            scope.chat_id, "✅ Context stored successfully!", self.config.status_message_lifetime
        )

    async def _query_context(
        self, scope: Scope, command: Command, message_id: Optional[int]
    ) -> None:
        prompt = parse_query(command.args)
        failure = "❌ Failed to process context with AI."
        try:
            query_embedding = await self.embedder.embed(prompt)
            matches = await self.contexts.query_similar(
                scope,
                query_embedding,
                threshold=self.config.similarity_threshold,
                top_k=self.config.top_k,
            )
        except Exception as e:
            raise UpstreamFailure("context", "similarity query failed", failure) from e

        if not matches:
            await self._notify(
                scope.chat_id,
                "❌ No relevant context found. Please add some context first using /context command.",
                self.config.status_message_lifetime,
            )
            return

        grounded = build_grounded_prompt([m.entry.content for m in matches], prompt)
        try:
            answer = await self.generator.generate(grounded)
        except Exception as e:
            raise UpstreamFailure("generation", "grounded answer failed", failure) from e

        await self.messenger.send_text(scope.chat_id, answer)

    async def _list_context(
        self, scope: Scope, command: Command, message_id: Optional[int]
    ) -> None:
        title_filter = command.args.strip()
        try:
            entries = await self.contexts.list_by_title(scope, title_filter or None)
        except Exception as e:
            raise UpstreamFailure("context", "list failed", "❌ Failed to fetch context.") from e

        if not entries:
            text = (
                f'📭 No contexts found matching "{title_filter}".'
                if title_filter else "📭 No contexts stored yet."
            )
            await self._notify(scope.chat_id, text, self.config.status_message_lifetime)
            return

        blocks = []
        for entry in entries:
            block = f"📌 {entry.title or '(untitled)'}"
            if title_filter:
                # Content only when the user narrowed the list down
                block += f"\n{entry.content}"
            blocks.append(block)

        if title_filter:
            header = f'📝 Contexts matching "{title_filter}":'
            footer = ""
        else:
            header = "📝 Your stored contexts:"
            footer = (
                "\n\nUse /listcontext <title_keyword> to see content of specific contexts "
                "or /getcontext <query> to use them with AI."
            )
        text = f"{header}\n" + "\n\n---\n\n".join(blocks) + footer
        await self._notify(scope.chat_id, text, self.config.context_list_lifetime)

    # --- Helpers ---

    async def _begin(self, scope: Scope, operation, prompt_id: Optional[int]) -> None:
        displaced = self.registry.begin(scope.chat_id, scope.user_id, operation, prompt_id)
        if displaced is not None:
            await self._delete(scope.chat_id, displaced.prompt_message_id)

    async def _delete(self, chat_id: int, message_id: Optional[int]) -> None:
        if message_id is None:
            return
        if not await self.messenger.delete_message(chat_id, message_id):
            logger.warning(f"Could not delete message {message_id} in chat={chat_id}")

    async def _notify(self, chat_id: int, text: str, lifetime: float = 0) -> None:
        """Send a status reply. Transport failures are logged; there is no one left to tell."""
        try:
            await self.messenger.send_text(chat_id, text, delete_after=lifetime)
        except UpstreamFailure as e:
            logger.error(f"Could not reply in chat={chat_id}: {e}")
