"""
Pending passphrase challenges - holds at most one per (chat, user) pair in memory.

A challenge means "the next message from this user is a passphrase for
operation X". Entries live for a short TTL and are consumed exactly once.
Nothing here is persisted; losing it on restart only drops an open
60-second window.

Expired entries are dropped lazily on lookup and by the periodic janitor.
Only a single process sees this state, so the bot must run with a single
instance (or sticky routing per chat) for two-step flows to work.
"""

import asyncio
import time
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Union

from ..logging import get_logger

logger = get_logger("vault")

DEFAULT_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class AwaitingEncryptionKey:
    """A credential waiting for the passphrase to encrypt its password."""
    title: str
    username: str
    password: str

    def __repr__(self) -> str:
        return f"AwaitingEncryptionKey(title={self.title!r}, username={self.username!r}, password=***)"


@dataclass(frozen=True)
class AwaitingDecryptionKey:
    """A stored credential waiting for the passphrase to decrypt it."""
    credential_id: int
    encrypted_password: str

    def __repr__(self) -> str:
        return f"AwaitingDecryptionKey(credential_id={self.credential_id})"


PendingOperation = Union[AwaitingEncryptionKey, AwaitingDecryptionKey]


@dataclass(frozen=True)
class PendingChallenge:
    """An outstanding challenge and the prompt message that announced it."""
    operation: PendingOperation
    created_at: float
    prompt_message_id: Optional[int] = None

    @property
    def kind(self) -> str:
        return type(self.operation).__name__


class PendingOperationRegistry:
    """In-memory challenge store keyed by (chat_id, user_id)."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[int, int], PendingChallenge] = {}
        self._locks: "weakref.WeakValueDictionary[tuple[int, int], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._entries)

    def lock(self, chat_id: int, user_id: int) -> asyncio.Lock:
        """Return the lock serializing message handling for one pair.

        The caller must keep a reference while holding it; idle locks are
        collected with their last reference.
        """
        key = (chat_id, user_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _is_live(self, challenge: PendingChallenge, now: float) -> bool:
        return now - challenge.created_at <= self.ttl_seconds

    def begin(
        self,
        chat_id: int,
        user_id: int,
        operation: PendingOperation,
        prompt_message_id: Optional[int] = None,
    ) -> Optional[PendingChallenge]:
        """Store a challenge for the pair, replacing any earlier one.

        Returns the displaced challenge if it was still live, so the caller
        can clean up its prompt.
        """
        key = (chat_id, user_id)
        now = self._clock()
        previous = self._entries.get(key)
        self._entries[key] = PendingChallenge(
            operation=operation,
            created_at=now,
            prompt_message_id=prompt_message_id,
        )
        logger.debug(f"Challenge {type(operation).__name__} started for chat={chat_id} user={user_id}")

        if previous is not None and self._is_live(previous, now):
            logger.warning(
                f"Replaced pending {previous.kind} for chat={chat_id} user={user_id}"
            )
            return previous
        return None

    def try_consume(
        self, chat_id: int, user_id: int, now: Optional[float] = None
    ) -> Optional[PendingChallenge]:
        """Remove and return the pair's challenge if it has not expired."""
        key = (chat_id, user_id)
        challenge = self._entries.pop(key, None)
        if challenge is None:
            return None

        now = self._clock() if now is None else now
        if not self._is_live(challenge, now):
            logger.debug(f"Discarded expired {challenge.kind} for chat={chat_id} user={user_id}")
            return None
        return challenge

    def peek(self, chat_id: int, user_id: int) -> Optional[PendingChallenge]:
        """Return the stored challenge without consuming it (may be expired)."""
        return self._entries.get((chat_id, user_id))

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop every expired challenge. Returns how many were removed."""
        now = self._clock() if now is None else now
        expired = [
            key for key, challenge in self._entries.items()
            if not self._is_live(challenge, now)
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired challenge(s)")
        return len(expired)

    async def run_janitor(self, interval: float = 30.0) -> None:
        """Background task: sweep expired challenges until cancelled.

        A non-positive interval disables sweeping; expired entries are then
        only dropped when looked up.
        """
        if interval <= 0:
            logger.info("Challenge janitor disabled")
            return
        while True:
            await asyncio.sleep(interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Challenge sweep failed: {e}")


# Global singleton - the challenge registry for this bot instance
pending_registry = PendingOperationRegistry()
