"""Database models for vaultbot."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Scope:
    """A (chat, user) pair. Every stored record belongs to exactly one."""
    chat_id: int
    user_id: int

    def to_db(self) -> tuple[str, str]:
        """Columns are text so ids from any transport fit."""
        return str(self.chat_id), str(self.user_id)


@dataclass
class CredentialRecord:
    """A stored credential. The password only exists in encrypted form."""
    id: int
    scope: Scope
    title: str
    username: str
    encrypted_password: str
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.title:
            raise ValueError("Credential title cannot be empty")
        if not self.encrypted_password:
            raise ValueError("Credential must carry an encrypted password")


@dataclass
class ContextEntry:
    """A stored context snippet and the embedding computed when it was added."""
    id: int
    scope: Scope
    content: str
    embedding: list[float]
    title: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.content:
            raise ValueError("Context content cannot be empty")
        if not self.embedding:
            raise ValueError("Context embedding cannot be empty")
        self.embedding = [float(x) for x in self.embedding]

    @property
    def dimension(self) -> int:
        return len(self.embedding)
