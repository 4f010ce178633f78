"""Shared fixtures: in-memory storage, a recording messenger and scripted AI providers."""
import pytest

from vaultbot.bot import SecretVaultDispatcher
from vaultbot.config import BotConfig
from vaultbot.context import ContextIndex
from vaultbot.db import InMemoryContextRepository, InMemoryCredentialRepository
from vaultbot.vault import PendingOperationRegistry, SecretCipher


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingMessenger:
    """Messenger that remembers everything sent and deleted."""

    def __init__(self):
        self.sent: list[dict] = []
        self.deleted: list[tuple[int, int]] = []
        self._next_id = 500
        self.fail_deletes = False

    async def send_text(self, chat_id: int, text: str, delete_after: float = 0):
        self._next_id += 1
        self.sent.append({
            "chat_id": chat_id,
            "text": text,
            "delete_after": delete_after,
            "message_id": self._next_id,
        })
        return self._next_id

    async def delete_message(self, chat_id: int, message_id: int) -> bool:
        if self.fail_deletes:
            return False
        self.deleted.append((chat_id, message_id))
        return True

    @property
    def texts(self) -> list[str]:
        return [m["text"] for m in self.sent]

    @property
    def last(self) -> dict:
        return self.sent[-1]


class TableEmbedder:
    """Returns a fixed vector per known text and a default vector otherwise."""

    def __init__(self, table: dict[str, list[float]], default: list[float] | None = None):
        self.table = table
        self.default = default or [0.0, 0.0, 0.0, 1.0]
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error:
            raise self.error
        return self.table.get(text, self.default)


class RecordingGenerator:
    def __init__(self, answer: str = "Bake it at 350 degrees."):
        self.answer = answer
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer


EMBEDDINGS = {
    "bake at 350": [0.9, 0.1, 0.0, 0.0],
    "baking temperature": [0.88, 0.14, 0.02, 0.0],
    "stock market news": [0.0, 0.0, 1.0, 0.0],
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(clock):
    return PendingOperationRegistry(ttl_seconds=60, clock=clock)


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def credential_repo():
    return InMemoryCredentialRepository()


@pytest.fixture
def context_repo():
    return InMemoryContextRepository()


@pytest.fixture
def embedder():
    return TableEmbedder(EMBEDDINGS)


@pytest.fixture
def generator():
    return RecordingGenerator()


@pytest.fixture
def config():
    return BotConfig(
        telegram_bot_token="test-token",
        database_url="",
        pending_ttl_seconds=60,
        similarity_threshold=0.5,
        top_k=4,
        per_record_salt=False,
    )


@pytest.fixture
def dispatcher(messenger, registry, credential_repo, context_repo, embedder, generator, config):
    return SecretVaultDispatcher(
        messenger=messenger,
        registry=registry,
        cipher=SecretCipher(),
        credentials=credential_repo,
        contexts=ContextIndex(context_repo),
        embedder=embedder,
        generator=generator,
        config=config,
    )
