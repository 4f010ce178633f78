"""Hosted embedding and text-generation providers."""

from typing import Protocol

from .embeddings import EmbeddingClient
from .generation import GenerationClient


class Embedder(Protocol):
    async def embed(self, text: str) -> list[float]: ...


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


__all__ = [
    "Embedder",
    "TextGenerator",
    "EmbeddingClient",
    "GenerationClient",
]
