"""Thin async HTTP wrapper over the Voyage AI embeddings API."""

import httpx

from ..errors import UpstreamFailure
from ..logging import get_logger

logger = get_logger("ai")

VOYAGE_BASE_URL = "https://api.voyageai.com"


class EmbeddingClient:
    """Async client for embeddings: accepts text, returns a fixed-length vector."""

    def __init__(
        self,
        api_key: str,
        model: str = "voyage-3",
        base_url: str = VOYAGE_BASE_URL,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.model = model
        self._client = client or httpx.AsyncClient(timeout=30.0)

    async def close(self):
        await self._client.aclose()

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        if not self._api_key:
            raise UpstreamFailure("embedding", "VOYAGE_API_KEY not configured")

        try:
            resp = await self._client.post(
                f"{self.base_url}/v1/embeddings",
                json={"input": text, "model": self.model, "input_type": "document"},
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFailure("embedding", f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFailure("embedding", str(e)) from e

        try:
            embedding = [float(x) for x in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise UpstreamFailure("embedding", "malformed response") from e

        if not embedding:
            raise UpstreamFailure("embedding", "empty embedding")

        logger.debug(f"Embedded {len(text)} chars -> {len(embedding)}d with {self.model}")
        return embedding
