"""Thin async HTTP wrapper over the Gemini generateContent API."""

import httpx

from ..errors import UpstreamFailure
from ..logging import get_logger

logger = get_logger("ai")

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"


class GenerationClient:
    """Async client for text generation: accepts a prompt, returns text."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = GEMINI_BASE_URL,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.model = model
        self._client = client or httpx.AsyncClient(timeout=60.0)

    async def close(self):
        await self._client.aclose()

    async def generate(self, prompt: str) -> str:
        """Send a single-turn prompt and return the concatenated text parts."""
        if not self._api_key:
            raise UpstreamFailure("generation", "GEMINI_API_KEY not configured")

        body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        try:
            resp = await self._client.post(
                f"{self.base_url}/v1beta/models/{self.model}:generateContent",
                params={"key": self._api_key},
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFailure("generation", f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFailure("generation", str(e)) from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamFailure("generation", "malformed response") from e

        if not text:
            raise UpstreamFailure("generation", "empty response")

        usage = data.get("usageMetadata", {})
        logger.info(
            f"Generated {len(text)} chars with {self.model} "
            f"(tokens: {usage.get('totalTokenCount', '?')})"
        )
        return text
