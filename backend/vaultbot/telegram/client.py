"""HTTP client for the Telegram Bot API."""

import asyncio
from typing import Optional, Protocol

import httpx

from ..errors import UpstreamFailure
from ..logging import get_logger

logger = get_logger("telegram")


class Messenger(Protocol):
    """What the dispatcher needs from a chat transport."""

    async def send_text(self, chat_id: int, text: str, delete_after: float = 0) -> Optional[int]: ...

    async def delete_message(self, chat_id: int, message_id: int) -> bool: ...


class TelegramClient:
    """Async client for sending and deleting Telegram messages."""

    def __init__(
        self,
        bot_token: str,
        api_url: str = "https://api.telegram.org",
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = f"{api_url.rstrip('/')}/bot{bot_token}"
        self._client = client or httpx.AsyncClient(timeout=10.0)
        self._pending_deletes: set[asyncio.Task] = set()

    async def close(self):
        """Cancel scheduled deletions and close the HTTP client."""
        for task in list(self._pending_deletes):
            task.cancel()
        if self._pending_deletes:
            await asyncio.gather(*self._pending_deletes, return_exceptions=True)
        await self._client.aclose()

    async def send_text(self, chat_id: int, text: str, delete_after: float = 0) -> Optional[int]:
        """Send a message and return its id.

        With delete_after > 0, the message is removed after that many seconds.
        Deletion shortens how long the text is visible; it does not guarantee
        the text is gone from every client.
        """
        try:
            resp = await self._client.post(
                f"{self.base_url}/sendMessage",
                json={"chat_id": chat_id, "text": text},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamFailure("telegram", f"sendMessage HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFailure("telegram", f"sendMessage: {e}") from e

        if not data.get("ok"):
            raise UpstreamFailure("telegram", f"sendMessage rejected: {data.get('description')}")

        message_id = data.get("result", {}).get("message_id")
        if message_id is not None and delete_after > 0:
            self.schedule_delete(chat_id, message_id, delete_after)
        return message_id

    async def delete_message(self, chat_id: int, message_id: int) -> bool:
        """Best-effort delete. Returns True on success, False on failure."""
        try:
            resp = await self._client.post(
                f"{self.base_url}/deleteMessage",
                json={"chat_id": chat_id, "message_id": message_id},
            )
            resp.raise_for_status()
            return bool(resp.json().get("ok"))
        except httpx.HTTPStatusError as e:
            logger.warning(f"deleteMessage {message_id} in chat={chat_id} got HTTP {e.response.status_code}")
            return False
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"deleteMessage {message_id} in chat={chat_id} failed: {e}")
            return False

    def schedule_delete(self, chat_id: int, message_id: int, delay: float) -> asyncio.Task:
        """Delete a message in the background after delay seconds."""
        async def _delete_later():
            await asyncio.sleep(delay)
            await self.delete_message(chat_id, message_id)

        task = asyncio.create_task(_delete_later())
        self._pending_deletes.add(task)
        task.add_done_callback(self._pending_deletes.discard)
        return task
