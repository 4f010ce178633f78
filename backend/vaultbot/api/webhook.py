"""Telegram webhook endpoint."""

import hmac
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from ..logging import get_logger

logger = get_logger("api")

router = APIRouter(tags=["telegram"])


# --- Update Models (only the fields the bot reads) ---

class TelegramChat(BaseModel):
    id: int


class TelegramUser(BaseModel):
    id: int


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: Optional[int] = None
    chat: Optional[TelegramChat] = None
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None


class TelegramUpdate(BaseModel):
    update_id: Optional[int] = None
    message: Optional[TelegramMessage] = None


# --- Endpoints ---

@router.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness check."""
    return "Bot is running!"


@router.post("/webhook", response_class=PlainTextResponse)
async def telegram_webhook(
    update: TelegramUpdate,
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    """
    Receive a Telegram update and hand its message to the dispatcher.

    Updates without text, chat or sender are acknowledged and ignored.
    """
    config = request.app.state.config
    if config.telegram_webhook_secret and not hmac.compare_digest(
        x_telegram_bot_api_secret_token or "", config.telegram_webhook_secret
    ):
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

    message = update.message
    if not message or not message.text or not message.chat or not message.from_user:
        return "OK"

    dispatcher = request.app.state.dispatcher
    try:
        await dispatcher.handle(
            chat_id=message.chat.id,
            user_id=message.from_user.id,
            text=message.text,
            message_id=message.message_id,
        )
    except Exception:
        logger.exception(f"Error processing update {update.update_id}")
        return PlainTextResponse("Error processing request", status_code=500)

    return "OK"
