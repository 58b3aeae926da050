"""
Telegram implementation of the messaging gateway.
"""

import logging
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from src.bot.keyboards.catalog import to_reply_markup
from src.core.catalog.contracts import MessagingGateway
from src.core.catalog.models import ReplyKeyboard

logger = logging.getLogger(__name__)


class TelegramGateway(MessagingGateway):
    """Sends prompts through the Bot API."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def _send(
        self,
        conversation_id: int,
        text: str,
        keyboard: Optional[ReplyKeyboard],
    ) -> None:
        await self.bot.send_message(
            chat_id=conversation_id,
            text=text,
            reply_markup=to_reply_markup(keyboard),
        )

    async def delete_message(self, conversation_id: int, message_id: int) -> bool:
        try:
            await self.bot.delete_message(chat_id=conversation_id, message_id=message_id)
        except TelegramAPIError as e:
            logger.debug(f"Could not delete message {message_id} in {conversation_id}: {e}")
            return False
        return True
