"""
Message handler - feeds chat text into the conversation machine.
"""

import logging

from aiogram import F, Router
from aiogram.types import Message

from src.core.catalog import prompts
from src.core.catalog.contracts import RepositoryError
from src.core.catalog.machine import ConversationMachine
from src.core.catalog.models import InboundEvent

router = Router(name="catalog")
logger = logging.getLogger(__name__)


@router.message(F.text, ~F.text.startswith("/"))
async def handle_message(message: Message, machine: ConversationMachine) -> None:
    """
    Handle plain text.
    Storage failures leave the conversation where it was and ask to retry.
    """
    event = InboundEvent(
        conversation_id=message.chat.id,
        message_id=message.message_id,
        text=message.text,
    )

    try:
        await machine.handle(event)
    except RepositoryError:
        logger.exception(f"Catalog storage failed for chat {event.conversation_id}")
        await message.answer(prompts.RETRY_LATER_TEXT)
