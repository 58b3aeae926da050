"""
Command handlers: /start, /help, /clean.
Commands never reach the conversation machine as input.
"""

import logging

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from src.core.catalog import prompts
from src.core.catalog.cleanup import bulk_clean
from src.core.catalog.contracts import MessagingGateway, RepositoryError
from src.core.catalog.machine import ConversationMachine

logger = logging.getLogger(__name__)

router = Router(name="start")


HELP_MESSAGE = """🤖 How I can help:

📽 Get Videos: pick a training type and how many videos you want.
➕ Add Video: admins can add a video (password required).
You can also just paste an Instagram link to add it.

Commands:
/start - back to the beginning
/clean - delete recent messages in this chat
/help - this message"""


@router.message(CommandStart())
async def handle_start(message: Message, machine: ConversationMachine) -> None:
    """Handle /start command: drop any pending flow."""
    try:
        await machine.reset(message.chat.id)
    except RepositoryError:
        logger.exception(f"Reset of {message.chat.id} failed")
        await message.answer(prompts.RETRY_LATER_TEXT)


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    """Handle /help command."""
    await message.answer(HELP_MESSAGE)


@router.message(Command("clean"))
async def handle_clean(
    message: Message, gateway: MessagingGateway, clean_depth: int
) -> None:
    """Delete the recent message history of the chat, best effort."""
    chat_id = message.chat.id
    status = await message.answer(prompts.CLEANING_TEXT)

    await bulk_clean(gateway, chat_id, message.message_id, clean_depth)
    await gateway.delete_message(chat_id, status.message_id)

    await gateway.deliver(chat_id, prompts.CLEANED_TEXT)
