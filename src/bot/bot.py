"""
Telegram bot initialization and configuration.
"""

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage


def create_bot(token: str) -> Bot:
    """
    Create bot instance.

    No default parse mode: titles and tags are user text and must not be
    parsed as HTML.
    """
    return Bot(token=token)


def create_dispatcher() -> Dispatcher:
    """Create dispatcher with storage."""
    storage = MemoryStorage()  # Sessions are not kept across restarts
    return Dispatcher(storage=storage)
