"""
Reply keyboards for the catalog conversation.
"""

from typing import Optional

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

from src.core.catalog.models import ReplyKeyboard


def to_reply_markup(keyboard: Optional[ReplyKeyboard]) -> Optional[ReplyKeyboardMarkup]:
    """Convert a transport-neutral keyboard into Telegram markup."""
    if keyboard is None:
        return None
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=label) for label in row] for row in keyboard.rows],
        resize_keyboard=True,
        one_time_keyboard=keyboard.one_time,
    )
