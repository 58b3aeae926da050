"""
Bot handlers registration.
"""

from aiogram import Dispatcher

from src.bot.handlers.start import router as start_router
from src.bot.handlers.catalog import router as catalog_router


def register_handlers(dp: Dispatcher) -> None:
    """Register all handlers to dispatcher."""
    # Order matters! Commands first, then the catch-all text handler
    dp.include_router(start_router)
    dp.include_router(catalog_router)
