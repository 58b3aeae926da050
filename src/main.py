"""
Video catalog Telegram bot - main entry point.
"""

import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiohttp import web

from src.bot.bot import create_bot, create_dispatcher
from src.bot.gateway import TelegramGateway
from src.bot.handlers import register_handlers
from src.bot.webhook import create_app
from src.config import settings
from src.core.catalog import ConversationMachine, EntryMode, SessionStore, VideoRepository
from src.db.sqlite import Database, SQLiteVideoRepository
from src.integrations.sheets import GoogleSheetsRepository


# Fix for Windows asyncio
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

db = Database(settings.db_url, echo=settings.debug)


def create_repository() -> VideoRepository:
    """Create the configured record storage."""
    if settings.storage_backend == "sqlite":
        return SQLiteVideoRepository(db)
    return GoogleSheetsRepository(
        spreadsheet_id=settings.google_sheet_id,
        credentials_path=settings.google_credentials_path,
        sheet_name=settings.sheet_name,
    )


def setup(bot: Bot, dp: Dispatcher) -> None:
    """Wire the conversation machine into the dispatcher."""
    gateway = TelegramGateway(bot)
    machine = ConversationMachine(
        repository=create_repository(),
        gateway=gateway,
        sessions=SessionStore(bot_id=bot.id),
        admin_password=settings.admin_password,
        entry_mode=EntryMode(settings.entry_mode),
        link_marker=settings.link_marker,
        max_videos=settings.max_videos,
    )

    # Injected into handlers by argument name
    dp.workflow_data.update(
        machine=machine,
        gateway=gateway,
        clean_depth=settings.clean_depth,
    )

    register_handlers(dp)
    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)


async def on_startup(bot: Bot) -> None:
    """Initialize services on startup."""
    logger.info(f"Starting catalog bot ({settings.entry_mode} mode, {settings.storage_backend} storage)...")

    if settings.storage_backend == "sqlite":
        await db.init()
        logger.info("Database initialized")

    if settings.webhook_mode:
        await bot.set_webhook(
            settings.webhook_url,
            secret_token=settings.webhook_secret,
            drop_pending_updates=True,
        )
        logger.info(f"Webhook set to {settings.webhook_url}")


async def on_shutdown(machine: ConversationMachine) -> None:
    """Cleanup on shutdown."""
    logger.info("Shutting down catalog bot...")
    await machine.sessions.close()
    await db.close()
    logger.info("Cleanup complete")


async def run_polling() -> None:
    """Run the bot with long polling."""
    bot = create_bot(settings.telegram_bot_token)
    dp = create_dispatcher()
    setup(bot, dp)

    logger.info("Bot is starting...")
    try:
        await bot.delete_webhook(drop_pending_updates=True)
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        await bot.session.close()


def run_webhook() -> None:
    """Serve Telegram updates and the health check over HTTP."""
    bot = create_bot(settings.telegram_bot_token)
    dp = create_dispatcher()
    setup(bot, dp)

    app = create_app(bot, dp, settings.webhook_path, settings.webhook_secret)
    logger.info(f"Listening on port {settings.port}")
    web.run_app(app, host="0.0.0.0", port=settings.port)


def main() -> None:
    if settings.webhook_mode:
        run_webhook()
    else:
        asyncio.run(run_polling())


if __name__ == "__main__":
    main()
