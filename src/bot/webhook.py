"""
aiohttp application for webhook mode.
"""

from typing import Optional

from aiogram import Bot, Dispatcher
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web

HEALTH_TEXT = "Bot is running"


async def health(request: web.Request) -> web.Response:
    """Liveness check for the hosting platform."""
    return web.Response(text=HEALTH_TEXT)


def create_app(
    bot: Bot,
    dp: Dispatcher,
    path: str,
    secret_token: Optional[str] = None,
) -> web.Application:
    """Build the web app: health check on / and Telegram updates on path."""
    app = web.Application()
    app.router.add_get("/", health)

    SimpleRequestHandler(
        dispatcher=dp,
        bot=bot,
        secret_token=secret_token,
    ).register(app, path=path)
    setup_application(app, dp, bot=bot)

    return app
