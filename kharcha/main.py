import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.enums import ParseMode
from aiogram.types import CallbackQuery, Message
from aiogram.webhook.aiohttp_server import SimpleRequestHandler
from aiohttp import web

from kharcha.config import settings
from kharcha.db.database import close_db, get_db, init_db
from kharcha.handlers import common
from kharcha.handlers import settings as settings_handlers
from kharcha.handlers.reminders import BOT_KEY, cron_reminders
from kharcha.logging import setup_logging
from kharcha.services.report_service import ERROR_TEXT

setup_logging(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)


def _chat_id(event) -> int | None:
    if isinstance(event, Message):
        return event.chat.id
    if isinstance(event, CallbackQuery) and event.message is not None:
        return event.message.chat.id
    return None


async def auth_middleware(handler, event, data: dict):
    chat_id = _chat_id(event)
    if settings.allowed_chat_ids and chat_id not in settings.allowed_chat_ids:
        logger.warning("Unauthorized access", extra={"chat_id": chat_id})
        return
    return await handler(event, data)


async def error_boundary_middleware(handler, event, data: dict):
    try:
        return await handler(event, data)
    except Exception:
        chat_id = _chat_id(event)
        logger.error("Handler error", exc_info=True, extra={"chat_id": chat_id})
        try:
            if isinstance(event, Message):
                await event.answer(ERROR_TEXT)
            elif isinstance(event, CallbackQuery):
                await event.answer(ERROR_TEXT, show_alert=True)
        except Exception:
            logger.error("Failed to send error message", exc_info=True, extra={"chat_id": chat_id})


async def health(request: web.Request) -> web.Response:
    checks: dict[str, str] = {}
    try:
        db = await get_db()
        await db.execute("SELECT 1")
        checks["db"] = "ok"
    except Exception as e:
        checks["db"] = f"error: {e}"
    checks["webhook"] = "configured" if settings.webhook_url else "polling"
    checks["cron"] = "configured" if settings.cron_secret else "not configured"
    healthy = checks["db"] == "ok"
    return web.json_response(
        {"status": "healthy" if healthy else "unhealthy", "checks": checks},
        status=200 if healthy else 503,
    )


async def webhook_status(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "mode": "webhook" if settings.webhook_url else "polling"})


def create_bot() -> Bot:
    return Bot(
        token=settings.telegram_bot_token,
        session=AiohttpSession(timeout=settings.telegram_timeout),
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def create_dispatcher() -> Dispatcher:
    dp = Dispatcher()

    dp.message.outer_middleware(error_boundary_middleware)
    dp.callback_query.outer_middleware(error_boundary_middleware)
    dp.message.middleware(auth_middleware)
    dp.callback_query.middleware(auth_middleware)

    dp.include_router(settings_handlers.router)
    dp.include_router(common.router)
    return dp


def create_app(bot: Bot, dp: Dispatcher) -> web.Application:
    app = web.Application()
    app[BOT_KEY] = bot
    SimpleRequestHandler(dispatcher=dp, bot=bot, secret_token=settings.webhook_secret).register(
        app, path=settings.webhook_path
    )
    app.router.add_get(settings.webhook_path, webhook_status)
    app.router.add_get("/api/cron/reminders", cron_reminders)
    app.router.add_post("/api/cron/reminders", cron_reminders)
    app.router.add_get("/health", health)
    return app


async def main():
    await init_db()

    bot = create_bot()
    dp = create_dispatcher()
    runner = web.AppRunner(create_app(bot, dp))
    await runner.setup()
    await web.TCPSite(runner, settings.host, settings.port).start()
    logger.info("HTTP server listening on %s:%d", settings.host, settings.port)

    logger.info("Starting Kharcha bot")
    try:
        if settings.webhook_url:
            await bot.set_webhook(
                settings.webhook_url.rstrip("/") + settings.webhook_path,
                secret_token=settings.webhook_secret,
                allowed_updates=dp.resolve_used_update_types(),
            )
            logger.info("Webhook registered")
            await asyncio.Event().wait()
        else:
            await bot.delete_webhook(drop_pending_updates=False)
            await dp.start_polling(bot)
    finally:
        logger.info("Shutting down gracefully...")
        await runner.cleanup()
        await bot.session.close()
        await close_db()
        logger.info("Shutdown complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
