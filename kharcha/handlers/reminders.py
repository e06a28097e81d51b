"""Scheduled reminders, triggered by an external cron hitting ``/api/cron/reminders``."""

import hmac
import logging
from collections.abc import Callable
from datetime import datetime

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiohttp import web

from kharcha.config import settings
from kharcha.insights import InsightReport, Thresholds
from kharcha.period import local_now
from kharcha.services import report_service as reports
from kharcha.services.budget_service import BudgetContext, load_context

logger = logging.getLogger(__name__)

BOT_KEY = web.AppKey("bot", Bot)

FRIDAY = 4

REMINDER_RENDERERS: dict[str, Callable[[BudgetContext, InsightReport], str]] = {
    "morning": reports.morning_brief,
    "evening": reports.evening_report,
    "weekend": reports.weekend_advisory,
    "month_end": reports.month_end_warning,
}


def select_reminders(now: datetime, hour: int, report: InsightReport, thresholds: Thresholds) -> list[str]:
    kinds = []
    if hour == settings.morning_hour:
        kinds.append("morning")
    if hour == settings.evening_hour:
        kinds.append("evening")
    if hour == settings.weekend_hour and now.weekday() == FRIDAY:
        kinds.append("weekend")
    if (
        hour == settings.month_end_hour
        and report.period.days_until_next <= settings.month_end_days
        and report.remaining < thresholds.warning_balance
    ):
        kinds.append("month_end")
    return kinds


def is_authorized(request: web.Request) -> bool:
    if not settings.cron_secret:
        return False
    header = request.headers.get("Authorization", "")
    return hmac.compare_digest(header.encode(), f"Bearer {settings.cron_secret}".encode())


async def send_text(bot: Bot, chat_id: int, text: str) -> bool:
    try:
        await bot.send_message(chat_id, text)
    except TelegramAPIError:
        logger.error("Failed to deliver reminder", exc_info=True, extra={"chat_id": chat_id})
        return False
    return True


async def cron_reminders(request: web.Request) -> web.Response:
    if not is_authorized(request):
        logger.warning("Unauthorized cron call from %s", request.remote)
        return web.json_response({"error": "Unauthorized"}, status=401)

    now = local_now()
    hour = now.hour
    if "hour" in request.query:
        try:
            hour = int(request.query["hour"])
        except ValueError:
            hour = -1
        if not 0 <= hour <= 23:
            return web.json_response({"error": "hour must be 0-23"}, status=400)

    chat_id = settings.reminder_chat_id
    if chat_id is None:
        logger.warning("No chat configured for reminders", extra={"hour": hour})
        return web.json_response({"success": False, "hour": hour, "sent": []})

    try:
        ctx = await load_context(now, materialize=settings.auto_materialize_salary)
        report = ctx.report()
        sent = []
        for kind in select_reminders(now, hour, report, ctx.thresholds):
            if await send_text(request.app[BOT_KEY], chat_id, REMINDER_RENDERERS[kind](ctx, report)):
                sent.append(kind)
    except Exception:
        logger.exception("Reminder run failed", extra={"hour": hour})
        return web.json_response({"success": False, "hour": hour, "sent": []})

    logger.info("Reminders sent: %s", ", ".join(sent) or "none", extra={"hour": hour})
    return web.json_response({"success": True, "hour": hour, "sent": sent})
