"""Chat intent handling, independent of the Telegram library.

``handle_text`` and ``handle_callback`` take what the user typed or tapped
and return a ``Reply``; the aiogram routers only send it.
"""

import logging
import re
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from kharcha.aggregate import Window, category_totals, daily_totals, filter_expenses
from kharcha.categories import ALCOHOL, FOOD, MISCELLANEOUS, OTHER, TRAVEL
from kharcha.charts import daily_spending_chart, spending_by_category_chart
from kharcha.db.models import Expense
from kharcha.handlers.keyboards import (
    Reply,
    after_add_keyboard,
    main_keyboard,
    parse_quick_token,
    quick_add_keyboard,
)
from kharcha.insights import InsightReport
from kharcha.parser import normalize, parse, parse_add
from kharcha.period import local_now
from kharcha.services import report_service as reports
from kharcha.services.budget_service import BudgetContext, load_context
from kharcha.services.expense_service import delete_last_expense, get_recent_expenses, save_expense
from kharcha.services.profile_service import get_profile

logger = logging.getLogger(__name__)

# Leading emoji and punctuation on keyboard buttons ("💰 Balance").
_DECORATION = re.compile(r"^[^\w/]+")

ALIASES: dict[str, str] = {
    "bal": "balance",
    "this week": "week",
    "this month": "month",
    "add expense": "add",
    "brief": "morning",
    "summary": "report",
    "alcohol": "drinks",
    "miscellaneous": "misc",
    "start": "help",
    "delete last": "undo",
}

CATEGORY_INTENTS: dict[str, str] = {
    "food": FOOD,
    "travel": TRAVEL,
    "drinks": ALCOHOL,
    "misc": MISCELLANEOUS,
    "other": OTHER,
}

Renderer = Callable[[BudgetContext, InsightReport], str]

RENDERERS: dict[str, Renderer] = {
    "balance": reports.balance_text,
    "today": reports.today_text,
    "yesterday": lambda ctx, _report: reports.yesterday_text(ctx),
    "week": lambda ctx, _report: reports.week_text(ctx),
    "month": reports.month_text,
    "weekend": reports.weekend_text,
    "morning": reports.morning_brief,
    "evening": reports.evening_report,
    "report": reports.report_text,
    "settings": lambda ctx, _report: reports.settings_text(ctx),
}

INTENTS: frozenset[str] = frozenset(
    {*RENDERERS, *CATEGORY_INTENTS, "help", "add", "undo", "recent", "chart", "trend"}
)

CALLBACK_INTENTS: dict[str, str] = {
    "balance": "balance",
    "today_total": "today",
    "delete_last": "undo",
}


def resolve_intent(text: str) -> str | None:
    cleaned = _DECORATION.sub("", text).strip().lower()
    cleaned = cleaned.lstrip("/").split("@", 1)[0]
    cleaned = normalize(cleaned)
    cleaned = ALIASES.get(cleaned, cleaned)
    return cleaned if cleaned in INTENTS else None


async def handle_text(text: str, now: datetime | None = None) -> Reply:
    intent = resolve_intent(text)
    if intent is not None:
        logger.debug("Resolved intent", extra={"intent": intent})
        return await run_intent(intent, now)

    parsed = parse_add(text) or parse(text)
    if parsed is not None:
        return await add_expense(parsed.amount, parsed.category, parsed.description, source="chat", now=now)

    if normalize(text).lower().startswith("add "):
        return Reply("🤔 I couldn't read that. Try <i>add 200 lunch</i> or <i>add coffee 50</i>.")
    return Reply(reports.UNKNOWN_TEXT, main_keyboard())


async def handle_callback(token: str, now: datetime | None = None) -> Reply:
    if token in CALLBACK_INTENTS:
        return await run_intent(CALLBACK_INTENTS[token], now)
    quick = parse_quick_token(token)
    if quick is not None:
        amount, preset = quick
        return await add_expense(
            amount,
            preset.category,
            preset.description,
            source="quick",
            is_fake=preset.is_fake,
            now=now,
        )
    logger.warning("Unknown callback token %r", token)
    return Reply("This button is no longer supported.", main_keyboard())


async def run_intent(intent: str, now: datetime | None = None) -> Reply:
    if intent == "help":
        return Reply(reports.HELP_TEXT, main_keyboard())

    ctx = await load_context(now)
    if intent == "add":
        return Reply(
            "➕ <b>Quick add</b>\n\nTap a button, or type an expense like <i>200 lunch</i>.",
            quick_add_keyboard(ctx.currency),
        )
    if intent == "undo":
        return await undo_last(ctx)
    if intent == "recent":
        return Reply(reports.recent_text(await get_recent_expenses(ctx.profile.id), ctx))

    report = ctx.report()
    if intent == "chart":
        return await category_chart(ctx, report)
    if intent == "trend":
        return await trend_chart(ctx, report)
    if intent in CATEGORY_INTENTS:
        return Reply(reports.category_text(ctx, report, CATEGORY_INTENTS[intent]))
    return Reply(RENDERERS[intent](ctx, report))


async def add_expense(
    amount: Decimal,
    category: str,
    description: str,
    source: str,
    is_fake: bool = False,
    now: datetime | None = None,
) -> Reply:
    now = now or local_now()
    profile = await get_profile()
    expense = Expense(
        id=None,
        profile_id=profile.id,
        amount=amount,
        category=category,
        description=description,
        expense_date=now,
        is_fake=is_fake,
        source=source,
    )
    expense_id = await save_expense(expense)
    logger.info("Saved expense #%d (%s %s)", expense_id, amount, category)

    ctx = await load_context(now)
    report = ctx.report()
    return Reply(reports.expense_added_text(expense, ctx, report), after_add_keyboard())


async def undo_last(ctx: BudgetContext) -> Reply:
    deleted = await delete_last_expense(ctx.profile.id)
    if deleted is None:
        return Reply("No expenses to undo.")
    logger.info("Deleted expense #%d", deleted.id)
    return Reply(reports.deleted_text(deleted, ctx))


def _period_expenses(ctx: BudgetContext, report: InsightReport) -> list[Expense]:
    return filter_expenses(ctx.expenses, Window(report.period.start, report.period.end))


async def category_chart(ctx: BudgetContext, report: InsightReport) -> Reply:
    path = await spending_by_category_chart(category_totals(_period_expenses(ctx, report)), ctx.currency)
    if path is None:
        return Reply("Nothing to chart yet for this period.")
    return Reply(f"📊 Spending by category ({report.period.label})", photo=path)


async def trend_chart(ctx: BudgetContext, report: InsightReport) -> Reply:
    path = await daily_spending_chart(
        daily_totals(_period_expenses(ctx, report)),
        ctx.currency,
        daily_budget=report.original_daily_budget,
    )
    if path is None:
        return Reply("Nothing to chart yet for this period.")
    return Reply(f"📈 Daily spending ({report.period.label})", photo=path)
