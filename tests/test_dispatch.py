from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from kharcha.handlers.dispatch import handle_callback, handle_text, resolve_intent
from kharcha.services.expense_service import get_expenses
from kharcha.services.profile_service import get_profile

NOW = datetime(2025, 4, 27, 15, 0)


@pytest.mark.parametrize(
    ("text", "intent"),
    [
        ("balance", "balance"),
        ("💰 Balance", "balance"),
        ("/balance", "balance"),
        ("/today@kharcha_bot", "today"),
        ("📈 This Week", "week"),
        ("bal", "balance"),
        ("Drinks", "drinks"),
        ("➕ Add Expense", "add"),
        ("/start", "help"),
        ("200 lunch", None),
        ("what is this", None),
    ],
)
def test_resolve_intent(text, intent):
    assert resolve_intent(text) == intent


async def test_text_expense_is_saved():
    reply = await handle_text("200 lunch", now=NOW)
    assert "Expense Added" in reply.text
    assert reply.keyboard.inline is True

    profile = await get_profile()
    rows = await get_expenses(profile.id)
    assert len(rows) == 1
    assert rows[0].amount == Decimal("200")
    assert rows[0].category == "Food"
    assert rows[0].source == "chat"
    assert rows[0].expense_date == NOW


async def test_add_prefix_expense():
    reply = await handle_text("add 150 uber", now=NOW)
    assert "Travel" in reply.text


async def test_unreadable_add():
    reply = await handle_text("add something", now=NOW)
    assert "couldn't read that" in reply.text


async def test_unknown_text_offers_keyboard():
    reply = await handle_text("hello bot", now=NOW)
    assert "didn't get that" in reply.text
    assert reply.keyboard is not None
    assert reply.keyboard.inline is False


async def test_balance_intent():
    await handle_text("spent 500 on drinks", now=NOW)
    reply = await handle_text("balance", now=NOW)
    assert "₹500 of ₹35,000" in reply.text


async def test_category_intent():
    await handle_text("coffee 50", now=NOW)
    reply = await handle_text("food", now=NOW)
    assert "<b>Food</b>" in reply.text
    assert "₹50" in reply.text


async def test_undo():
    await handle_text("200 lunch", now=NOW)
    reply = await handle_text("undo", now=NOW)
    assert "Removed" in reply.text
    assert await get_expenses((await get_profile()).id) == []

    reply = await handle_text("undo", now=NOW)
    assert reply.text == "No expenses to undo."


async def test_recent_shows_ids():
    await handle_text("200 lunch", now=NOW)
    reply = await handle_text("recent", now=NOW)
    assert "#1 " in reply.text


async def test_quick_add_callback():
    reply = await handle_callback("quick_100_misc", now=NOW)
    assert "Expense Added" in reply.text
    rows = await get_expenses((await get_profile()).id)
    assert rows[0].is_fake is True
    assert rows[0].category == "Miscellaneous"
    assert rows[0].source == "quick"


async def test_named_callbacks():
    reply = await handle_callback("today_total", now=NOW)
    assert "Today" in reply.text
    reply = await handle_callback("balance", now=NOW)
    assert "Balance" in reply.text


async def test_unknown_callback():
    reply = await handle_callback("quick_abc_coffee", now=NOW)
    assert "no longer supported" in reply.text


async def test_chart_without_data():
    reply = await handle_text("chart", now=NOW)
    assert reply.photo is None
    assert "Nothing to chart" in reply.text


async def test_chart_with_data():
    await handle_text("200 lunch", now=NOW)
    fake_chart = AsyncMock(return_value="/tmp/chart.png")
    with patch("kharcha.handlers.dispatch.spending_by_category_chart", fake_chart) as chart:
        reply = await handle_text("chart", now=NOW)
    assert reply.photo == "/tmp/chart.png"
    totals = chart.call_args.args[0]
    assert totals == {"Food": Decimal("200")}
