import json
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from aiogram.exceptions import TelegramNetworkError
from aiohttp import web
from aiohttp.test_utils import make_mocked_request
from conftest import make_expense

from kharcha.config import settings
from kharcha.db.models import Profile
from kharcha.handlers.reminders import BOT_KEY, cron_reminders, select_reminders, send_text
from kharcha.insights import Thresholds, build_report

FRIDAY_EVENING = datetime(2025, 4, 25, 18, 5)
PROFILE = Profile(id=1)


@pytest.fixture
def cron_settings(monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "s3cret")
    monkeypatch.setattr(settings, "allowed_chat_ids", [42])
    monkeypatch.setattr(settings, "report_chat_id", None)


def _request(path="/api/cron/reminders", token="s3cret", bot=None):
    app = web.Application()
    app[BOT_KEY] = bot or AsyncMock()
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return make_mocked_request("GET", path, headers=headers, app=app)


def _body(response) -> dict:
    return json.loads(response.text)


def test_select_by_hour():
    report = build_report(PROFILE, [], FRIDAY_EVENING)
    assert select_reminders(FRIDAY_EVENING, 9, report, Thresholds()) == ["morning"]
    assert select_reminders(FRIDAY_EVENING, 20, report, Thresholds()) == ["evening"]
    assert select_reminders(FRIDAY_EVENING, 18, report, Thresholds()) == ["weekend"]
    assert select_reminders(FRIDAY_EVENING, 13, report, Thresholds()) == []


def test_weekend_only_on_friday():
    thursday = datetime(2025, 4, 24, 18, 0)
    report = build_report(PROFILE, [], thursday)
    assert select_reminders(thursday, 18, report, Thresholds()) == []


def test_month_end_needs_low_balance_near_payday():
    now = datetime(2025, 5, 4, 21, 0)
    low = build_report(PROFILE, [make_expense(31000, "Other", datetime(2025, 4, 20, 12, 0))], now)
    assert low.period.days_until_next == 2
    assert select_reminders(now, 21, low, Thresholds()) == ["month_end"]

    healthy = build_report(PROFILE, [make_expense(1000, "Other", datetime(2025, 4, 20, 12, 0))], now)
    assert select_reminders(now, 21, healthy, Thresholds()) == []

    early = datetime(2025, 4, 21, 21, 0)
    report = build_report(PROFILE, [make_expense(Decimal("31000"), "Other", datetime(2025, 4, 20, 12, 0))], early)
    assert select_reminders(early, 21, report, Thresholds()) == []


async def test_unauthorized(cron_settings):
    response = await cron_reminders(_request(token="wrong"))
    assert response.status == 401

    response = await cron_reminders(_request(token=None))
    assert response.status == 401


async def test_rejects_all_without_secret(monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", None)
    response = await cron_reminders(_request(token="None"))
    assert response.status == 401


async def test_invalid_hour(cron_settings):
    response = await cron_reminders(_request("/api/cron/reminders?hour=25"))
    assert response.status == 400


async def test_morning_brief_sent(cron_settings):
    bot = AsyncMock()
    response = await cron_reminders(_request("/api/cron/reminders?hour=9", bot=bot))
    body = _body(response)
    assert body == {"success": True, "hour": 9, "sent": ["morning"]}
    chat_id, text = bot.send_message.call_args.args
    assert chat_id == 42
    assert "Good Morning" in text


async def test_nothing_due(cron_settings):
    bot = AsyncMock()
    body = _body(await cron_reminders(_request("/api/cron/reminders?hour=3", bot=bot)))
    assert body == {"success": True, "hour": 3, "sent": []}
    bot.send_message.assert_not_called()


async def test_delivery_failure_not_reported_as_sent(cron_settings):
    bot = AsyncMock()
    bot.send_message.side_effect = TelegramNetworkError(method=AsyncMock(), message="timeout")
    body = _body(await cron_reminders(_request("/api/cron/reminders?hour=9", bot=bot)))
    assert body["success"] is True
    assert body["sent"] == []


async def test_unexpected_error_is_caught(cron_settings):
    with patch("kharcha.handlers.reminders.load_context", AsyncMock(side_effect=RuntimeError("db gone"))):
        response = await cron_reminders(_request("/api/cron/reminders?hour=9"))
    assert response.status == 200
    assert _body(response)["success"] is False


async def test_send_text_ok():
    bot = AsyncMock()
    assert await send_text(bot, 42, "hi") is True
