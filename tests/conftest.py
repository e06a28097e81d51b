import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")

from datetime import datetime
from decimal import Decimal

import aiosqlite
import pytest

import kharcha.db.database as db_mod
from kharcha.db.models import Expense


@pytest.fixture(autouse=True)
async def test_db(monkeypatch):
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys=ON")
    await conn.executescript(db_mod.SCHEMA)
    await conn.commit()

    async def _get_db():
        return conn

    monkeypatch.setattr(db_mod, "get_db", _get_db)
    monkeypatch.setattr(db_mod, "_db", conn)

    yield conn

    await conn.close()


def make_expense(amount, category="Food", when=datetime(2025, 4, 20, 13, 0), **overrides) -> Expense:
    fields = dict(
        id=None,
        profile_id=1,
        amount=Decimal(str(amount)),
        category=category,
        description=category.lower(),
        expense_date=when,
    )
    fields.update(overrides)
    return Expense(**fields)
