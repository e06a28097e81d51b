import aiosqlite

from kharcha.config import settings

SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
    id INTEGER PRIMARY KEY,
    currency TEXT NOT NULL DEFAULT '₹',
    total_salary_minor INTEGER NOT NULL DEFAULT 10000000 CHECK(total_salary_minor >= 0),
    personal_budget_minor INTEGER NOT NULL DEFAULT 3500000 CHECK(personal_budget_minor >= 0),
    salary_day INTEGER NOT NULL DEFAULT 7 CHECK(salary_day >= 1 AND salary_day <= 31),
    daily_food_budget_minor INTEGER NOT NULL DEFAULT 40000 CHECK(daily_food_budget_minor >= 0),
    privacy_mode BOOLEAN NOT NULL DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY,
    profile_id INTEGER NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    budget_minor INTEGER NOT NULL DEFAULT 0 CHECK(budget_minor >= 0),
    subcategories_json TEXT,
    UNIQUE(profile_id, name)
);

CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY,
    profile_id INTEGER NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    category_id INTEGER REFERENCES categories(id) ON DELETE SET NULL,
    amount_minor INTEGER NOT NULL CHECK(amount_minor > 0),
    description TEXT NOT NULL,
    subcategory TEXT,
    tags_json TEXT,
    is_fake BOOLEAN NOT NULL DEFAULT 0,
    source TEXT NOT NULL,
    expense_date TIMESTAMP NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS monthly_salaries (
    id INTEGER PRIMARY KEY,
    profile_id INTEGER NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    month DATE NOT NULL,
    total_salary_minor INTEGER NOT NULL CHECK(total_salary_minor >= 0),
    personal_budget_minor INTEGER NOT NULL CHECK(personal_budget_minor >= 0),
    notes TEXT,
    UNIQUE(profile_id, month)
);

CREATE INDEX IF NOT EXISTS idx_expenses_profile_date ON expenses(profile_id, expense_date);
CREATE INDEX IF NOT EXISTS idx_expenses_profile_id ON expenses(profile_id, id DESC);
"""

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    global _db
    if _db is None:
        _db = await aiosqlite.connect(settings.db_path)
        _db.row_factory = aiosqlite.Row
        await _db.execute("PRAGMA journal_mode=WAL")
        await _db.execute("PRAGMA foreign_keys=ON")
    return _db


async def close_db():
    global _db
    if _db is not None:
        await _db.close()
        _db = None


async def init_db():
    db = await get_db()
    await db.executescript(SCHEMA)
    await db.commit()
