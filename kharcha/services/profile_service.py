import logging
from datetime import date
from decimal import Decimal

from kharcha.categories import seed_default_categories
from kharcha.db.database import get_db
from kharcha.db.models import MonthlySalary, Profile
from kharcha.money import from_minor, to_minor

logger = logging.getLogger(__name__)


class InvalidSettingError(ValueError):
    pass


def _row_to_profile(row) -> Profile:
    return Profile(
        id=row["id"],
        currency=row["currency"],
        total_salary=from_minor(row["total_salary_minor"]),
        personal_budget=from_minor(row["personal_budget_minor"]),
        salary_day=row["salary_day"],
        daily_food_budget=from_minor(row["daily_food_budget_minor"]),
        privacy_mode=bool(row["privacy_mode"]),
    )


def _row_to_salary(row) -> MonthlySalary:
    return MonthlySalary(
        id=row["id"],
        profile_id=row["profile_id"],
        month=date.fromisoformat(row["month"]),
        total_salary=from_minor(row["total_salary_minor"]),
        personal_budget=from_minor(row["personal_budget_minor"]),
        notes=row["notes"],
    )


async def get_profile() -> Profile:
    """Return the single profile, creating it with defaults on first use."""
    db = await get_db()
    cursor = await db.execute("SELECT * FROM profiles ORDER BY id LIMIT 1")
    row = await cursor.fetchone()
    if row:
        return _row_to_profile(row)

    defaults = Profile(id=None)
    cursor = await db.execute(
        """INSERT INTO profiles
        (currency, total_salary_minor, personal_budget_minor, salary_day, daily_food_budget_minor, privacy_mode)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (
            defaults.currency,
            to_minor(defaults.total_salary),
            to_minor(defaults.personal_budget),
            defaults.salary_day,
            to_minor(defaults.daily_food_budget),
            defaults.privacy_mode,
        ),
    )
    await db.commit()
    defaults.id = cursor.lastrowid
    await seed_default_categories(defaults.id)
    logger.info("Created default profile %s", defaults.id)
    return defaults


async def update_profile(**fields) -> Profile:
    profile = await get_profile()
    columns: dict[str, object] = {}
    if "currency" in fields:
        currency = str(fields["currency"]).strip()
        if not currency:
            raise InvalidSettingError("Currency symbol can't be empty.")
        columns["currency"] = currency
    if "salary_day" in fields:
        day = int(fields["salary_day"])
        if not 1 <= day <= 31:
            raise InvalidSettingError("Salary day must be between 1 and 31.")
        columns["salary_day"] = day
    for name in ("total_salary", "personal_budget", "daily_food_budget"):
        if name in fields:
            value = Decimal(fields[name])
            if value < 0:
                raise InvalidSettingError(f"{name.replace('_', ' ').capitalize()} can't be negative.")
            columns[f"{name}_minor"] = to_minor(value)
    if "privacy_mode" in fields:
        columns["privacy_mode"] = bool(fields["privacy_mode"])
    if not columns:
        return profile

    db = await get_db()
    set_clause = ", ".join(f"{k} = ?" for k in columns)
    await db.execute(f"UPDATE profiles SET {set_clause} WHERE id = ?", [*columns.values(), profile.id])
    await db.commit()
    return await get_profile()


async def get_monthly_salary(profile_id: int, month: date) -> MonthlySalary | None:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM monthly_salaries WHERE profile_id = ? AND month = ?",
        (profile_id, month.replace(day=1).isoformat()),
    )
    row = await cursor.fetchone()
    return _row_to_salary(row) if row else None


async def set_monthly_salary(
    profile_id: int,
    month: date,
    total_salary: Decimal,
    personal_budget: Decimal,
    notes: str | None = None,
) -> MonthlySalary:
    if total_salary < 0 or personal_budget < 0:
        raise InvalidSettingError("Salary and budget can't be negative.")
    month = month.replace(day=1)
    db = await get_db()
    await db.execute(
        """INSERT INTO monthly_salaries (profile_id, month, total_salary_minor, personal_budget_minor, notes)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(profile_id, month) DO UPDATE SET
            total_salary_minor = excluded.total_salary_minor,
            personal_budget_minor = excluded.personal_budget_minor,
            notes = excluded.notes""",
        (profile_id, month.isoformat(), to_minor(total_salary), to_minor(personal_budget), notes),
    )
    await db.commit()
    salary = await get_monthly_salary(profile_id, month)
    assert salary is not None
    return salary


async def list_monthly_salaries(profile_id: int, limit: int = 12) -> list[MonthlySalary]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM monthly_salaries WHERE profile_id = ? ORDER BY month DESC LIMIT ?",
        (profile_id, limit),
    )
    rows = await cursor.fetchall()
    return [_row_to_salary(row) for row in rows]


async def delete_monthly_salary(profile_id: int, month: date) -> bool:
    db = await get_db()
    cursor = await db.execute(
        "DELETE FROM monthly_salaries WHERE profile_id = ? AND month = ?",
        (profile_id, month.replace(day=1).isoformat()),
    )
    await db.commit()
    return cursor.rowcount > 0


async def effective_salary(profile: Profile, month: date, materialize: bool = False) -> MonthlySalary:
    """The salary figures in force for ``month``: the override if any, else the profile defaults.

    With ``materialize`` the defaults are written as that month's override.
    """
    override = await get_monthly_salary(profile.id, month)
    if override:
        return override
    if materialize:
        logger.info("Materializing default salary for %s", month.isoformat())
        return await set_monthly_salary(profile.id, month, profile.total_salary, profile.personal_budget)
    return MonthlySalary(
        id=None,
        profile_id=profile.id,
        month=month.replace(day=1),
        total_salary=profile.total_salary,
        personal_budget=profile.personal_budget,
    )
