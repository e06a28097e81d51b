import json
from datetime import datetime

from kharcha.categories import OTHER, resolve_category_id
from kharcha.db.database import get_db
from kharcha.db.models import Expense
from kharcha.money import from_minor, to_minor

_SELECT = """SELECT e.*, COALESCE(c.name, 'Other') AS category_name
             FROM expenses e LEFT JOIN categories c ON e.category_id = c.id"""


def _row_to_expense(row) -> Expense:
    return Expense(
        id=row["id"],
        profile_id=row["profile_id"],
        amount=from_minor(row["amount_minor"]),
        category=row["category_name"] or OTHER,
        description=row["description"],
        expense_date=datetime.fromisoformat(row["expense_date"]),
        category_id=row["category_id"],
        subcategory=row["subcategory"],
        tags=json.loads(row["tags_json"]) if row["tags_json"] else [],
        is_fake=bool(row["is_fake"]),
        source=row["source"],
        created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
    )


def _clean_tags(tags: list[str]) -> list[str]:
    return sorted({t.strip().lower() for t in tags if t.strip()})


async def save_expense(expense: Expense) -> int:
    db = await get_db()
    category_id = expense.category_id or await resolve_category_id(expense.profile_id, expense.category)
    cursor = await db.execute(
        """INSERT INTO expenses
        (profile_id, category_id, amount_minor, description, subcategory,
         tags_json, is_fake, source, expense_date)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            expense.profile_id,
            category_id,
            to_minor(expense.amount),
            expense.description,
            expense.subcategory,
            json.dumps(_clean_tags(expense.tags)),
            expense.is_fake,
            expense.source,
            expense.expense_date.isoformat(timespec="seconds"),
        ),
    )
    await db.commit()
    assert cursor.lastrowid is not None
    expense.id = cursor.lastrowid
    expense.category_id = category_id
    return cursor.lastrowid


async def get_expenses(
    profile_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Expense]:
    db = await get_db()
    query = _SELECT + " WHERE e.profile_id = ?"
    params: list[int | str] = [profile_id]
    if start:
        query += " AND e.expense_date >= ?"
        params.append(start.isoformat(timespec="seconds"))
    if end:
        query += " AND e.expense_date <= ?"
        params.append(end.isoformat(timespec="seconds"))
    query += " ORDER BY e.expense_date DESC, e.id DESC"
    cursor = await db.execute(query, params)
    rows = await cursor.fetchall()
    return [_row_to_expense(row) for row in rows]


async def get_expense_by_id(expense_id: int) -> Expense | None:
    db = await get_db()
    cursor = await db.execute(_SELECT + " WHERE e.id = ?", (expense_id,))
    row = await cursor.fetchone()
    return _row_to_expense(row) if row else None


async def get_recent_expenses(profile_id: int, limit: int = 10) -> list[Expense]:
    db = await get_db()
    cursor = await db.execute(
        _SELECT + " WHERE e.profile_id = ? ORDER BY e.expense_date DESC, e.id DESC LIMIT ?",
        (profile_id, limit),
    )
    rows = await cursor.fetchall()
    return [_row_to_expense(row) for row in rows]


async def update_expense(expense_id: int, **fields) -> bool:
    allowed = {"amount", "category", "description", "subcategory", "tags", "expense_date", "is_fake"}
    fields = {k: v for k, v in fields.items() if k in allowed}
    if not fields:
        return False
    existing = await get_expense_by_id(expense_id)
    if existing is None:
        return False

    columns: dict[str, object] = {}
    if "amount" in fields:
        columns["amount_minor"] = to_minor(fields["amount"])
    if "category" in fields:
        columns["category_id"] = await resolve_category_id(existing.profile_id, fields["category"])
    if "description" in fields:
        columns["description"] = fields["description"]
    if "subcategory" in fields:
        columns["subcategory"] = fields["subcategory"]
    if "tags" in fields:
        columns["tags_json"] = json.dumps(_clean_tags(fields["tags"]))
    if "expense_date" in fields:
        columns["expense_date"] = fields["expense_date"].isoformat(timespec="seconds")
    if "is_fake" in fields:
        columns["is_fake"] = bool(fields["is_fake"])

    db = await get_db()
    set_clause = ", ".join(f"{k} = ?" for k in columns)
    cursor = await db.execute(f"UPDATE expenses SET {set_clause} WHERE id = ?", [*columns.values(), expense_id])
    await db.commit()
    return cursor.rowcount > 0


async def delete_expense(profile_id: int, expense_id: int) -> Expense | None:
    expense = await get_expense_by_id(expense_id)
    if not expense or expense.profile_id != profile_id:
        return None
    db = await get_db()
    await db.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
    await db.commit()
    return expense


async def delete_last_expense(profile_id: int) -> Expense | None:
    db = await get_db()
    cursor = await db.execute(
        _SELECT + " WHERE e.profile_id = ? ORDER BY e.id DESC LIMIT 1",
        (profile_id,),
    )
    row = await cursor.fetchone()
    if not row:
        return None
    expense = _row_to_expense(row)
    await db.execute("DELETE FROM expenses WHERE id = ?", (expense.id,))
    await db.commit()
    return expense
