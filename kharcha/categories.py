import json
import logging
from decimal import Decimal

from kharcha.db.database import get_db
from kharcha.db.models import Category
from kharcha.money import from_minor, to_minor

logger = logging.getLogger(__name__)

FOOD = "Food"
TRAVEL = "Travel"
ALCOHOL = "Alcohol"
MISCELLANEOUS = "Miscellaneous"
OTHER = "Other"

DEFAULT_CATEGORIES: dict[str, Decimal] = {
    FOOD: Decimal("12000.00"),
    TRAVEL: Decimal("1600.00"),
    ALCOHOL: Decimal("5000.00"),
    MISCELLANEOUS: Decimal("5000.00"),
    OTHER: Decimal("11400.00"),
}

# Scanned top to bottom, first containment hit wins, so short keywords also
# hit longer words ("cab" in "cabbage", "bus" in "business"). Other has no keywords:
# it is the fallback.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    FOOD: (
        "food", "lunch", "dinner", "breakfast", "brunch", "coffee", "tea", "chai",
        "snack", "meal", "restaurant", "cafe", "pizza", "burger", "biryani",
        "swiggy", "zomato", "grocery", "groceries", "fruit", "juice",
    ),
    TRAVEL: (
        "travel", "uber", "rapido", "taxi", "cab", "auto", "metro", "bus",
        "train", "flight", "petrol", "fuel", "parking", "toll", "transport",
    ),
    ALCOHOL: ("alcohol", "drink", "beer", "wine", "whisky", "vodka", "pub"),
    MISCELLANEOUS: ("misc", "shopping", "movie", "gift", "haircut", "medicine", "recharge"),
}


def classify(description: str) -> str:
    text = description.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return category
    return OTHER


def _row_to_category(row) -> Category:
    return Category(
        id=row["id"],
        profile_id=row["profile_id"],
        name=row["name"],
        budget=from_minor(row["budget_minor"]),
        subcategories=json.loads(row["subcategories_json"]) if row["subcategories_json"] else [],
    )


async def seed_default_categories(profile_id: int) -> None:
    db = await get_db()
    await db.executemany(
        "INSERT OR IGNORE INTO categories (profile_id, name, budget_minor) VALUES (?, ?, ?)",
        [(profile_id, name, to_minor(budget)) for name, budget in DEFAULT_CATEGORIES.items()],
    )
    await db.commit()


async def get_categories(profile_id: int) -> list[Category]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM categories WHERE profile_id = ? ORDER BY name",
        (profile_id,),
    )
    rows = await cursor.fetchall()
    return [_row_to_category(row) for row in rows]


async def get_category(profile_id: int, name: str) -> Category | None:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM categories WHERE profile_id = ? AND name = ? COLLATE NOCASE",
        (profile_id, name.strip()),
    )
    row = await cursor.fetchone()
    return _row_to_category(row) if row else None


async def resolve_category_id(profile_id: int, name: str) -> int | None:
    """Category id for ``name``, falling back to Other when there is no such category."""
    category = await get_category(profile_id, name)
    if category is None and name != OTHER:
        logger.warning("Unknown category %r, filing under %s", name, OTHER)
        category = await get_category(profile_id, OTHER)
    return category.id if category else None


async def category_budgets(profile_id: int) -> dict[str, Decimal]:
    return {c.name: c.budget for c in await get_categories(profile_id)}


async def set_category_budget(profile_id: int, name: str, budget: Decimal) -> bool:
    """Update a category budget. Returns False if the category doesn't exist."""
    db = await get_db()
    cursor = await db.execute(
        "UPDATE categories SET budget_minor = ? WHERE profile_id = ? AND name = ? COLLATE NOCASE",
        (to_minor(budget), profile_id, name.strip()),
    )
    await db.commit()
    return cursor.rowcount > 0

