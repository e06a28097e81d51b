from decimal import Decimal

import pytest

from kharcha.categories import (
    DEFAULT_CATEGORIES,
    OTHER,
    category_budgets,
    classify,
    get_categories,
    get_category,
    resolve_category_id,
    set_category_budget,
)
from kharcha.services.profile_service import get_profile


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("Lunch at office", "Food"),
        ("swiggy order", "Food"),
        ("uber to airport", "Travel"),
        ("metro card", "Travel"),
        ("beer", "Alcohol"),
        ("movie tickets", "Miscellaneous"),
        ("electricity bill", "Other"),
        ("chocolate", "Other"),
        ("instrument", "Other"),
        ("chocolate bar", "Other"),
        ("barber haircut", "Miscellaneous"),
        ("public transport", "Travel"),
        ("pub", "Alcohol"),
    ],
)
def test_classify(description, expected):
    assert classify(description) == expected


def test_classify_priority_order():
    # Matches both Food ("dinner") and Alcohol ("drink"); Food is scanned first.
    assert classify("dinner and drinks") == "Food"
    assert classify("cab to the pub") == "Travel"


async def test_defaults_seeded_with_profile():
    profile = await get_profile()
    cats = await get_categories(profile.id)
    assert {c.name for c in cats} == set(DEFAULT_CATEGORIES)
    budgets = await category_budgets(profile.id)
    assert budgets["Food"] == Decimal("12000.00")
    assert sum(budgets.values()) == Decimal("35000.00")


async def test_lookup_is_case_insensitive():
    profile = await get_profile()
    cat = await get_category(profile.id, "food")
    assert cat is not None
    assert cat.name == "Food"


async def test_unknown_category_falls_back_to_other():
    profile = await get_profile()
    other = await get_category(profile.id, OTHER)
    assert await resolve_category_id(profile.id, "Gadgets") == other.id


async def test_set_category_budget():
    profile = await get_profile()
    assert await set_category_budget(profile.id, "travel", Decimal("2500")) is True
    assert (await category_budgets(profile.id))["Travel"] == Decimal("2500.00")
    assert await set_category_budget(profile.id, "Gadgets", Decimal("100")) is False
