from decimal import Decimal

import pytest

from kharcha.parser import ParsedExpense, parse, parse_add


def test_leading_number():
    assert parse("200 lunch") == ParsedExpense(Decimal("200"), "lunch", "Food")


def test_trailing_number():
    assert parse("coffee 50") == ParsedExpense(Decimal("50"), "coffee", "Food")


def test_spent_on():
    assert parse("spent 500 on drinks") == ParsedExpense(Decimal("500"), "drinks", "Alcohol")


def test_paid_for():
    assert parse("paid 200 for dinner") == ParsedExpense(Decimal("200"), "dinner", "Food")


def test_bought_for():
    assert parse("bought coffee for 50") == ParsedExpense(Decimal("50"), "coffee", "Food")


def test_case_and_whitespace():
    parsed = parse("  Spent   120 on   Uber  ")
    assert parsed == ParsedExpense(Decimal("120"), "Uber", "Travel")


@pytest.mark.parametrize("text", ["balance", "Balance", "today", "help", "week", "food", "undo"])
def test_reserved_words_are_not_expenses(text):
    assert parse(text) is None


@pytest.mark.parametrize("text", ["", "   ", "200", "lunch", "hello there", "lunch 0", "0 lunch", "5000000 car"])
def test_rejects_non_expenses(text):
    assert parse(text) is None


def test_first_pattern_wins():
    # Leading-number form is tried before trailing-number form.
    assert parse("2 beers 300") == ParsedExpense(Decimal("2"), "beers 300", "Alcohol")


def test_unknown_keywords_fall_back_to_other():
    assert parse("450 stationery") == ParsedExpense(Decimal("450"), "stationery", "Other")


def test_max_amount_boundary():
    assert parse("1000000 rent").amount == Decimal("1000000")
    assert parse("1000001 rent") is None


def test_add_prefix():
    assert parse_add("add 150 uber") == ParsedExpense(Decimal("150"), "uber", "Travel")
    assert parse_add("Add coffee 40") == ParsedExpense(Decimal("40"), "coffee", "Food")
    assert parse_add("150 uber") is None
    assert parse_add("add lunch") is None
