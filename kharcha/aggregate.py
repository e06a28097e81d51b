from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from kharcha.db.models import Expense
from kharcha.money import ZERO


@dataclass(frozen=True, slots=True)
class Window:
    """Inclusive time window."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def day_window(day: date) -> Window:
    return Window(datetime.combine(day, time.min), datetime.combine(day, time.max))


def week_window(now: datetime) -> Window:
    """Monday of the current week through the end of today."""
    monday = now.date() - timedelta(days=now.weekday())
    return Window(datetime.combine(monday, time.min), datetime.combine(now.date(), time.max))


def weekend_window(now: datetime) -> Window:
    """The most recent Saturday–Sunday, or the current one if today is on it."""
    saturday = now.date() - timedelta(days=(now.weekday() - 5) % 7)
    return Window(datetime.combine(saturday, time.min), datetime.combine(saturday + timedelta(days=1), time.max))


def filter_expenses(
    expenses: Iterable[Expense],
    window: Window | None = None,
    category: str | None = None,
) -> list[Expense]:
    return [
        e
        for e in expenses
        if (window is None or window.contains(e.expense_date)) and (category is None or e.category == category)
    ]


def sum_expenses(
    expenses: Iterable[Expense],
    window: Window | None = None,
    category: str | None = None,
) -> Decimal:
    return sum((e.amount for e in filter_expenses(expenses, window, category)), ZERO)


def daily_totals(expenses: Iterable[Expense], category: str | None = None) -> dict[date, Decimal]:
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for e in filter_expenses(expenses, category=category):
        totals[e.expense_date.date()] += e.amount
    return dict(sorted(totals.items()))


def category_totals(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Totals per category, largest first."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for e in expenses:
        totals[e.category] += e.amount
    return dict(sorted(totals.items(), key=lambda kv: (-kv[1], kv[0])))


def distinct_days(expenses: Sequence[Expense]) -> int:
    return len({e.expense_date.date() for e in expenses})
