"""Budget and insight calculations for one fiscal period.

Everything here is a pure function of a profile, a list of expenses, and
"now". The expense list may reach outside the period (the week view, for
example, can start before payday); ``build_report`` narrows it to the period
window before computing anything.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import StrEnum

from kharcha.aggregate import Window, category_totals, day_window, distinct_days, filter_expenses, sum_expenses
from kharcha.categories import FOOD
from kharcha.db.models import Expense, Profile
from kharcha.money import CENTS, ZERO, floor_money
from kharcha.period import FiscalPeriod, resolve


class StatusLevel(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    CAUTION = "caution"
    MILD_CAUTION = "mild-caution"
    HEALTHY = "healthy"


@dataclass(frozen=True, slots=True)
class Thresholds:
    critical_balance: Decimal = Decimal("2000")
    warning_balance: Decimal = Decimal("5000")
    caution_overspend: Decimal = Decimal("2000")
    mild_overspend: Decimal = Decimal("500")


@dataclass(frozen=True, slots=True)
class BudgetStatus:
    level: StatusLevel
    reason: str


@dataclass(frozen=True, slots=True)
class WeekPattern:
    weekday_total: Decimal
    weekend_total: Decimal
    weekday_average: Decimal
    weekend_average: Decimal

    @property
    def weekend_premium_pct(self) -> Decimal | None:
        """How much higher (or lower, if negative) the weekend average is, in percent."""
        if self.weekday_average <= 0:
            return None
        return ((self.weekend_average - self.weekday_average) / self.weekday_average * 100).quantize(Decimal("1"))


@dataclass(frozen=True, slots=True)
class CategorySpend:
    name: str
    spent: Decimal
    budget: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.spent

    @property
    def pct(self) -> Decimal:
        if self.budget <= 0:
            return ZERO
        return (self.spent / self.budget * 100).quantize(Decimal("1"))


@dataclass(frozen=True, slots=True)
class InsightReport:
    period: FiscalPeriod
    personal_budget: Decimal
    total_spent: Decimal
    remaining: Decimal
    original_daily_budget: Decimal
    adjusted_daily_budget: Decimal
    daily_average: Decimal
    overspending: Decimal
    projected_period_end: Decimal
    status: BudgetStatus
    today_spent: Decimal
    food_streak: int
    food_daily_average: Decimal
    week_pattern: WeekPattern
    categories: list[CategorySpend] = field(default_factory=list)


def original_daily_budget(personal_budget: Decimal, period: FiscalPeriod) -> Decimal:
    return floor_money(personal_budget / period.days_in_period)


def adjusted_daily_budget(remaining: Decimal, days_until_next: int) -> Decimal:
    if remaining <= 0:
        return ZERO
    if days_until_next == 0:
        return remaining
    return floor_money(remaining / max(days_until_next, 1))


def daily_average(total_spent: Decimal, days_elapsed: int) -> Decimal:
    if days_elapsed <= 0:
        return ZERO
    return (total_spent / days_elapsed).quantize(CENTS)


def projected_period_end(total_spent: Decimal, average: Decimal, period: FiscalPeriod, budget: Decimal) -> Decimal:
    if total_spent <= 0:
        return ZERO
    return min(average * period.days_in_period, budget).quantize(CENTS)


def classify_status(remaining: Decimal, overspending: Decimal, thresholds: Thresholds = Thresholds()) -> BudgetStatus:
    if remaining <= 0:
        return BudgetStatus(StatusLevel.CRITICAL, "over budget")
    if remaining < thresholds.critical_balance:
        return BudgetStatus(StatusLevel.CRITICAL, "low balance")
    if remaining < thresholds.warning_balance:
        return BudgetStatus(StatusLevel.WARNING, "running low")
    if overspending > thresholds.caution_overspend:
        return BudgetStatus(StatusLevel.CAUTION, "spending well ahead of pace")
    if overspending > thresholds.mild_overspend:
        return BudgetStatus(StatusLevel.MILD_CAUTION, "spending a little ahead of pace")
    return BudgetStatus(StatusLevel.HEALTHY, "on track")


def food_streak(expenses: Sequence[Expense], now: datetime, period: FiscalPeriod, daily_food_budget: Decimal) -> int:
    """Consecutive days, today backwards, with food spending within the daily food budget."""
    food = filter_expenses(expenses, category=FOOD)
    streak = 0
    day = now.date()
    while day >= period.start.date():
        if sum_expenses(food, day_window(day)) > daily_food_budget:
            break
        streak += 1
        day -= timedelta(days=1)
    return streak


def week_pattern(expenses: Sequence[Expense]) -> WeekPattern:
    weekend = [e for e in expenses if e.expense_date.weekday() >= 5]
    weekday = [e for e in expenses if e.expense_date.weekday() < 5]

    def _avg(bucket: list[Expense]) -> tuple[Decimal, Decimal]:
        total = sum_expenses(bucket)
        days = distinct_days(bucket)
        return total, (total / days).quantize(CENTS) if days else ZERO

    weekday_total, weekday_avg = _avg(weekday)
    weekend_total, weekend_avg = _avg(weekend)
    return WeekPattern(weekday_total, weekend_total, weekday_avg, weekend_avg)


def food_daily_average(expenses: Sequence[Expense]) -> Decimal:
    food = filter_expenses(expenses, category=FOOD)
    days = distinct_days(food)
    if not days:
        return ZERO
    return (sum_expenses(food) / days).quantize(CENTS)


def category_breakdown(expenses: Sequence[Expense], budgets: Mapping[str, Decimal]) -> list[CategorySpend]:
    spent = category_totals(expenses)
    names = list(spent) + [name for name in budgets if name not in spent]
    return [CategorySpend(name, spent.get(name, ZERO), budgets.get(name, ZERO)) for name in names]


def build_report(
    profile: Profile,
    expenses: Sequence[Expense],
    now: datetime,
    *,
    personal_budget: Decimal | None = None,
    category_budgets: Mapping[str, Decimal] | None = None,
    thresholds: Thresholds = Thresholds(),
) -> InsightReport:
    period = resolve(now, profile.salary_day)
    budget = profile.personal_budget if personal_budget is None else personal_budget
    in_period = filter_expenses(expenses, Window(period.start, period.end))

    total = sum_expenses(in_period)
    remaining = budget - total
    flat_daily = original_daily_budget(budget, period)
    average = daily_average(total, period.days_elapsed)
    overspending = total - flat_daily * period.days_elapsed

    return InsightReport(
        period=period,
        personal_budget=budget,
        total_spent=total,
        remaining=remaining,
        original_daily_budget=flat_daily,
        adjusted_daily_budget=adjusted_daily_budget(remaining, period.days_until_next),
        daily_average=average,
        overspending=overspending,
        projected_period_end=projected_period_end(total, average, period, budget),
        status=classify_status(remaining, overspending, thresholds),
        today_spent=sum_expenses(in_period, day_window(now.date())),
        food_streak=food_streak(in_period, now, period, profile.daily_food_budget),
        food_daily_average=food_daily_average(in_period),
        week_pattern=week_pattern(in_period),
        categories=category_breakdown(in_period, category_budgets or {}),
    )
