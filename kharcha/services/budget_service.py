from dataclasses import dataclass
from datetime import datetime, time, timedelta
from decimal import Decimal

from kharcha.categories import category_budgets
from kharcha.config import settings
from kharcha.db.models import Expense, MonthlySalary, Profile
from kharcha.insights import InsightReport, Thresholds, build_report
from kharcha.period import FiscalPeriod, local_now, resolve
from kharcha.services.expense_service import get_expenses
from kharcha.services.profile_service import effective_salary, get_profile

# Extra history loaded before the period start so week/yesterday views that
# straddle payday still see their expenses.
HISTORY_DAYS = 7


def thresholds_from_settings() -> Thresholds:
    return Thresholds(
        critical_balance=settings.critical_balance,
        warning_balance=settings.warning_balance,
        caution_overspend=settings.caution_overspend,
        mild_overspend=settings.mild_overspend,
    )


@dataclass(slots=True)
class BudgetContext:
    """Everything one request needs, loaded once and passed around explicitly."""

    profile: Profile
    now: datetime
    period: FiscalPeriod
    salary: MonthlySalary
    category_budgets: dict[str, Decimal]
    expenses: list[Expense]
    thresholds: Thresholds

    @property
    def currency(self) -> str:
        return self.profile.currency

    @property
    def personal_budget(self) -> Decimal:
        return self.salary.personal_budget

    def report(self) -> InsightReport:
        return build_report(
            self.profile,
            self.expenses,
            self.now,
            personal_budget=self.personal_budget,
            category_budgets=self.category_budgets,
            thresholds=self.thresholds,
        )


async def load_context(now: datetime | None = None, materialize: bool = False) -> BudgetContext:
    now = now or local_now()
    profile = await get_profile()
    period = resolve(now, profile.salary_day)
    salary = await effective_salary(profile, period.month_key, materialize=materialize)
    history_start = min(period.start, datetime.combine(now.date() - timedelta(days=HISTORY_DAYS), time.min))
    expenses = await get_expenses(profile.id, start=history_start, end=period.end)
    return BudgetContext(
        profile=profile,
        now=now,
        period=period,
        salary=salary,
        category_budgets=await category_budgets(profile.id),
        expenses=expenses,
        thresholds=thresholds_from_settings(),
    )
