"""Fiscal period resolution.

A fiscal period runs from the salary day of one month up to the day before the
salary day of the next month. Salary days past the end of a short month are
clamped to that month's last day, so salary day 31 means Apr 30 in April and
Feb 28/29 in February.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from kharcha.config import settings

# On the salary day itself, hours before this count as "payday is today"
# (days_until_next == 0); from this hour on, the new period is counted.
PAYDAY_CUTOFF_HOUR = 12
MAX_DAYS_UNTIL_NEXT = 31


@dataclass(frozen=True, slots=True)
class FiscalPeriod:
    start: datetime
    end: datetime
    next_start: datetime
    days_in_period: int
    days_elapsed: int
    days_until_next: int

    @property
    def month_key(self) -> date:
        """First day of the month the period started in (key for salary overrides)."""
        return self.start.date().replace(day=1)

    @property
    def label(self) -> str:
        return f"{self.start:%d %b} – {self.end:%d %b %Y}"

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def anchor_day(year: int, month: int, salary_day: int) -> date:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(salary_day, last))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def resolve(now: datetime, salary_day: int) -> FiscalPeriod:
    if not 1 <= salary_day <= 31:
        raise ValueError(f"salary_day must be between 1 and 31, got {salary_day}")

    this_anchor = anchor_day(now.year, now.month, salary_day)
    if now.date() >= this_anchor:
        start_day = this_anchor
    else:
        y, m = _shift_month(now.year, now.month, -1)
        start_day = anchor_day(y, m, salary_day)

    y, m = _shift_month(start_day.year, start_day.month, 1)
    next_day = anchor_day(y, m, salary_day)

    start = datetime.combine(start_day, time.min)
    next_start = datetime.combine(next_day, time.min)
    end = datetime.combine(next_day - timedelta(days=1), time.max)

    if now.date() == start_day and now.hour < PAYDAY_CUTOFF_HOUR:
        days_until_next = 0
    else:
        days_until_next = (next_start - now).days
        days_until_next = max(0, min(days_until_next, MAX_DAYS_UNTIL_NEXT))

    return FiscalPeriod(
        start=start,
        end=end,
        next_start=next_start,
        days_in_period=(next_day - start_day).days,
        days_elapsed=(now.date() - start_day).days,
        days_until_next=days_until_next,
    )


def local_now() -> datetime:
    """Wall-clock time in the configured zone, as a naive datetime."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)
