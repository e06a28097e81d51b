from datetime import date, datetime, timedelta

import pytest

from kharcha.period import anchor_day, resolve


def test_mid_period():
    period = resolve(datetime(2025, 4, 27, 15, 0), salary_day=7)
    assert period.start == datetime(2025, 4, 7)
    assert period.next_start == datetime(2025, 5, 7)
    assert period.end.date() == date(2025, 5, 6)
    assert period.days_in_period == 30
    assert period.days_elapsed == 20
    assert period.days_until_next == 9


def test_before_salary_day_uses_previous_month():
    period = resolve(datetime(2025, 4, 3, 10, 0), salary_day=7)
    assert period.start == datetime(2025, 3, 7)
    assert period.next_start == datetime(2025, 4, 7)
    assert period.days_in_period == 31
    assert period.days_elapsed == 27


def test_year_boundary():
    period = resolve(datetime(2025, 1, 2, 9, 0), salary_day=25)
    assert period.start == datetime(2024, 12, 25)
    assert period.next_start == datetime(2025, 1, 25)


def test_payday_morning_counts_as_payday():
    period = resolve(datetime(2025, 4, 7, 8, 30), salary_day=7)
    assert period.start == datetime(2025, 4, 7)
    assert period.days_elapsed == 0
    assert period.days_until_next == 0


def test_payday_afternoon_counts_new_period():
    period = resolve(datetime(2025, 4, 7, 14, 0), salary_day=7)
    assert period.start == datetime(2025, 4, 7)
    assert period.days_until_next == 29


def test_day_before_payday():
    period = resolve(datetime(2025, 5, 6, 20, 0), salary_day=7)
    assert period.start == datetime(2025, 4, 7)
    assert period.days_until_next == 0


def test_salary_day_clamped_in_short_month():
    assert anchor_day(2025, 2, 31) == date(2025, 2, 28)
    assert anchor_day(2024, 2, 30) == date(2024, 2, 29)
    assert anchor_day(2025, 4, 31) == date(2025, 4, 30)

    period = resolve(datetime(2025, 3, 10, 12, 0), salary_day=31)
    assert period.start == datetime(2025, 2, 28)
    assert period.next_start == datetime(2025, 3, 31)
    assert period.days_in_period == 31


def test_month_key_is_first_of_start_month():
    period = resolve(datetime(2025, 5, 2, 12, 0), salary_day=7)
    assert period.month_key == date(2025, 4, 1)


@pytest.mark.parametrize("salary_day", [0, 32, -1])
def test_invalid_salary_day(salary_day):
    with pytest.raises(ValueError):
        resolve(datetime(2025, 4, 1), salary_day)


@pytest.mark.parametrize("salary_day", range(1, 29))
def test_period_always_contains_now(salary_day):
    now = datetime(2024, 1, 1, 7, 45)
    while now < datetime(2025, 3, 1):
        period = resolve(now, salary_day)
        assert period.start <= now < period.end
        assert period.contains(now)
        assert 0 <= period.days_until_next <= 31
        assert 28 <= period.days_in_period <= 31
        now += timedelta(days=3, hours=5)
