from datetime import date
from decimal import Decimal

import pytest

from kharcha.services.profile_service import (
    InvalidSettingError,
    delete_monthly_salary,
    effective_salary,
    get_monthly_salary,
    get_profile,
    list_monthly_salaries,
    set_monthly_salary,
    update_profile,
)


async def test_default_profile_created_once():
    first = await get_profile()
    second = await get_profile()
    assert first.id == second.id
    assert first.personal_budget == Decimal("35000.00")
    assert first.salary_day == 7
    assert first.privacy_mode is True


async def test_update_profile():
    profile = await update_profile(salary_day=25, personal_budget=Decimal("40000"), privacy_mode=False)
    assert profile.salary_day == 25
    assert profile.personal_budget == Decimal("40000.00")
    assert profile.privacy_mode is False


@pytest.mark.parametrize(
    "fields",
    [{"salary_day": 0}, {"salary_day": 32}, {"personal_budget": Decimal("-1")}, {"currency": " "}],
)
async def test_update_profile_rejects(fields):
    with pytest.raises(InvalidSettingError):
        await update_profile(**fields)


async def test_monthly_salary_upsert():
    profile = await get_profile()
    await set_monthly_salary(profile.id, date(2025, 4, 15), Decimal("90000"), Decimal("30000"), "bonus month")
    salary = await set_monthly_salary(profile.id, date(2025, 4, 1), Decimal("95000"), Decimal("32000"))
    assert salary.month == date(2025, 4, 1)
    assert salary.total_salary == Decimal("95000.00")
    assert salary.notes is None
    assert len(await list_monthly_salaries(profile.id)) == 1


async def test_list_newest_first():
    profile = await get_profile()
    for month in (date(2025, 2, 1), date(2025, 4, 1), date(2025, 3, 1)):
        await set_monthly_salary(profile.id, month, Decimal("100000"), Decimal("35000"))
    months = [s.month for s in await list_monthly_salaries(profile.id, limit=2)]
    assert months == [date(2025, 4, 1), date(2025, 3, 1)]


async def test_delete_monthly_salary():
    profile = await get_profile()
    await set_monthly_salary(profile.id, date(2025, 4, 1), Decimal("1"), Decimal("1"))
    assert await delete_monthly_salary(profile.id, date(2025, 4, 1)) is True
    assert await delete_monthly_salary(profile.id, date(2025, 4, 1)) is False


async def test_negative_salary_rejected():
    profile = await get_profile()
    with pytest.raises(InvalidSettingError):
        await set_monthly_salary(profile.id, date(2025, 4, 1), Decimal("-5"), Decimal("0"))


async def test_effective_salary_prefers_override():
    profile = await get_profile()
    await set_monthly_salary(profile.id, date(2025, 4, 1), Decimal("80000"), Decimal("28000"))
    salary = await effective_salary(profile, date(2025, 4, 1))
    assert salary.personal_budget == Decimal("28000.00")


async def test_effective_salary_defaults_without_saving():
    profile = await get_profile()
    salary = await effective_salary(profile, date(2025, 5, 1))
    assert salary.id is None
    assert salary.personal_budget == profile.personal_budget
    assert await get_monthly_salary(profile.id, date(2025, 5, 1)) is None


async def test_effective_salary_materializes():
    profile = await get_profile()
    salary = await effective_salary(profile, date(2025, 5, 1), materialize=True)
    assert salary.id is not None
    stored = await get_monthly_salary(profile.id, date(2025, 5, 1))
    assert stored.total_salary == profile.total_salary
