from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

PRIVACY_LABEL = "Miscellaneous"


@dataclass(slots=True)
class Profile:
    id: int | None
    currency: str = "₹"
    total_salary: Decimal = Decimal("100000.00")
    personal_budget: Decimal = Decimal("35000.00")
    salary_day: int = 7
    daily_food_budget: Decimal = Decimal("400.00")
    privacy_mode: bool = True


@dataclass(slots=True)
class Category:
    id: int | None
    profile_id: int
    name: str
    budget: Decimal = Decimal("0.00")
    subcategories: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Expense:
    id: int | None
    profile_id: int
    amount: Decimal
    category: str
    description: str
    expense_date: datetime
    category_id: int | None = None
    subcategory: str | None = None
    tags: list[str] = field(default_factory=list)
    is_fake: bool = False
    source: str = "chat"
    created_at: datetime | None = None

    def display_description(self, privacy_mode: bool) -> str:
        if privacy_mode and self.is_fake:
            return PRIVACY_LABEL
        return self.description


@dataclass(slots=True)
class MonthlySalary:
    id: int | None
    profile_id: int
    month: date
    total_salary: Decimal
    personal_budget: Decimal
    notes: str | None = None
