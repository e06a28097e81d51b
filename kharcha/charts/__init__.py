from kharcha.charts.templates import (
    daily_spending_chart,
    spending_by_category_chart,
)

__all__ = [
    "daily_spending_chart",
    "spending_by_category_chart",
]
