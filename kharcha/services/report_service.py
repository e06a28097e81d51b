"""Chat-ready HTML renderings of budget data.

Every function takes an already-loaded ``BudgetContext`` (and, where it needs
the engine's numbers, the ``InsightReport`` built from it) so one reply never
mixes two different period computations.
"""

from collections.abc import Sequence
from datetime import timedelta
from decimal import Decimal

from aiogram import html

from kharcha.aggregate import (
    Window,
    category_totals,
    day_window,
    filter_expenses,
    sum_expenses,
    week_window,
    weekend_window,
)
from kharcha.db.models import Expense, MonthlySalary
from kharcha.insights import InsightReport, StatusLevel
from kharcha.money import format_amount
from kharcha.services.budget_service import BudgetContext

STATUS_ICONS: dict[StatusLevel, str] = {
    StatusLevel.CRITICAL: "🚨",
    StatusLevel.WARNING: "⚠️",
    StatusLevel.CAUTION: "🟠",
    StatusLevel.MILD_CAUTION: "🟡",
    StatusLevel.HEALTHY: "✅",
}

CATEGORY_ICONS: dict[str, str] = {
    "Food": "🍽️",
    "Travel": "🚗",
    "Alcohol": "🍺",
    "Miscellaneous": "🧾",
    "Other": "📦",
}

MAX_LISTED = 10


def progress_bar(pct: Decimal, width: int = 10) -> str:
    filled = max(0, min(int(pct / 100 * width), width))
    return "█" * filled + "░" * (width - filled)


def status_line(report: InsightReport) -> str:
    status = report.status
    return f"{STATUS_ICONS[status.level]} <i>Status: {status.level.value} ({status.reason})</i>"


def expense_line(expense: Expense, ctx: BudgetContext, with_date: bool = False) -> str:
    when = f"{expense.expense_date:%d %b}" if with_date else f"{expense.expense_date:%H:%M}"
    desc = html.quote(expense.display_description(ctx.profile.privacy_mode))
    return f"• {format_amount(expense.amount, ctx.currency)} {desc} <i>({expense.category}, {when})</i>"


def _listing(expenses: Sequence[Expense], ctx: BudgetContext, with_date: bool) -> list[str]:
    lines = [expense_line(e, ctx, with_date) for e in expenses[:MAX_LISTED]]
    if len(expenses) > MAX_LISTED:
        lines.append(f"<i>... and {len(expenses) - MAX_LISTED} more</i>")
    return lines


def payday_line(report: InsightReport) -> str:
    days = report.period.days_until_next
    if days == 0:
        return "💸 Payday is today!"
    return f"📅 Payday in {days} day{'s' if days != 1 else ''}"


def balance_text(ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    return "\n".join([
        f"💰 <b>Balance</b> ({report.period.label})",
        "",
        f"📊 <b>Spent:</b> {format_amount(report.total_spent, cur)} of {format_amount(report.personal_budget, cur)}",
        f"🎯 <b>Remaining:</b> {format_amount(report.remaining, cur)}",
        f"📆 <b>Daily allowance:</b> {format_amount(report.adjusted_daily_budget, cur)}"
        f" (plan: {format_amount(report.original_daily_budget, cur)})",
        payday_line(report),
        "",
        status_line(report),
    ])


def window_text(title: str, ctx: BudgetContext, window: Window, empty: str) -> str:
    expenses = filter_expenses(ctx.expenses, window)
    if not expenses:
        return f"{title}\n\n{empty}"
    total = sum_expenses(expenses)
    lines = [title, "", f"💰 <b>Total:</b> {format_amount(total, ctx.currency)} ({len(expenses)} expenses)"]
    by_cat = category_totals(expenses)
    if len(by_cat) > 1:
        lines.append("")
        lines.extend(
            f"{CATEGORY_ICONS.get(name, '•')} {name}: {format_amount(amount, ctx.currency)}"
            for name, amount in by_cat.items()
        )
    multi_day = window.end.date() != window.start.date()
    lines.append("")
    lines.extend(_listing(expenses, ctx, with_date=multi_day))
    return "\n".join(lines)


def today_text(ctx: BudgetContext, report: InsightReport) -> str:
    text = window_text("📊 <b>Today</b>", ctx, day_window(ctx.now.date()), "Nothing logged today yet.")
    cur = ctx.currency
    if report.today_spent > report.original_daily_budget:
        over = report.today_spent - report.original_daily_budget
        plan = format_amount(report.original_daily_budget, cur)
        text += f"\n\n⚠️ Over the daily plan of {plan} by {format_amount(over, cur)}"
    else:
        left = report.original_daily_budget - report.today_spent
        text += f"\n\n✅ {format_amount(left, cur)} left of today's plan"
    return text


def yesterday_text(ctx: BudgetContext) -> str:
    yesterday = ctx.now.date() - timedelta(days=1)
    return window_text("🗓 <b>Yesterday</b>", ctx, day_window(yesterday), "Nothing was logged yesterday.")


def week_text(ctx: BudgetContext) -> str:
    return window_text("📈 <b>This Week</b>", ctx, week_window(ctx.now), "Nothing logged this week yet.")


def weekend_text(ctx: BudgetContext, report: InsightReport) -> str:
    text = window_text("🎉 <b>Weekend</b>", ctx, weekend_window(ctx.now), "Nothing logged over the weekend.")
    return text + "\n\n" + week_pattern_line(ctx, report)


def week_pattern_line(ctx: BudgetContext, report: InsightReport) -> str:
    pattern = report.week_pattern
    cur = ctx.currency
    line = (
        f"📊 Avg spending day: weekdays {format_amount(pattern.weekday_average, cur)},"
        f" weekends {format_amount(pattern.weekend_average, cur)}"
    )
    premium = pattern.weekend_premium_pct
    if premium is not None and premium > 0:
        line += f"\nYou spend {premium}% more on weekend days."
    elif premium is not None and premium < 0:
        line += f"\nYou spend {-premium}% less on weekend days."
    return line


def month_text(ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    lines = [
        f"🗓 <b>Fiscal Month</b> ({report.period.label})",
        "",
        f"💰 <b>Spent:</b> {format_amount(report.total_spent, cur)} of {format_amount(report.personal_budget, cur)}",
        f"🎯 <b>Remaining:</b> {format_amount(report.remaining, cur)}",
        "",
    ]
    for c in report.categories:
        icon = CATEGORY_ICONS.get(c.name, "•")
        if c.budget > 0:
            lines.append(
                f"{icon} {c.name}: {format_amount(c.spent, cur)} / {format_amount(c.budget, cur)}\n"
                f"  {progress_bar(c.pct)} {c.pct}%"
            )
        else:
            lines.append(f"{icon} {c.name}: {format_amount(c.spent, cur)}")
    lines.extend(["", status_line(report)])
    return "\n".join(lines)


def category_text(ctx: BudgetContext, report: InsightReport, category: str) -> str:
    cur = ctx.currency
    period_window = Window(report.period.start, report.period.end)
    expenses = filter_expenses(ctx.expenses, period_window, category)
    spend = next((c for c in report.categories if c.name == category), None)
    icon = CATEGORY_ICONS.get(category, "•")
    lines = [f"{icon} <b>{category}</b> ({report.period.label})", ""]
    spent = spend.spent if spend else sum_expenses(expenses)
    lines.append(f"💰 <b>Spent:</b> {format_amount(spent, cur)}")
    if spend and spend.budget > 0:
        left = format_amount(spend.remaining, cur)
        lines.append(f"🎯 <b>Budget:</b> {format_amount(spend.budget, cur)} ({left} left)")
        lines.append(f"{progress_bar(spend.pct)} {spend.pct}%")
    if category == "Food":
        lines.append(
            f"🍽️ Daily food average: {format_amount(report.food_daily_average, cur)}"
            f" (target: {format_amount(ctx.profile.daily_food_budget, cur)})"
        )
        lines.append(f"🔥 Streak: {report.food_streak} days within food budget")
    if expenses:
        lines.append("")
        lines.extend(_listing(expenses, ctx, with_date=True))
    else:
        lines.extend(["", "No expenses in this category yet."])
    return "\n".join(lines)


def report_text(ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    lines = [
        f"📋 <b>Budget Report</b> ({report.period.label})",
        "",
        f"💰 <b>Spent:</b> {format_amount(report.total_spent, cur)} of {format_amount(report.personal_budget, cur)}",
        f"🎯 <b>Remaining:</b> {format_amount(report.remaining, cur)}",
        f"📆 <b>Daily allowance:</b> {format_amount(report.adjusted_daily_budget, cur)}",
        f"📉 <b>Daily average:</b> {format_amount(report.daily_average, cur)}",
        payday_line(report),
        "",
    ]
    if report.overspending > 0:
        lines.append(f"🏃 Ahead of plan by {format_amount(report.overspending, cur)}")
    else:
        lines.append(f"🐢 Under plan by {format_amount(-report.overspending, cur)}")
    if report.projected_period_end > 0:
        lines.append(f"🔮 Projected period spend: {format_amount(report.projected_period_end, cur)}")
    lines.append(
        f"🍽️ Food average: {format_amount(report.food_daily_average, cur)}"
        f" (target: {format_amount(ctx.profile.daily_food_budget, cur)})"
    )
    lines.append(f"🔥 Food streak: {report.food_streak} days")
    lines.append(week_pattern_line(ctx, report))
    lines.extend(["", status_line(report)])
    return "\n".join(lines)


def morning_brief(ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    yesterday = sum_expenses(ctx.expenses, day_window(ctx.now.date() - timedelta(days=1)))
    return "\n".join([
        "🌅 <b>Good Morning!</b>",
        "",
        f"💰 <b>Yesterday:</b> {format_amount(yesterday, cur)}",
        f"📊 <b>Period spent:</b> {format_amount(report.total_spent, cur)}",
        f"🎯 <b>Remaining:</b> {format_amount(report.remaining, cur)}",
        f"📆 <b>Today's allowance:</b> {format_amount(report.adjusted_daily_budget, cur)}",
        payday_line(report),
        "",
        "Have a great day! 🌟",
    ])


def evening_report(ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    today = filter_expenses(ctx.expenses, day_window(ctx.now.date()))
    if not today:
        return "\n".join([
            "🌙 <b>Evening Reminder</b>",
            "",
            "You haven't logged any expenses today.",
            "Did you spend anything? Just send it, e.g. <i>200 lunch</i> 📝",
        ])
    within = report.today_spent <= report.original_daily_budget
    verdict = "✅ <b>Within daily budget</b>" if within else "⚠️ <b>Over daily budget!</b>"
    return "\n".join([
        "🌙 <b>Evening Report</b>",
        "",
        f"📝 <b>Logged today:</b> {len(today)} expenses",
        f"💰 <b>Today's spending:</b> {format_amount(report.today_spent, cur)}",
        f"📊 <b>Period total:</b> {format_amount(report.total_spent, cur)}",
        f"🎯 <b>Remaining:</b> {format_amount(report.remaining, cur)}",
        "",
        verdict,
        "Any more expenses to add before bed?",
    ])


def weekend_advisory(ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    lines = ["🎉 <b>Weekend Alert!</b>", ""]
    premium = report.week_pattern.weekend_premium_pct
    if premium is not None and premium > 0:
        lines.append(f"You typically spend {premium}% more on weekend days.")
    if report.remaining > 0:
        limit = report.adjusted_daily_budget * 2
        lines.append(f"A weekend limit of {format_amount(limit, cur)} keeps you on track. 🎯")
    else:
        lines.append("You're already over budget for this period. Keep the weekend light.")
    lines.extend(["", status_line(report)])
    return "\n".join(lines)


def month_end_warning(ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    days = report.period.days_until_next
    return "\n".join([
        "🔴 <b>Low Balance Alert!</b>",
        "",
        f"Only {format_amount(report.remaining, cur)} left with {days} day{'s' if days != 1 else ''} to payday.",
        f"That's {format_amount(report.adjusted_daily_budget, cur)} a day. Be careful with spending.",
    ])


def expense_added_text(expense: Expense, ctx: BudgetContext, report: InsightReport) -> str:
    cur = ctx.currency
    desc = html.quote(expense.display_description(ctx.profile.privacy_mode))
    lines = [
        "✅ <b>Expense Added</b>",
        "",
        f"💰 {format_amount(expense.amount, cur)} · {desc}",
        f"🏷 {expense.category}",
        "",
        f"📊 <b>Today's total:</b> {format_amount(report.today_spent, cur)}",
        f"🎯 <b>Remaining:</b> {format_amount(report.remaining, cur)}",
    ]
    if report.today_spent > report.original_daily_budget:
        over = report.today_spent - report.original_daily_budget
        plan = format_amount(report.original_daily_budget, cur)
        lines.append(f"\n⚠️ <b>Over daily budget</b> of {plan} by {format_amount(over, cur)}")
    if report.remaining < ctx.thresholds.warning_balance:
        lines.append(f"\n🔴 <b>Low balance:</b> only {format_amount(report.remaining, cur)} left for the period")
    return "\n".join(lines)


def deleted_text(expense: Expense, ctx: BudgetContext) -> str:
    desc = html.quote(expense.display_description(ctx.profile.privacy_mode))
    amount = format_amount(expense.amount, ctx.currency)
    return f"🗑 Removed: {amount} · {desc} ({expense.category}, {expense.expense_date:%d %b})"


def recent_text(expenses: Sequence[Expense], ctx: BudgetContext) -> str:
    if not expenses:
        return "No expenses recorded yet."
    lines = ["🧾 <b>Recent expenses</b>", ""]
    lines.extend(f"#{e.id} {expense_line(e, ctx, with_date=True)[2:]}" for e in expenses)
    return "\n".join(lines)


def settings_text(ctx: BudgetContext) -> str:
    p = ctx.profile
    cur = p.currency
    override = " (monthly override)" if ctx.salary.id is not None else ""
    return "\n".join([
        "⚙️ <b>Settings</b>",
        "",
        f"Currency: {cur}",
        f"Total salary: {format_amount(ctx.salary.total_salary, cur)}{override}",
        f"Personal budget: {format_amount(ctx.salary.personal_budget, cur)}{override}",
        f"Salary day: {p.salary_day}",
        f"Daily food budget: {format_amount(p.daily_food_budget, cur)}",
        f"Privacy mode: {'on' if p.privacy_mode else 'off'}",
        "",
        "/setbudget · /setsalary · /salaryday · /foodbudget · /catbudget · /privacy",
        "/salary · /salaries · /removesalary",
    ])


def salaries_text(salaries: Sequence[MonthlySalary], currency: str) -> str:
    if not salaries:
        return "No monthly overrides yet. Add one with /salary 2026-10 100000 35000"
    lines = ["💼 <b>Monthly salaries</b>", ""]
    for s in salaries:
        note = f" <i>({html.quote(s.notes)})</i>" if s.notes else ""
        lines.append(
            f"• {s.month:%b %Y}: {format_amount(s.total_salary, currency)}"
            f" (budget {format_amount(s.personal_budget, currency)}){note}"
        )
    return "\n".join(lines)


HELP_TEXT = (
    "💡 <b>Kharcha</b> tracks your spending against your salary-day budget.\n\n"
    "<b>Log an expense</b> by just typing it:\n"
    "  <i>200 lunch</i> · <i>coffee 50</i> · <i>spent 500 on drinks</i>\n"
    "  <i>paid 200 for dinner</i> · <i>bought coffee for 50</i> · <i>add 150 uber</i>\n\n"
    "<b>Ask</b>: balance, today, yesterday, week, month, weekend, report,\n"
    "  food, travel, drinks, misc, recent, chart, trend\n"
    "<b>Briefs</b>: morning, evening\n"
    "<b>Fix mistakes</b>: undo, /delete &lt;id&gt;, /edit &lt;id&gt; &lt;amount&gt; &lt;text&gt;\n"
    "<b>Setup</b>: settings"
)


UNKNOWN_TEXT = (
    "🤔 I didn't get that.\n\n"
    "Send an expense like <i>200 lunch</i> or <i>coffee 50</i>, or tap a button below."
)


ERROR_TEXT = "😔 Sorry, something went wrong. Please try again in a bit."
