import logging
from datetime import date
from decimal import Decimal

from aiogram import Router, html
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from kharcha.categories import set_category_budget
from kharcha.money import MAX_AMOUNT, InvalidAmountError, format_amount, parse_positive_amount, to_money
from kharcha.parser import parse
from kharcha.services.budget_service import load_context
from kharcha.services.expense_service import delete_expense, get_expense_by_id, update_expense
from kharcha.services.profile_service import (
    InvalidSettingError,
    delete_monthly_salary,
    get_profile,
    list_monthly_salaries,
    set_monthly_salary,
    update_profile,
)
from kharcha.services.report_service import deleted_text, salaries_text, settings_text

logger = logging.getLogger(__name__)
router = Router()


def _parse_month(text: str) -> date:
    try:
        return date.fromisoformat(f"{text.strip()}-01")
    except ValueError:
        raise InvalidSettingError(f"'{text}' is not a month. Use YYYY-MM, e.g. 2026-10.") from None


def _args(command: CommandObject) -> list[str]:
    return command.args.split() if command.args else []


@router.message(Command("settings"))
async def cmd_settings(message: Message):
    ctx = await load_context()
    await message.answer(settings_text(ctx))


@router.message(Command("setbudget"))
async def cmd_setbudget(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 1:
        await message.answer("Usage: /setbudget 35000 — personal budget per fiscal month")
        return
    try:
        profile = await update_profile(personal_budget=parse_positive_amount(args[0]))
    except (InvalidAmountError, InvalidSettingError) as e:
        await message.answer(str(e))
        return
    logger.info("Personal budget updated", extra={"chat_id": message.chat.id})
    await message.answer(f"🎯 Personal budget set to {format_amount(profile.personal_budget, profile.currency)}")


@router.message(Command("setsalary"))
async def cmd_setsalary(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 1:
        await message.answer("Usage: /setsalary 100000 — default monthly salary")
        return
    try:
        profile = await update_profile(total_salary=parse_positive_amount(args[0]))
    except (InvalidAmountError, InvalidSettingError) as e:
        await message.answer(str(e))
        return
    await message.answer(f"💼 Salary set to {format_amount(profile.total_salary, profile.currency)}")


@router.message(Command("salaryday"))
async def cmd_salaryday(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 1 or not args[0].isdigit():
        await message.answer("Usage: /salaryday 7 — day of month your salary arrives (1-31)")
        return
    try:
        profile = await update_profile(salary_day=int(args[0]))
    except InvalidSettingError as e:
        await message.answer(str(e))
        return
    await message.answer(f"📅 Salary day set to {profile.salary_day}")


@router.message(Command("foodbudget"))
async def cmd_foodbudget(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 1:
        await message.answer("Usage: /foodbudget 400 — daily food budget")
        return
    try:
        profile = await update_profile(daily_food_budget=parse_positive_amount(args[0]))
    except (InvalidAmountError, InvalidSettingError) as e:
        await message.answer(str(e))
        return
    amount = format_amount(profile.daily_food_budget, profile.currency)
    await message.answer(f"🍽️ Daily food budget set to {amount}")


@router.message(Command("privacy"))
async def cmd_privacy(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 1 or args[0].lower() not in ("on", "off"):
        profile = await get_profile()
        state = "on" if profile.privacy_mode else "off"
        await message.answer(f"Privacy mode is {state}. Usage: /privacy on|off")
        return
    profile = await update_profile(privacy_mode=args[0].lower() == "on")
    await message.answer(f"🔒 Privacy mode {'on' if profile.privacy_mode else 'off'}")


@router.message(Command("catbudget"))
async def cmd_catbudget(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 2:
        await message.answer("Usage: /catbudget Food 12000")
        return
    try:
        budget = to_money(args[1].replace(",", ""))
    except InvalidAmountError as e:
        await message.answer(str(e))
        return
    if budget < 0:
        await message.answer("Category budget can't be negative.")
        return
    if budget > MAX_AMOUNT:
        await message.answer(f"Category budgets are capped at {format_amount(Decimal(MAX_AMOUNT))}.")
        return
    profile = await get_profile()
    if not await set_category_budget(profile.id, args[0], budget):
        await message.answer(f"Unknown category: {html.quote(args[0])}")
        return
    name = html.quote(args[0].capitalize())
    await message.answer(f"🏷 {name} budget set to {format_amount(budget, profile.currency)}")


@router.message(Command("salary"))
async def cmd_salary(message: Message, command: CommandObject):
    args = command.args.split(maxsplit=3) if command.args else []
    if len(args) < 3:
        await message.answer("Usage: /salary 2026-10 100000 35000 [notes]")
        return
    try:
        month = _parse_month(args[0])
        total = parse_positive_amount(args[1])
        budget = parse_positive_amount(args[2])
        profile = await get_profile()
        salary = await set_monthly_salary(profile.id, month, total, budget, args[3] if len(args) > 3 else None)
    except (InvalidAmountError, InvalidSettingError) as e:
        await message.answer(str(e))
        return
    logger.info("Monthly salary set for %s", salary.month.isoformat(), extra={"chat_id": message.chat.id})
    await message.answer(
        f"💼 {salary.month:%b %Y}: salary {format_amount(salary.total_salary, profile.currency)},"
        f" budget {format_amount(salary.personal_budget, profile.currency)}"
    )


@router.message(Command("salaries"))
async def cmd_salaries(message: Message):
    profile = await get_profile()
    await message.answer(salaries_text(await list_monthly_salaries(profile.id), profile.currency))


@router.message(Command("removesalary"))
async def cmd_removesalary(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 1:
        await message.answer("Usage: /removesalary 2026-10")
        return
    try:
        month = _parse_month(args[0])
    except InvalidSettingError as e:
        await message.answer(str(e))
        return
    profile = await get_profile()
    if await delete_monthly_salary(profile.id, month):
        await message.answer(f"Removed the {month:%b %Y} override.")
    else:
        await message.answer(f"No override for {month:%b %Y}.")


@router.message(Command("delete"))
async def cmd_delete(message: Message, command: CommandObject):
    args = _args(command)
    if len(args) != 1 or not args[0].lstrip("#").isdigit():
        await message.answer("Usage: /delete 42 (see ids with 'recent')")
        return
    ctx = await load_context()
    deleted = await delete_expense(ctx.profile.id, int(args[0].lstrip("#")))
    if deleted is None:
        await message.answer(f"Expense #{args[0].lstrip('#')} not found.")
        return
    await message.answer(deleted_text(deleted, ctx))


@router.message(Command("edit"))
async def cmd_edit(message: Message, command: CommandObject):
    args = command.args.split(maxsplit=1) if command.args else []
    if len(args) != 2 or not args[0].lstrip("#").isdigit():
        await message.answer("Usage: /edit 42 250 lunch — or /edit 42 250 to fix only the amount")
        return
    expense_id = int(args[0].lstrip("#"))
    profile = await get_profile()
    existing = await get_expense_by_id(expense_id)
    if existing is None or existing.profile_id != profile.id:
        await message.answer(f"Expense #{expense_id} not found.")
        return

    parsed = parse(args[1])
    if parsed is not None:
        fields = {"amount": parsed.amount, "category": parsed.category, "description": parsed.description}
    else:
        try:
            fields = {"amount": parse_positive_amount(args[1])}
        except InvalidAmountError:
            await message.answer("Couldn't read that. Try /edit 42 250 lunch")
            return

    await update_expense(expense_id, **fields)
    updated = await get_expense_by_id(expense_id)
    logger.info("Edited expense #%d", expense_id, extra={"chat_id": message.chat.id})
    await message.answer(
        f"✏️ Updated #{expense_id}: {format_amount(updated.amount, profile.currency)}"
        f" · {html.quote(updated.display_description(profile.privacy_mode))} ({updated.category})"
    )
