from dataclasses import dataclass
from decimal import Decimal

from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

from kharcha.categories import ALCOHOL, FOOD, MISCELLANEOUS


@dataclass(frozen=True, slots=True)
class Action:
    """A keyboard button: either text re-sent as if typed, or a callback token."""

    label: str
    callback: str | None = None


@dataclass(frozen=True, slots=True)
class Keyboard:
    rows: list[list[Action]]
    inline: bool = False


@dataclass(slots=True)
class Reply:
    text: str
    keyboard: Keyboard | None = None
    photo: str | None = None


@dataclass(frozen=True, slots=True)
class QuickPreset:
    label: str
    category: str
    description: str
    is_fake: bool = False


QUICK_PRESETS: dict[str, QuickPreset] = {
    "coffee": QuickPreset("Coffee", FOOD, "Coffee"),
    "lunch": QuickPreset("Lunch", FOOD, "Lunch"),
    "dinner": QuickPreset("Dinner", FOOD, "Dinner"),
    "misc": QuickPreset("Misc", MISCELLANEOUS, "Miscellaneous", is_fake=True),
    "drinks": QuickPreset("Drinks", ALCOHOL, "Drinks"),
}

QUICK_BUTTONS: list[list[tuple[int, str]]] = [
    [(50, "coffee"), (200, "lunch"), (400, "dinner")],
    [(100, "misc"), (200, "misc")],
    [(500, "drinks"), (1000, "drinks"), (1500, "drinks")],
]


def quick_token(amount: int, preset: str) -> str:
    return f"quick_{amount}_{preset}"


def parse_quick_token(token: str) -> tuple[Decimal, QuickPreset] | None:
    parts = token.split("_", 2)
    if len(parts) != 3 or parts[0] != "quick" or not parts[1].isdigit():
        return None
    preset = QUICK_PRESETS.get(parts[2])
    amount = int(parts[1])
    if preset is None or amount <= 0:
        return None
    return Decimal(amount).quantize(Decimal("0.01")), preset


def main_keyboard() -> Keyboard:
    return Keyboard(
        rows=[
            [Action("💰 Balance"), Action("📊 Today"), Action("📈 This Week")],
            [Action("➕ Add Expense"), Action("🍽️ Food"), Action("🚗 Travel")],
            [Action("📋 Report"), Action("⚙️ Settings"), Action("💡 Help")],
        ]
    )


def quick_add_keyboard(currency: str) -> Keyboard:
    rows = [
        [Action(f"{QUICK_PRESETS[key].label} {currency}{amount}", quick_token(amount, key)) for amount, key in row]
        for row in QUICK_BUTTONS
    ]
    rows.append([Action("📊 Today", "today_total"), Action("💰 Balance", "balance")])
    return Keyboard(rows=rows, inline=True)


def after_add_keyboard() -> Keyboard:
    return Keyboard(
        rows=[
            [
                Action("↩️ Undo", "delete_last"),
                Action("📊 Today", "today_total"),
                Action("💰 Balance", "balance"),
            ],
        ],
        inline=True,
    )


def to_markup(keyboard: Keyboard | None) -> InlineKeyboardMarkup | ReplyKeyboardMarkup | None:
    if keyboard is None:
        return None
    if keyboard.inline:
        return InlineKeyboardMarkup(
            inline_keyboard=[
                [InlineKeyboardButton(text=a.label, callback_data=a.callback or a.label) for a in row]
                for row in keyboard.rows
            ]
        )
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=a.label) for a in row] for row in keyboard.rows],
        resize_keyboard=True,
    )
