from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# Sanity ceiling for any single amount a user types in.
MAX_AMOUNT = 1_000_000

# Largest value an SQLite INTEGER column holds.
_MAX_MINOR = 2**63 - 1

DEFAULT_SYMBOL = "₹"

PREFIX_SYMBOLS = frozenset({"€", "$", "£", "¥", "₹", "₩", "₺", "₪", "₱", "₽"})


class InvalidAmountError(ValueError):
    def __init__(self, value, hint: str = "Use a positive number like 250 or 99.50.") -> None:
        self.value = value
        super().__init__(f"'{value}' is not a valid amount. {hint}")


def to_money(value) -> Decimal:
    """Coerce ints, strings, and Decimals to a two-place Decimal.

    Floats go through ``str`` so 33.33 stays 33.33 instead of its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(value) from None
    if not amount.is_finite():
        raise InvalidAmountError(value)
    return amount


def parse_positive_amount(text: str, limit: int = MAX_AMOUNT) -> Decimal:
    amount = to_money(text.strip().replace(",", ""))
    if amount <= 0:
        raise InvalidAmountError(text)
    if amount > limit:
        raise InvalidAmountError(text, f"Amounts are capped at {format_amount(Decimal(limit))}.")
    return amount


def to_minor(amount: Decimal) -> int:
    minor = int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
    if abs(minor) > _MAX_MINOR:
        raise InvalidAmountError(amount, "That is too large to store.")
    return minor


def from_minor(value: int) -> Decimal:
    return (Decimal(value) / 100).quantize(CENTS)


def floor_money(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_FLOOR).quantize(CENTS)


def _group_indian(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_amount(amount: Decimal, symbol: str = DEFAULT_SYMBOL) -> str:
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    whole, _, frac = f"{abs(value):.2f}".partition(".")
    number = _group_indian(whole) if symbol == DEFAULT_SYMBOL else f"{int(whole):,}"
    if frac != "00":
        number += f".{frac}"
    if symbol in PREFIX_SYMBOLS:
        return f"{sign}{symbol}{number}"
    return f"{sign}{number} {symbol}"
