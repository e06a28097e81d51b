import re
from dataclasses import dataclass
from decimal import Decimal

from kharcha.categories import classify
from kharcha.money import MAX_AMOUNT

# Exact-match command words. A message that is one of these is a command,
# never an expense.
RESERVED_WORDS: frozenset[str] = frozenset({
    "add", "alcohol", "bal", "balance", "brief", "chart", "drinks", "evening",
    "food", "help", "misc", "miscellaneous", "month", "morning", "other",
    "recent", "report", "settings", "start", "summary", "today", "travel",
    "trend", "undo", "week", "weekend", "yesterday",
})

_VERBS = r"(?:spent|paid|bought)\b"

# Tried in order; the first pattern that matches decides.
EXPENSE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^(\d+)\s+(.+)$", re.IGNORECASE),
    re.compile(rf"^(?!{_VERBS})(.+?)\s+(\d+)$", re.IGNORECASE),
    re.compile(r"^spent\s+(\d+)\s+on\s+(.+)$", re.IGNORECASE),
    re.compile(r"^paid\s+(\d+)\s+for\s+(.+)$", re.IGNORECASE),
    re.compile(r"^bought\s+(.+?)\s+for\s+(\d+)$", re.IGNORECASE),
)

_ADD_PREFIX = re.compile(r"^add\s+", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class ParsedExpense:
    amount: Decimal
    description: str
    category: str


def _split_groups(groups: tuple[str, ...]) -> tuple[int, str] | None:
    for i, group in enumerate(groups):
        if group.isdigit():
            other = groups[1 - i]
            return int(group), other
    return None


def _extract(text: str) -> ParsedExpense | None:
    for pattern in EXPENSE_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        split = _split_groups(match.groups())
        if split is None:
            return None
        amount, description = split
        description = description.strip()
        if amount <= 0 or amount > MAX_AMOUNT or not description:
            return None
        return ParsedExpense(
            amount=Decimal(amount).quantize(Decimal("0.01")),
            description=description,
            category=classify(description),
        )
    return None


def normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def parse(text: str) -> ParsedExpense | None:
    """Extract an expense from free-form chat text, or None if it isn't one."""
    text = normalize(text)
    if not text or text.lower() in RESERVED_WORDS:
        return None
    return _extract(text)


def parse_add(text: str) -> ParsedExpense | None:
    """Parse the explicit ``add <amount> <text>`` / ``add <text> <amount>`` form."""
    text = normalize(text)
    if not _ADD_PREFIX.match(text):
        return None
    return _extract(_ADD_PREFIX.sub("", text, count=1))
