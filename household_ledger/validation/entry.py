"""
Entry Parsing

Turns raw form input into validated values. Invalid input is rejected
here with a message meant for the user and never reaches the store.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from household_ledger.models.ledger import Category, Transaction, TransactionKind


# Date-only input is anchored to midday UTC so it stays on the same calendar
# day for any timezone offset within twelve hours.
MIDDAY = time(12, 0)


class InvalidEntryError(ValueError):
    """User input was rejected. `message` is suitable for display."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


def _to_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
    if not value.is_finite():
        return None
    return value


def parse_amount(raw: Any) -> Decimal:
    """
    Parse a transaction amount.

    Raises:
        InvalidEntryError: If the input is not a positive number
    """
    value = _to_decimal(raw)
    if value is None or value <= 0:
        raise InvalidEntryError("amount", "Enter a valid amount")
    return value


def parse_cap(raw: Any) -> Decimal:
    """
    Parse a category budget cap.

    Blank, unparsable and negative input all mean "no budget" (zero).
    """
    value = _to_decimal(raw)
    if value is None or value < 0:
        return Decimal("0")
    return value


def parse_caps(raw: Mapping[str, Any]) -> dict[Category, Decimal]:
    """Parse a category -> cap form. Unknown categories are ignored."""
    caps: dict[Category, Decimal] = {}
    for name, value in raw.items():
        try:
            category = Category(name)
        except ValueError:
            continue
        caps[category] = parse_cap(value)
    return caps


def anchor_date(day: date) -> datetime:
    """Attach the implied midday time to a date-only input."""
    return datetime.combine(day, MIDDAY, tzinfo=timezone.utc)


def build_transaction(
    kind: Union[TransactionKind, str],
    amount: Any,
    category: Optional[Union[Category, str]] = None,
    payer: str = "",
    note: str = "",
    on: Optional[Union[date, datetime]] = None,
) -> Transaction:
    """
    Build a Transaction from form values.

    `on` defaults to today. Plain dates get the midday anchor.

    Raises:
        InvalidEntryError: If any value is rejected
    """
    try:
        kind = TransactionKind(kind)
    except ValueError:
        raise InvalidEntryError("kind", "Choose expense or income")

    value = parse_amount(amount)

    if category is not None and category != "":
        try:
            category = Category(category)
        except ValueError:
            raise InvalidEntryError("category", f"Unknown category: {category}")
    else:
        category = None
    if kind == TransactionKind.EXPENSE and category is None:
        raise InvalidEntryError("category", "Choose a category")

    if on is None:
        on = date.today()
    occurred_at = on if isinstance(on, datetime) else anchor_date(on)

    try:
        return Transaction(
            kind=kind,
            amount=value,
            category=category,
            payer=payer,
            note=note,
            occurred_at=occurred_at,
        )
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ("entry",)
        raise InvalidEntryError(str(loc[0]), first.get("msg", "Invalid entry"))
