"""
Month Indexing

Builds the navigable month list from data the store already owns.
Nothing here holds state.
"""

from datetime import date
from typing import Iterable, Optional

from household_ledger.models.ledger import Transaction, is_month_key, month_key_for


def parse_month_key(key: str) -> tuple[int, int]:
    """
    Split a `YYYY-MM` key into (year, month).

    Raises:
        ValueError: If the key is not a valid month key
    """
    if not is_month_key(key):
        raise ValueError(f"Invalid month key: {key!r} (expected YYYY-MM)")
    return int(key[:4]), int(key[5:7])


def shift_month(key: str, offset: int) -> str:
    """Move a month key forward (or backward) by `offset` months."""
    year, month = parse_month_key(key)
    index = year * 12 + (month - 1) + offset
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def current_month_key(today: Optional[date] = None) -> str:
    return month_key_for(today or date.today())


def available_months(
    transactions: Iterable[Transaction],
    window_months: int = 12,
    today: Optional[date] = None,
) -> list[str]:
    """
    Months a user can navigate to, most recent first.

    Union of:
    - every month that has at least one transaction
    - `window_months` before and after the current month
    - the current month itself
    """
    if window_months < 0:
        raise ValueError("window_months must not be negative")

    current = current_month_key(today)
    months = {txn.month_key for txn in transactions}
    months.add(current)
    for offset in range(-window_months, window_months + 1):
        months.add(shift_month(current, offset))

    # YYYY-MM sorts chronologically as text
    return sorted(months, reverse=True)
