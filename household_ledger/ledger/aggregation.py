"""
Aggregation Engine

DESIGN DECISION: All totals are DERIVED, never stored. The functions here
are pure: same inputs, same outputs, no side effects. They are cheap enough
to call on every render.

Budget resolution for a month:
    month-specific caps  ->  default caps  ->  no caps

A cap of zero means "no budget set", exactly like an absent cap.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from household_ledger.ledger.months import available_months, parse_month_key
from household_ledger.models.ledger import (
    Category,
    CategoryTotal,
    MonthlyTotals,
    Transaction,
    TransactionKind,
)


ZERO = Decimal("0")


def effective_caps(
    month_key: str,
    budget_configuration: Mapping[str, Mapping[Category, Decimal]],
    default_budgets: Optional[Mapping[Category, Decimal]] = None,
) -> dict[Category, Decimal]:
    """
    Resolve the category caps that apply to a month.

    A month entry wins even when it is empty: an explicitly cleared month
    does not fall back to the defaults.
    """
    parse_month_key(month_key)
    if month_key in budget_configuration:
        return dict(budget_configuration[month_key])
    if default_budgets:
        return dict(default_budgets)
    return {}


def monthly_totals(
    month_key: str,
    transactions: Iterable[Transaction],
    base_budget: Decimal = ZERO,
) -> MonthlyTotals:
    """Income, spending and remaining funds for one month."""
    parse_month_key(month_key)
    income = ZERO
    spent = ZERO
    for txn in transactions:
        if txn.month_key != month_key:
            continue
        if txn.kind == TransactionKind.INCOME:
            income += txn.amount
        else:
            spent += txn.amount

    return MonthlyTotals(
        month_key=month_key,
        income=income,
        spent=spent,
        remaining=income + base_budget - spent,
    )


def percent_used(spent: Decimal, cap: Decimal) -> float:
    """Share of a cap already spent, clamped to [0, 100] for progress bars."""
    if cap <= 0:
        return 0.0
    return float(min(Decimal("100"), max(ZERO, spent / cap * 100)))


def category_totals(
    month_key: str,
    transactions: Iterable[Transaction],
    caps: Mapping[Category, Decimal],
) -> dict[Category, CategoryTotal]:
    """
    Expense totals per category for one month, one entry per category.

    Categories without a non-zero cap report cap/remaining/percent as None.
    """
    parse_month_key(month_key)
    items: dict[Category, list[Transaction]] = {category: [] for category in Category}
    for txn in transactions:
        if txn.month_key == month_key and txn.kind == TransactionKind.EXPENSE:
            items[txn.category].append(txn)

    totals: dict[Category, CategoryTotal] = {}
    for category, entries in items.items():
        spent = sum((txn.amount for txn in entries), ZERO)
        cap = caps.get(category)
        if cap:
            totals[category] = CategoryTotal(
                category=category,
                spent=spent,
                cap=cap,
                remaining=cap - spent,
                percent_used=percent_used(spent, cap),
                transactions=tuple(entries),
            )
        else:
            totals[category] = CategoryTotal(
                category=category,
                spent=spent,
                transactions=tuple(entries),
            )
    return totals


class LedgerAggregator:
    """
    Binds the aggregation functions to a store.

    Holds no state of its own; every call reads the store's current data.
    """

    def __init__(self, store, window_months: int = 12):
        """
        Args:
            store: A LedgerStore (or anything with the same read interface)
            window_months: Default navigation window for available_months
        """
        self._store = store
        self._window_months = window_months

    def effective_caps(self, month_key: str) -> dict[Category, Decimal]:
        return effective_caps(
            month_key,
            self._store.budget_configuration,
            self._store.default_budgets,
        )

    def monthly_totals(self, month_key: str) -> MonthlyTotals:
        return monthly_totals(month_key, self._store.list(), self._store.base_budget)

    def category_totals(self, month_key: str) -> dict[Category, CategoryTotal]:
        return category_totals(
            month_key,
            self._store.list(),
            self.effective_caps(month_key),
        )

    def available_months(
        self,
        window_months: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[str]:
        window = self._window_months if window_months is None else window_months
        return available_months(self._store.list(), window, today)
