"""
Core Data Models for Household Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Keep amounts exact (Decimal, never float)
3. Be serializable for local storage, the household snapshot and file export
4. Read the wire format written by earlier versions of the app

DESIGN DECISION: The month a transaction belongs to is DERIVED from its
timestamp. There is no independently settable month field, so the two can
never disagree once a Transaction exists.

Wire names (`type`, `cat`, `who`, `ts`, `txns`, `catBudgetsMap`, ...) are
kept as aliases so households that already synced keep working.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional, Union
import re

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    StringConstraints,
    computed_field,
    field_validator,
    model_validator,
)


MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
_MONTH_KEY_RE = re.compile(MONTH_KEY_PATTERN)

def _decimal_to_json_number(value: Decimal) -> Union[int, float]:
    """Amounts go over the wire as JSON numbers, like every earlier client wrote them."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


JsonNumber = PlainSerializer(
    _decimal_to_json_number,
    return_type=Union[int, float],
    when_used="json",
)

MonthKey = Annotated[str, StringConstraints(pattern=MONTH_KEY_PATTERN)]
PositiveAmount = Annotated[Decimal, Field(gt=0), JsonNumber]
CapAmount = Annotated[Decimal, Field(ge=0), JsonNumber]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _datetime_to_epoch_ms(value: datetime) -> int:
    """Timestamps go over the wire as epoch milliseconds, which every client sorts by."""
    return (value - _EPOCH) // timedelta(milliseconds=1)


EpochMillis = PlainSerializer(
    _datetime_to_epoch_ms,
    return_type=int,
    when_used="json",
)

# Always timezone-aware UTC once validated, see Transaction.normalize_to_utc
Timestamp = Annotated[datetime, EpochMillis]


def month_key_for(value: date) -> str:
    """Format a date or datetime as its `YYYY-MM` month key."""
    return f"{value.year:04d}-{value.month:02d}"


def is_month_key(value: Any) -> bool:
    return isinstance(value, str) and _MONTH_KEY_RE.match(value) is not None


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a ledger entry."""
    EXPENSE = "expense"
    INCOME = "income"


class Category(str, Enum):
    """
    Supported spending categories.

    DESIGN DECISION: Using explicit categories rather than free text ensures
    consistent bucketing and lets budgets be keyed by category.
    ENTERTAINMENT only exists so exports from the first app revision load.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    HEALTH = "Health"
    FUN = "Fun"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


BudgetMap = dict[Category, CapAmount]
BudgetConfiguration = dict[MonthKey, BudgetMap]


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense event.

    Transactions are immutable: the ledger only ever adds or removes them.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: Optional[str] = Field(
        default=None,
        description="Opaque unique id, assigned by the store when absent"
    )
    kind: TransactionKind = Field(
        ...,
        alias="type",
        description="expense or income"
    )
    amount: PositiveAmount = Field(
        ...,
        description="Positive amount, currency agnostic"
    )
    category: Optional[Category] = Field(
        default=None,
        alias="cat",
        description="Spending category (required for expenses)"
    )
    payer: str = Field(
        default="",
        alias="who",
        max_length=100,
        description="Who recorded or paid"
    )
    note: str = Field(
        default="",
        max_length=1000,
        description="Optional free text"
    )
    occurred_at: Timestamp = Field(
        ...,
        alias="ts",
        description="When the transaction happened"
    )

    @computed_field(alias="month")
    @property
    def month_key(self) -> str:
        """Calendar month of `occurred_at` as `YYYY-MM`."""
        return month_key_for(self.occurred_at)

    @field_validator('payer', 'note', mode='before')
    @classmethod
    def none_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator('occurred_at')
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        """
        Store every timestamp as aware UTC.

        Epoch-millisecond records parse as UTC already. Naive values are
        taken to be UTC so old and new entries stay comparable.
        """
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode='wrap')
    @classmethod
    def align_legacy_month(cls, data: Any, handler) -> 'Transaction':
        """
        Records written by the first app revision carry a user-picked
        `month` next to a creation timestamp. When the two disagree the
        record was filed under `month`, so re-anchor it there.
        """
        hinted = data.get("month") if isinstance(data, dict) else None
        txn = handler(data)
        if is_month_key(hinted) and hinted != txn.month_key:
            year, month = int(hinted[:4]), int(hinted[5:7])
            anchored = datetime(year, month, 1, 12, 0, tzinfo=txn.occurred_at.tzinfo)
            return txn.model_copy(update={"occurred_at": anchored})
        return txn

    @model_validator(mode='after')
    def expense_needs_category(self) -> 'Transaction':
        if self.kind == TransactionKind.EXPENSE and self.category is None:
            raise ValueError("Expenses require a category")
        return self

    def to_wire(self) -> dict:
        """Serialize using the shared wire field names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# SNAPSHOTS
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    The complete syncable state of one household ledger.

    This is what gets pushed to the remote household row.
    """
    model_config = ConfigDict(populate_by_name=True)

    transactions: list[Transaction] = Field(
        default_factory=list,
        alias="txns"
    )
    budget_configuration: BudgetConfiguration = Field(
        default_factory=dict,
        alias="catBudgetsMap",
        description="Per-month category caps"
    )
    default_budget_configuration: BudgetMap = Field(
        default_factory=dict,
        alias="defaultBudgets",
        description="Caps used by months without their own entry"
    )
    base_budget: CapAmount = Field(
        default=Decimal("0"),
        alias="monthlyBudget",
        description="Allowance added to every month's available funds"
    )

    def to_payload(self) -> dict:
        """Serialize to the JSON-ready remote payload."""
        return self.model_dump(mode="json", by_alias=True)


class SnapshotPatch(BaseModel):
    """
    Validated subset of a snapshot, produced at the pull/import boundary.

    A field is None when the incoming payload did not carry a usable value
    for it. Only non-None fields replace local state.
    """

    transactions: Optional[list[Transaction]] = None
    budget_configuration: Optional[BudgetConfiguration] = None
    default_budget_configuration: Optional[BudgetMap] = None
    base_budget: Optional[CapAmount] = None

    @property
    def present_fields(self) -> list[str]:
        return [
            name for name in type(self).model_fields
            if getattr(self, name) is not None
        ]

    @property
    def is_empty(self) -> bool:
        return not self.present_fields


# =============================================================================
# AGGREGATES
# =============================================================================

class MonthlyTotals(BaseModel):
    """Income, spending and what is left for one month."""
    model_config = ConfigDict(frozen=True)

    month_key: str
    income: Decimal = Decimal("0")
    spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")


class CategoryTotal(BaseModel):
    """
    Spending in one category for one month.

    `cap`, `remaining` and `percent_used` are None when no budget is set
    for the category, which is different from a budget with nothing left.
    """
    model_config = ConfigDict(frozen=True)

    category: Category
    spent: Decimal = Decimal("0")
    cap: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    percent_used: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    transactions: tuple[Transaction, ...] = ()

    @property
    def has_budget(self) -> bool:
        return self.cap is not None

    @property
    def is_overspent(self) -> bool:
        return self.remaining is not None and self.remaining < 0


# =============================================================================
# FILE EXPORT / IMPORT
# =============================================================================

class ExportDocument(BaseModel):
    """Downloadable backup of the ledger."""
    model_config = ConfigDict(populate_by_name=True)

    version: int = 1
    exported_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="exportedAt"
    )
    base_budget: CapAmount = Field(
        default=Decimal("0"),
        alias="baseBudget"
    )
    transactions: list[Transaction] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Outcome of a file import. Skipped fields kept their local value."""

    loaded_fields: list[str] = Field(default_factory=list)
    skipped_fields: list[str] = Field(default_factory=list)

    @property
    def loaded_anything(self) -> bool:
        return bool(self.loaded_fields)
