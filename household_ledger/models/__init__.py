"""
Data Models Package

This package contains all Pydantic models used in the Household Ledger.
All data flowing through the system must conform to these schemas.
"""

from household_ledger.models.ledger import (
    MONTH_KEY_PATTERN,
    BudgetConfiguration,
    BudgetMap,
    Category,
    CategoryTotal,
    ExportDocument,
    ImportResult,
    LedgerSnapshot,
    MonthlyTotals,
    SnapshotPatch,
    Transaction,
    TransactionKind,
    is_month_key,
    month_key_for,
)
from household_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "MONTH_KEY_PATTERN",
    "BudgetConfiguration",
    "BudgetMap",
    "Category",
    "CategoryTotal",
    "ExportDocument",
    "ImportResult",
    "LedgerSnapshot",
    "MonthlyTotals",
    "SnapshotPatch",
    "Transaction",
    "TransactionKind",
    "is_month_key",
    "month_key_for",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
