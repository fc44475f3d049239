"""Ledger core: store, aggregation, month indexing, reconciliation, transfer."""

from household_ledger.ledger.aggregation import (
    LedgerAggregator,
    category_totals,
    effective_caps,
    monthly_totals,
    percent_used,
)
from household_ledger.ledger.months import (
    available_months,
    current_month_key,
    parse_month_key,
    shift_month,
)
from household_ledger.ledger.reconciliation import Reconciler, SyncState
from household_ledger.ledger.store import LedgerStore, sorted_for_display
from household_ledger.ledger.transfer import (
    export_document,
    export_filename,
    export_json,
    import_json,
)

__all__ = [
    "LedgerAggregator",
    "LedgerStore",
    "Reconciler",
    "SyncState",
    "available_months",
    "category_totals",
    "current_month_key",
    "effective_caps",
    "export_document",
    "export_filename",
    "export_json",
    "import_json",
    "monthly_totals",
    "parse_month_key",
    "percent_used",
    "shift_month",
    "sorted_for_display",
]
