"""Validation package: untrusted payloads and user input."""

from household_ledger.validation.entry import (
    InvalidEntryError,
    anchor_date,
    build_transaction,
    parse_amount,
    parse_cap,
    parse_caps,
)
from household_ledger.validation.snapshot import (
    ImportFailedError,
    SnapshotValidator,
)

__all__ = [
    "ImportFailedError",
    "InvalidEntryError",
    "SnapshotValidator",
    "anchor_date",
    "build_transaction",
    "parse_amount",
    "parse_cap",
    "parse_caps",
]
