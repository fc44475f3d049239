"""
Main Orchestrator for Household Ledger

This module ties together all the components behind one session object
that a UI drives:

1. Startup: load local state, pull the household snapshot once
2. Mutations: record entries/budgets, persisted locally and pushed debounced
3. Reads: monthly totals, category totals, month list
4. Shutdown: flush the pending push

DESIGN DECISION: The UI only talks to LedgerSession. It never touches the
stores or the remote directly, so the rendering layer can be swapped
without touching ledger rules.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from household_ledger.audit import AuditLogger
from household_ledger.config import LedgerSettings, get_settings, validate_all_settings
from household_ledger.ledger import (
    LedgerAggregator,
    LedgerStore,
    Reconciler,
    export_filename,
    export_json,
    import_json,
    sorted_for_display,
)
from household_ledger.models.ledger import (
    Category,
    CategoryTotal,
    ImportResult,
    MonthlyTotals,
    Transaction,
)
from household_ledger.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsSnapshotStore,
    JsonFileBackend,
    LocalStateBackend,
    RemoteSnapshotStore,
)
from household_ledger.validation import build_transaction, parse_caps


class LedgerSession:
    """
    One running ledger: store, aggregates and (optional) household sync.
    """

    def __init__(
        self,
        store: LedgerStore,
        reconciler: Optional[Reconciler] = None,
        audit_logger: Optional[AuditLogger] = None,
        window_months: int = 12,
    ):
        self.store = store
        self.reconciler = reconciler
        self.aggregator = LedgerAggregator(store, window_months=window_months)
        self._audit_logger = audit_logger

    async def start(self) -> bool:
        """
        Called once when the UI first renders.

        Returns:
            True if the household snapshot replaced local state
        """
        if self.reconciler is None:
            return False
        return await self.reconciler.start()

    async def close(self) -> None:
        if self.reconciler is not None:
            await self.reconciler.flush()

    # Writes ------------------------------------------------------------------

    def record(
        self,
        kind: str,
        amount: Any,
        category: Optional[str] = None,
        note: str = "",
        on: Optional[date] = None,
        payer: Optional[str] = None,
    ) -> Transaction:
        """
        Parse form input and add the transaction.

        Raises:
            InvalidEntryError: If the input is rejected
        """
        entry = build_transaction(
            kind=kind,
            amount=amount,
            category=category,
            payer=self.store.current_user if payer is None else payer,
            note=note,
            on=on,
        )
        return self.store.add(entry)

    def delete(self, transaction_id: str) -> bool:
        return self.store.remove(transaction_id)

    def save_budgets(
        self,
        month_key: str,
        raw_caps: Mapping[str, Any],
        apply_default: bool = True,
    ) -> None:
        """Save the budget form for a month (optionally as the new default)."""
        self.store.set_month_budgets(month_key, parse_caps(raw_caps), apply_default)

    def set_base_budget(self, amount: Any) -> None:
        self.store.set_base_budget(amount)

    def switch_user(self, name: str) -> None:
        self.store.set_current_user(name)

    # Reads -------------------------------------------------------------------

    def month_transactions(self, month_key: str) -> list[Transaction]:
        """A month's transactions, newest first."""
        return sorted_for_display(self.store.transactions_for_month(month_key))

    def monthly_totals(self, month_key: str) -> MonthlyTotals:
        return self.aggregator.monthly_totals(month_key)

    def category_totals(self, month_key: str) -> dict[Category, CategoryTotal]:
        return self.aggregator.category_totals(month_key)

    def effective_caps(self, month_key: str) -> dict[Category, Decimal]:
        return self.aggregator.effective_caps(month_key)

    def available_months(self, today: Optional[date] = None) -> list[str]:
        return self.aggregator.available_months(today=today)

    # Files -------------------------------------------------------------------

    def export_backup(self) -> tuple[str, str]:
        """
        Returns:
            (filename, json_text)
        """
        return export_filename(), export_json(self.store, audit_logger=self._audit_logger)

    def import_backup(self, text: str) -> ImportResult:
        """
        Raises:
            ImportFailedError: If the file is rejected
        """
        return import_json(self.store, text, audit_logger=self._audit_logger)


def create_ledger_session(
    settings: Optional[LedgerSettings] = None,
    backend: Optional[LocalStateBackend] = None,
    remote: Optional[RemoteSnapshotStore] = None,
    use_remote: bool = True,
) -> LedgerSession:
    """
    Factory function to create all ledger components.

    Args:
        settings: Ledger settings (defaults to environment configuration)
        backend: Local store (defaults to JSON files in settings.data_dir)
        remote: Household store (defaults to Google Sheets)
        use_remote: Set to False to run without household sync

    Returns:
        A LedgerSession; call `await session.start()` on first render
    """
    settings = settings or get_settings().ledger
    audit_logger = AuditLogger()

    store = LedgerStore(
        backend or JsonFileBackend(settings.data_dir),
        audit_logger=audit_logger,
        default_user=settings.default_payer,
    )

    reconciler = None
    if use_remote and settings.sync_enabled:
        if remote is None:
            status = validate_all_settings()
            if status["google_sheets"]:
                remote = GoogleSheetsSnapshotStore(GoogleSheetsClient())
            else:
                # Remote not configured - continue local-only
                audit_logger.log_sync_failed(
                    "setup",
                    settings.household_id,
                    status.get("google_sheets_error", "Not configured"),
                )
        if remote is not None:
            reconciler = Reconciler(
                store,
                remote,
                settings.household_id,
                debounce_seconds=settings.push_debounce_seconds,
                audit_logger=audit_logger,
            )

    return LedgerSession(
        store,
        reconciler=reconciler,
        audit_logger=audit_logger,
        window_months=settings.month_window,
    )
