"""
Ledger Store

Owns the transaction collection and the budget configuration, and keeps
the local key/value store in step with them.

DESIGN DECISION: The store is an explicitly constructed object with an
injected backend. There are no module-level singletons, so every test can
build an isolated ledger.

Every mutation:
1. Writes the affected key to the local backend (synchronously)
2. Updates in-memory state only after the write succeeded
3. Notifies subscribers (the reconciler arms its debounced push)
"""

from decimal import Decimal
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from household_ledger.audit import AuditLogger
from household_ledger.ledger.months import parse_month_key
from household_ledger.models.ledger import (
    BudgetConfiguration,
    BudgetMap,
    CapAmount,
    Category,
    LedgerSnapshot,
    SnapshotPatch,
    Transaction,
)
from household_ledger.services.storage.interface import (
    BASE_BUDGET_KEY,
    BUDGET_CONFIGURATION_KEY,
    CURRENT_USER_KEY,
    DEFAULT_BUDGETS_KEY,
    TRANSACTIONS_KEY,
    LocalStateBackend,
)


_TRANSACTIONS = TypeAdapter(list[Transaction])
_BUDGET_CONFIGURATION = TypeAdapter(BudgetConfiguration)
_BUDGET_MAP = TypeAdapter(BudgetMap)
_CAP_AMOUNT = TypeAdapter(CapAmount)
_USER = TypeAdapter(str)

Listener = Callable[[], None]
CapsInput = Mapping[Union[Category, str], Any]


def sorted_for_display(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first, the order transaction lists are shown in."""
    return sorted(transactions, key=lambda txn: txn.occurred_at, reverse=True)


class LedgerStore:
    """
    Local ledger state: transactions, budgets, base budget and current user.

    The collection is append/remove only. Transactions are never edited.
    """

    def __init__(
        self,
        backend: LocalStateBackend,
        audit_logger: Optional[AuditLogger] = None,
        default_user: str = "",
    ):
        """
        Load state from the backend.

        Args:
            backend: Local key/value store
            audit_logger: Optional logger for mutations and discarded values
            default_user: Payer used when none is stored yet
        """
        self._backend = backend
        self._audit_logger = audit_logger
        self._listeners: list[Listener] = []

        self._transactions: list[Transaction] = self._load(
            TRANSACTIONS_KEY, _TRANSACTIONS, []
        )
        self._budget_configuration: dict = self._load(
            BUDGET_CONFIGURATION_KEY, _BUDGET_CONFIGURATION, {}
        )
        self._default_budgets: dict = self._load(
            DEFAULT_BUDGETS_KEY, _BUDGET_MAP, {}
        )
        self._base_budget: Decimal = self._load(
            BASE_BUDGET_KEY, _CAP_AMOUNT, Decimal("0")
        )
        self._current_user: str = self._load(
            CURRENT_USER_KEY, _USER, default_user
        )

    # -------------------------------------------------------------------------
    # Persistence helpers
    # -------------------------------------------------------------------------

    def _load(self, key: str, adapter: TypeAdapter, default: Any) -> Any:
        """Read one key, falling back to the default if absent or unparsable."""
        raw = self._backend.get(key)
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            if self._audit_logger:
                self._audit_logger.log_local_value_discarded(
                    key, f"{e.error_count()} validation error(s)"
                )
            return default

    def _persist(self, key: str, adapter: TypeAdapter, value: Any) -> None:
        self._backend.set(key, adapter.dump_json(value, by_alias=True).decode("utf-8"))

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def subscribe(self, listener: Listener) -> None:
        """Register a callback run after every syncable mutation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def list(self) -> tuple[Transaction, ...]:
        """
        All transactions, in no particular order.

        The returned tuple is a snapshot and can be iterated any number of times.
        """
        return tuple(self._transactions)

    def transactions_for_month(self, month_key: str) -> tuple[Transaction, ...]:
        parse_month_key(month_key)
        return tuple(txn for txn in self._transactions if txn.month_key == month_key)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        return next((txn for txn in self._transactions if txn.id == transaction_id), None)

    @property
    def budget_configuration(self) -> dict:
        return {month: dict(caps) for month, caps in self._budget_configuration.items()}

    @property
    def default_budgets(self) -> dict:
        return dict(self._default_budgets)

    @property
    def base_budget(self) -> Decimal:
        return self._base_budget

    @property
    def current_user(self) -> str:
        return self._current_user

    def snapshot(self) -> LedgerSnapshot:
        """The full syncable state at this instant."""
        return LedgerSnapshot(
            transactions=list(self._transactions),
            budget_configuration=self.budget_configuration,
            default_budget_configuration=self.default_budgets,
            base_budget=self._base_budget,
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, entry: Transaction) -> Transaction:
        """
        Append a transaction, assigning a fresh id if it has none.

        Returns:
            The stored transaction (with its id)
        """
        if not entry.id:
            entry = entry.model_copy(update={"id": str(uuid4())})

        transactions = [*self._transactions, entry]
        self._persist(TRANSACTIONS_KEY, _TRANSACTIONS, transactions)
        self._transactions = transactions

        if self._audit_logger:
            self._audit_logger.log_transaction_added(
                transaction_id=entry.id,
                kind=entry.kind.value,
                amount=str(entry.amount),
                month_key=entry.month_key,
            )
        self._notify()
        return entry

    def remove(self, transaction_id: str) -> bool:
        """
        Delete a transaction by id.

        Removing an id that is not present is a no-op.

        Returns:
            True if a transaction was removed
        """
        transactions = [txn for txn in self._transactions if txn.id != transaction_id]
        if len(transactions) == len(self._transactions):
            return False

        self._persist(TRANSACTIONS_KEY, _TRANSACTIONS, transactions)
        self._transactions = transactions

        if self._audit_logger:
            self._audit_logger.log_transaction_removed(transaction_id)
        self._notify()
        return True

    def set_month_budgets(
        self,
        month_key: str,
        caps: CapsInput,
        apply_default: bool = False,
    ) -> None:
        """
        Set the category caps for one month.

        Args:
            month_key: Month the caps apply to
            caps: category -> cap (zero means "no budget")
            apply_default: Also save the caps as the default for other months
        """
        parse_month_key(month_key)
        validated = _BUDGET_MAP.validate_python(dict(caps))

        configuration = {**self._budget_configuration, month_key: validated}
        self._persist(BUDGET_CONFIGURATION_KEY, _BUDGET_CONFIGURATION, configuration)
        self._budget_configuration = configuration
        if apply_default:
            self._persist(DEFAULT_BUDGETS_KEY, _BUDGET_MAP, validated)
            self._default_budgets = dict(validated)

        if self._audit_logger:
            categories = [category.value for category in validated]
            self._audit_logger.log_budgets_updated("month", categories, month_key)
            if apply_default:
                self._audit_logger.log_budgets_updated("default", categories)
        self._notify()

    def set_default_budgets(self, caps: CapsInput) -> None:
        """Set the caps used by months without their own entry."""
        validated = _BUDGET_MAP.validate_python(dict(caps))
        self._persist(DEFAULT_BUDGETS_KEY, _BUDGET_MAP, validated)
        self._default_budgets = validated

        if self._audit_logger:
            self._audit_logger.log_budgets_updated(
                "default", [category.value for category in validated]
            )
        self._notify()

    def set_base_budget(self, amount: Any) -> None:
        """Set the allowance added to every month's available funds."""
        validated = _CAP_AMOUNT.validate_python(amount)
        self._persist(BASE_BUDGET_KEY, _CAP_AMOUNT, validated)
        self._base_budget = validated

        if self._audit_logger:
            self._audit_logger.log_base_budget_updated(str(validated))
        self._notify()

    def set_current_user(self, name: str) -> None:
        """
        Remember the default payer on this device.

        Device-local only: not part of the snapshot, never pushed.
        """
        name = name.strip()
        self._persist(CURRENT_USER_KEY, _USER, name)
        self._current_user = name
        if self._audit_logger:
            self._audit_logger.log_current_user_changed(name)

    def replace(
        self,
        patch: SnapshotPatch,
        notify: bool = True,
        source: str = "import",
    ) -> List[str]:
        """
        Wholesale replace every field present in the patch.

        Args:
            patch: Validated fields to take over
            notify: Whether subscribers should treat this as a local change
            source: Where the patch came from, for the audit trail

        Returns:
            Names of the replaced fields
        """
        replaced = patch.present_fields
        if patch.transactions is not None:
            self._persist(TRANSACTIONS_KEY, _TRANSACTIONS, patch.transactions)
            self._transactions = list(patch.transactions)
        if patch.budget_configuration is not None:
            self._persist(
                BUDGET_CONFIGURATION_KEY, _BUDGET_CONFIGURATION, patch.budget_configuration
            )
            self._budget_configuration = dict(patch.budget_configuration)
        if patch.default_budget_configuration is not None:
            self._persist(DEFAULT_BUDGETS_KEY, _BUDGET_MAP, patch.default_budget_configuration)
            self._default_budgets = dict(patch.default_budget_configuration)
        if patch.base_budget is not None:
            self._persist(BASE_BUDGET_KEY, _CAP_AMOUNT, patch.base_budget)
            self._base_budget = patch.base_budget

        if replaced and self._audit_logger:
            self._audit_logger.log_state_replaced(source, replaced)
        if replaced and notify:
            self._notify()
        return replaced
