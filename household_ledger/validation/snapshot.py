"""
Snapshot Shape Validation

DESIGN DECISION: Untrusted payloads enter the system in exactly two places:
1. The remote household snapshot (pull)
2. A user-supplied backup file (import)

Both are validated ONCE here, field by field, and turned into a typed
SnapshotPatch. Nothing downstream ever looks at raw dicts.

Field policy:
- A field that is absent is simply not part of the patch.
- A field that is present but malformed is dropped and logged.
- A list of transactions is all-or-nothing: one bad record rejects the
  whole field, so a partial ledger is never written over a complete one.
"""

from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from household_ledger.audit import AuditLogger
from household_ledger.models.ledger import (
    BudgetConfiguration,
    BudgetMap,
    CapAmount,
    SnapshotPatch,
    Transaction,
)


class ImportFailedError(Exception):
    """A backup file could not be accepted. The message is shown to the user."""
    pass


_TRANSACTIONS = TypeAdapter(list[Transaction])
_BUDGET_CONFIGURATION = TypeAdapter(BudgetConfiguration)
_BUDGET_MAP = TypeAdapter(BudgetMap)
_CAP_AMOUNT = TypeAdapter(CapAmount)

# patch field -> accepted wire names, first match wins
REMOTE_FIELDS = {
    "transactions": ("txns",),
    "budget_configuration": ("catBudgetsMap",),
    "default_budget_configuration": ("defaultBudgets",),
    "base_budget": ("monthlyBudget",),
}

IMPORT_FIELDS = {
    "transactions": ("transactions", "txns"),
    "base_budget": ("baseBudget", "budget"),
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid")
    if location:
        message = f"{location}: {message}"
    return f"{error.error_count()} error(s), first: {message}"


class SnapshotValidator:
    """
    Validates raw snapshot payloads into SnapshotPatch objects.

    Malformed fields are reported through the audit logger, never raised.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._audit_logger = audit_logger

    def _ignore(self, field: str, reason: str) -> None:
        if self._audit_logger:
            self._audit_logger.log_remote_field_ignored(field, reason)

    def _validate_field(self, field: str, value: Any) -> tuple[Any, Optional[str]]:
        """
        Validate one field value.

        Returns: (validated_value, None) or (None, reason)
        """
        if field == "transactions":
            if not isinstance(value, list):
                return None, f"expected an array, got {type(value).__name__}"
            adapter = _TRANSACTIONS
        elif field in ("budget_configuration", "default_budget_configuration"):
            if not isinstance(value, dict):
                return None, f"expected an object, got {type(value).__name__}"
            adapter = (
                _BUDGET_CONFIGURATION
                if field == "budget_configuration"
                else _BUDGET_MAP
            )
        elif field == "base_budget":
            if not _is_number(value):
                return None, f"expected a number, got {type(value).__name__}"
            adapter = _CAP_AMOUNT
        else:
            return None, "unknown field"

        try:
            return adapter.validate_python(value), None
        except ValidationError as e:
            return None, _summarize(e)

    def _collect(
        self,
        payload: dict,
        fields: dict[str, tuple[str, ...]],
    ) -> tuple[dict[str, Any], list[str]]:
        values: dict[str, Any] = {}
        skipped: list[str] = []
        for field, wire_names in fields.items():
            wire_name = next((name for name in wire_names if name in payload), None)
            if wire_name is None:
                continue
            value, reason = self._validate_field(field, payload[wire_name])
            if reason is None:
                values[field] = value
            else:
                self._ignore(wire_name, reason)
                skipped.append(wire_name)
        return values, skipped

    def parse_remote(self, payload: Any) -> SnapshotPatch:
        """
        Validate a pulled household snapshot.

        Never raises: anything unusable simply leaves the local value alone.
        """
        if not isinstance(payload, dict):
            self._ignore("<payload>", f"expected an object, got {type(payload).__name__}")
            return SnapshotPatch()
        values, _ = self._collect(payload, REMOTE_FIELDS)
        return SnapshotPatch(**values)

    def parse_import(self, document: Any) -> tuple[SnapshotPatch, list[str]]:
        """
        Validate a decoded backup file.

        Returns:
            (patch, skipped_wire_fields)

        Raises:
            ImportFailedError: If the document is not a JSON object
        """
        if not isinstance(document, dict):
            raise ImportFailedError("Invalid file")
        values, skipped = self._collect(document, IMPORT_FIELDS)
        return SnapshotPatch(**values), skipped
