"""
File Export / Import

Backups are plain JSON documents:

    {"version": 1, "exportedAt": "...", "baseBudget": 100, "transactions": [...]}

Import is all-or-nothing per field. The document itself must be a JSON
object, otherwise nothing is loaded and the user sees the error.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from household_ledger.audit import AuditLogger
from household_ledger.ledger.store import LedgerStore
from household_ledger.models.ledger import ExportDocument, ImportResult
from household_ledger.validation.snapshot import ImportFailedError, SnapshotValidator


EXPORT_VERSION = 1


def export_document(store: LedgerStore, now: Optional[datetime] = None) -> ExportDocument:
    return ExportDocument(
        version=EXPORT_VERSION,
        exported_at=now or datetime.now(timezone.utc),
        base_budget=store.base_budget,
        transactions=list(store.list()),
    )


def export_json(
    store: LedgerStore,
    now: Optional[datetime] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> str:
    """Serialize the ledger backup as indented JSON text."""
    document = export_document(store, now)
    if audit_logger:
        audit_logger.log_export_completed(len(document.transactions))
    return json.dumps(document.model_dump(mode="json", by_alias=True), indent=2)


def export_filename(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).date().isoformat()
    return f"budget-export-{stamp}.json"


def import_json(
    store: LedgerStore,
    text: str,
    audit_logger: Optional[AuditLogger] = None,
) -> ImportResult:
    """
    Load a backup into the store.

    Fields that validate replace local state (and are pushed to the
    household like any other change). Invalid fields are skipped.

    Raises:
        ImportFailedError: If the text is not a JSON object. Local state
            is left untouched.
    """
    try:
        try:
            document = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise ImportFailedError(f"Invalid JSON: {e}")
        patch, skipped = SnapshotValidator(audit_logger).parse_import(document)
    except ImportFailedError as e:
        if audit_logger:
            audit_logger.log_import_failed(str(e))
        raise

    loaded = store.replace(patch, notify=True, source="import")
    if audit_logger:
        audit_logger.log_import_completed(loaded, skipped)
    return ImportResult(loaded_fields=loaded, skipped_fields=skipped)
