"""
Tests for backup export and import.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from household_ledger.ledger import (
    LedgerStore,
    export_document,
    export_filename,
    export_json,
    import_json,
)
from household_ledger.models.audit import AuditEventType
from household_ledger.models.ledger import Transaction
from household_ledger.services.storage import InMemoryStateBackend
from household_ledger.validation import ImportFailedError


EXPORTED_AT = datetime(2024, 5, 31, 18, 30, tzinfo=timezone.utc)


def make_txn(kind, amount, category=None, when=None, note=""):
    return Transaction(
        kind=kind,
        amount=Decimal(amount),
        category=category,
        note=note,
        payer="Alessandro",
        occurred_at=when or datetime(2024, 5, 10, 12, 0),
    )


@pytest.fixture
def filled_store(store):
    store.add(make_txn("income", "2000", when=datetime(2024, 5, 1, 12, 0)))
    store.add(make_txn("expense", "12.75", "Food", note="Market"))
    store.set_base_budget(100)
    return store


class TestExport:
    """Tests for the backup document."""

    def test_document_shape(self, filled_store):
        data = json.loads(export_json(filled_store, now=EXPORTED_AT))
        assert data["version"] == 1
        assert data["exportedAt"].startswith("2024-05-31T18:30:00")
        assert data["baseBudget"] == 100
        assert len(data["transactions"]) == 2
        assert data["transactions"][1]["cat"] == "Food"
        assert data["transactions"][1]["amount"] == 12.75

    def test_export_is_indented(self, filled_store):
        assert "\n  " in export_json(filled_store, now=EXPORTED_AT)

    def test_export_document_model(self, filled_store):
        document = export_document(filled_store, now=EXPORTED_AT)
        assert document.base_budget == Decimal("100")
        assert document.exported_at == EXPORTED_AT

    def test_filename(self):
        assert export_filename(EXPORTED_AT) == "budget-export-2024-05-31.json"

    def test_export_is_audited(self, filled_store, audit_logger):
        export_json(filled_store, now=EXPORTED_AT, audit_logger=audit_logger)
        assert audit_logger.events[-1].event_type == AuditEventType.EXPORT_COMPLETED


class TestImport:
    """Tests for loading a backup."""

    def test_round_trip(self, filled_store):
        """Test export then import into a fresh ledger gives the same data."""
        text = export_json(filled_store, now=EXPORTED_AT)
        fresh = LedgerStore(InMemoryStateBackend())

        result = import_json(fresh, text)

        assert result.loaded_fields == ["transactions", "base_budget"]
        assert result.skipped_fields == []
        assert [txn.to_wire() for txn in fresh.list()] == [
            txn.to_wire() for txn in filled_store.list()
        ]
        assert fresh.base_budget == filled_store.base_budget

    def test_legacy_field_names(self, store):
        """Test files from the first app revision still load."""
        text = json.dumps({
            "txns": [{
                "id": "old",
                "type": "income",
                "amount": 1500,
                "ts": 1715342400000,
                "month": "2024-05",
            }],
            "budget": 80,
        })
        result = import_json(store, text)
        assert result.loaded_anything
        assert store.get("old").amount == Decimal("1500")
        assert store.base_budget == Decimal("80")

    def test_partial_file_keeps_other_fields(self, filled_store, audit_logger):
        """Test a malformed field is skipped and the rest loaded."""
        before = filled_store.list()
        text = json.dumps({"transactions": "nope", "baseBudget": 75})

        result = import_json(filled_store, text, audit_logger=audit_logger)

        assert result.loaded_fields == ["base_budget"]
        assert result.skipped_fields == ["transactions"]
        assert filled_store.list() == before
        assert filled_store.base_budget == Decimal("75")
        assert audit_logger.events[-1].event_type == AuditEventType.IMPORT_COMPLETED

    def test_boolean_base_budget_skipped(self, store):
        result = import_json(store, json.dumps({"baseBudget": True}))
        assert result.skipped_fields == ["baseBudget"]
        assert store.base_budget == Decimal("0")

    @pytest.mark.parametrize("text", ["[1, 2]", '"text"', "42", "null", "{not json"])
    def test_rejects_non_object(self, filled_store, audit_logger, text):
        """Test anything but a JSON object fails and changes nothing."""
        before = filled_store.snapshot()

        with pytest.raises(ImportFailedError):
            import_json(filled_store, text, audit_logger=audit_logger)

        assert filled_store.snapshot() == before
        assert audit_logger.events[-1].event_type == AuditEventType.IMPORT_FAILED

    def test_import_notifies(self, store):
        """Test an import counts as a local change and gets synced."""
        calls = []
        store.subscribe(lambda: calls.append(1))
        import_json(store, json.dumps({"baseBudget": 10}))
        assert calls == [1]

    def test_empty_object_loads_nothing(self, store):
        calls = []
        store.subscribe(lambda: calls.append(1))
        result = import_json(store, "{}")
        assert not result.loaded_anything
        assert calls == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
