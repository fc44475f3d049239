"""
Tests for entry parsing and snapshot validation.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from household_ledger.models.audit import AuditEventType
from household_ledger.models.ledger import Category, TransactionKind
from household_ledger.validation import (
    ImportFailedError,
    InvalidEntryError,
    SnapshotValidator,
    anchor_date,
    build_transaction,
    parse_amount,
    parse_cap,
    parse_caps,
)


class TestAmountParsing:
    """Tests for amount input."""

    def test_valid_amounts(self):
        assert parse_amount("12.50") == Decimal("12.50")
        assert parse_amount(" 3 ") == Decimal("3")
        assert parse_amount(7) == Decimal("7")
        assert parse_amount(0.1) == Decimal("0.1")

    @pytest.mark.parametrize("raw", ["", "abc", "0", "-3", "NaN", "Infinity", None, True])
    def test_invalid_amounts(self, raw):
        with pytest.raises(InvalidEntryError) as exc_info:
            parse_amount(raw)
        assert exc_info.value.field == "amount"
        assert exc_info.value.message == "Enter a valid amount"

    def test_caps_default_to_zero(self):
        """Test blank, invalid and negative caps all mean no budget."""
        assert parse_cap("") == Decimal("0")
        assert parse_cap("x") == Decimal("0")
        assert parse_cap("-5") == Decimal("0")
        assert parse_cap("120") == Decimal("120")

    def test_parse_caps_ignores_unknown_categories(self):
        caps = parse_caps({"Food": "120", "Transport": "", "Bogus": "5", "Fun": "x"})
        assert caps == {
            Category.FOOD: Decimal("120"),
            Category.TRANSPORT: Decimal("0"),
            Category.FUN: Decimal("0"),
        }


class TestBuildTransaction:
    """Tests for turning form input into a Transaction."""

    def test_expense(self):
        txn = build_transaction(
            "expense", "10", "Food", payer="Anais", note="Bread", on=date(2024, 5, 3)
        )
        assert txn.kind == TransactionKind.EXPENSE
        assert txn.category == Category.FOOD
        assert txn.occurred_at == datetime(2024, 5, 3, 12, 0, tzinfo=timezone.utc)
        assert txn.month_key == "2024-05"

    def test_income_without_category(self):
        txn = build_transaction("income", "2000", on=date(2024, 5, 1))
        assert txn.category is None

    def test_blank_category_is_none(self):
        txn = build_transaction("income", "5", "", on=date(2024, 5, 1))
        assert txn.category is None

    def test_expense_requires_category(self):
        with pytest.raises(InvalidEntryError) as exc_info:
            build_transaction("expense", "10")
        assert exc_info.value.field == "category"

    def test_unknown_category(self):
        with pytest.raises(InvalidEntryError, match="Unknown category"):
            build_transaction("expense", "10", "Gadgets")

    def test_unknown_kind(self):
        with pytest.raises(InvalidEntryError) as exc_info:
            build_transaction("refund", "10", "Food")
        assert exc_info.value.field == "kind"

    def test_invalid_amount_never_builds(self):
        with pytest.raises(InvalidEntryError):
            build_transaction("expense", "abc", "Food")

    def test_naive_datetime_taken_as_utc(self):
        when = datetime(2024, 5, 3, 8, 15)
        txn = build_transaction("income", "1", on=when)
        assert txn.occurred_at == when.replace(tzinfo=timezone.utc)

    def test_defaults_to_today(self):
        txn = build_transaction("income", "1")
        assert txn.occurred_at.date() == date.today()

    def test_anchor_date(self):
        assert anchor_date(date(2024, 2, 29)) == datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc)


class TestSnapshotValidator:
    """Tests for validating remote and imported payloads."""

    def test_remote_payload(self):
        patch = SnapshotValidator().parse_remote({
            "txns": [{"type": "income", "amount": 5, "ts": "2024-05-01T12:00:00"}],
            "catBudgetsMap": {"2024-05": {"Food": 100}},
            "defaultBudgets": {},
            "monthlyBudget": 0,
        })
        assert len(patch.transactions) == 1
        assert patch.budget_configuration == {"2024-05": {Category.FOOD: Decimal("100")}}
        assert patch.default_budget_configuration == {}
        assert patch.base_budget == Decimal("0")

    def test_absent_fields_stay_absent(self):
        patch = SnapshotValidator().parse_remote({"monthlyBudget": 10})
        assert patch.present_fields == ["base_budget"]

    def test_bad_month_key_drops_configuration(self, audit_logger):
        patch = SnapshotValidator(audit_logger).parse_remote({
            "catBudgetsMap": {"2024-13": {"Food": 1}},
        })
        assert patch.budget_configuration is None
        assert audit_logger.events[-1].event_type == AuditEventType.REMOTE_FIELD_IGNORED

    def test_boolean_is_not_a_number(self):
        patch = SnapshotValidator().parse_remote({"monthlyBudget": True})
        assert patch.base_budget is None

    def test_string_number_rejected(self):
        patch = SnapshotValidator().parse_remote({"monthlyBudget": "100"})
        assert patch.base_budget is None

    def test_negative_base_budget_rejected(self, audit_logger):
        """Test a negative allowance is skipped, leaving the local value."""
        patch = SnapshotValidator(audit_logger).parse_remote({"monthlyBudget": -50})
        assert patch.base_budget is None
        assert audit_logger.events[-1].entity_id == "monthlyBudget"

        patch, skipped = SnapshotValidator().parse_import({"baseBudget": -1})
        assert patch.is_empty
        assert skipped == ["baseBudget"]

    def test_non_object_payload(self, audit_logger):
        patch = SnapshotValidator(audit_logger).parse_remote("garbage")
        assert patch.is_empty
        assert audit_logger.events[-1].entity_id == "<payload>"

    def test_import_prefers_current_names(self):
        patch, skipped = SnapshotValidator().parse_import({
            "baseBudget": 10,
            "budget": 99,
        })
        assert patch.base_budget == Decimal("10")
        assert skipped == []

    def test_import_ignores_budget_maps(self):
        """Test backups only carry transactions and the base budget."""
        patch, _ = SnapshotValidator().parse_import({"catBudgetsMap": {"2024-05": {}}})
        assert patch.is_empty

    def test_import_rejects_non_object(self):
        with pytest.raises(ImportFailedError, match="Invalid file"):
            SnapshotValidator().parse_import(["not", "an", "object"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
