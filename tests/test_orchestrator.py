"""
Tests for the ledger session and configuration.

Integration-style: the full component graph with in-memory storage.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from household_ledger.config import LedgerSettings, validate_all_settings
from household_ledger.models.ledger import Category
from household_ledger.orchestrator import LedgerSession, create_ledger_session
from household_ledger.services.storage import InMemorySnapshotStore, InMemoryStateBackend
from household_ledger.validation import InvalidEntryError


def make_settings(**overrides):
    values = {"household_id": "home", "push_debounce_ms": 20}
    values.update(overrides)
    return LedgerSettings(**values)


class TestSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_HOUSEHOLD_ID", raising=False)
        settings = LedgerSettings(_env_file=None)
        assert settings.household_id is None
        assert settings.sync_enabled is False
        assert settings.push_debounce_seconds == 0.5
        assert settings.month_window == 12
        assert settings.payers_list == ["Alessandro", "Anais"]

    def test_blank_household_disables_sync(self):
        settings = LedgerSettings(household_id="   ", _env_file=None)
        assert settings.household_id is None
        assert not settings.sync_enabled

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_HOUSEHOLD_ID", "casa")
        monkeypatch.setenv("LEDGER_PAYERS", "Ana, Bo ,")
        settings = LedgerSettings(_env_file=None)
        assert settings.household_id == "casa"
        assert settings.payers_list == ["Ana", "Bo"]

    def test_rejects_negative_debounce(self):
        with pytest.raises(ValueError):
            LedgerSettings(push_debounce_ms=-1, _env_file=None)


class TestSessionFactory:
    """Tests for create_ledger_session."""

    def test_local_only(self):
        session = create_ledger_session(
            settings=make_settings(household_id=None),
            backend=InMemoryStateBackend(),
        )
        assert isinstance(session, LedgerSession)
        assert session.reconciler is None

    def test_remote_disabled_by_flag(self):
        session = create_ledger_session(
            settings=make_settings(),
            backend=InMemoryStateBackend(),
            remote=InMemorySnapshotStore(),
            use_remote=False,
        )
        assert session.reconciler is None

    def test_default_payer_from_settings(self):
        session = create_ledger_session(
            settings=make_settings(default_payer="Anais"),
            backend=InMemoryStateBackend(),
            use_remote=False,
        )
        assert session.store.current_user == "Anais"

    def test_files_in_data_dir(self, tmp_path):
        session = create_ledger_session(
            settings=make_settings(household_id=None, data_dir=tmp_path),
        )
        session.set_base_budget(10)
        assert (tmp_path / "monthlyBudget.json").read_text(encoding="utf-8") == "10"


class TestSessionFlow:
    """End-to-end flows through LedgerSession."""

    @pytest.fixture
    def remote(self):
        return InMemorySnapshotStore()

    @pytest.fixture
    def session(self, remote):
        return create_ledger_session(
            settings=make_settings(),
            backend=InMemoryStateBackend(),
            remote=remote,
        )

    @pytest.mark.asyncio
    async def test_record_and_sync(self, session, remote):
        """Test: start -> record -> close pushes the new entry."""
        await session.start()
        txn = session.record("expense", "12.5", "Food", note="Lunch", on=date(2024, 5, 2))
        await session.close()

        assert txn.payer == "Alessandro"
        assert remote.row("home")["txns"][0]["id"] == txn.id

    @pytest.mark.asyncio
    async def test_start_pulls_household(self):
        session = create_ledger_session(
            settings=make_settings(),
            backend=InMemoryStateBackend(),
            remote=InMemorySnapshotStore({"home": {"monthlyBudget": 300}}),
        )
        assert await session.start() is True
        assert session.store.base_budget == Decimal("300")

    def test_invalid_entry_never_reaches_store(self, session):
        with pytest.raises(InvalidEntryError):
            session.record("expense", "", "Food")
        assert session.store.list() == ()

    def test_month_views(self, session):
        session.record("income", "2000", on=date(2024, 5, 1))
        session.record("expense", "50", "Food", on=date(2024, 5, 20), payer="Anais")
        session.save_budgets("2024-05", {"Food": "40", "Fun": ""})
        session.set_base_budget(100)

        listed = session.month_transactions("2024-05")
        assert [txn.amount for txn in listed] == [Decimal("50"), Decimal("2000")]
        assert session.monthly_totals("2024-05").remaining == Decimal("2050")

        totals = session.category_totals("2024-05")
        assert totals[Category.FOOD].is_overspent
        assert totals[Category.FUN].has_budget is False
        assert session.effective_caps("2024-06") == {
            Category.FOOD: Decimal("40"),
            Category.FUN: Decimal("0"),
        }

    def test_available_months(self, session):
        months = session.available_months(today=date(2024, 5, 15))
        assert "2024-05" in months
        assert len(months) == 25

    def test_switch_user(self, session):
        session.switch_user("Anais")
        txn = session.record("income", "1", on=date(2024, 5, 1))
        assert txn.payer == "Anais"

    def test_delete(self, session):
        txn = session.record("income", "1", on=date(2024, 5, 1))
        assert session.delete(txn.id) is True
        assert session.delete(txn.id) is False

    def test_backup_round_trip(self, session):
        session.record("income", "1", on=date(2024, 5, 1))
        filename, text = session.export_backup()
        assert filename.startswith("budget-export-")

        other = create_ledger_session(
            settings=make_settings(household_id=None),
            backend=InMemoryStateBackend(),
        )
        result = other.import_backup(text)
        assert result.loaded_fields == ["transactions", "base_budget"]
        assert len(other.store.list()) == 1


LEGACY_RECORD = {
    "id": "legacy-1",
    "type": "expense",
    "amount": 20,
    "cat": "Food",
    "who": "Anais",
    "note": "Market",
    "ts": 1715342400000,
    "month": "2024-05",
}


class TestMixedHistory:
    """Households holding records from older clients next to new entries."""

    @pytest.fixture
    def session(self, remote):
        backend = InMemoryStateBackend({"txns": json.dumps([LEGACY_RECORD])})
        return create_ledger_session(
            settings=make_settings(),
            backend=backend,
            remote=remote,
        )

    def test_month_view_sorts_old_and_new(self, session):
        """Test an epoch-millis record and a form entry share one ordering."""
        fresh = session.record("expense", "3", "Food", on=date(2024, 5, 12))
        early = session.record("income", "100", on=date(2024, 5, 1))

        listed = session.month_transactions("2024-05")
        assert [txn.id for txn in listed] == [fresh.id, "legacy-1", early.id]

    def test_export_keeps_numeric_timestamps(self, session):
        session.record("expense", "3", "Food", on=date(2024, 5, 12))
        _, text = session.export_backup()

        records = json.loads(text)["transactions"]
        assert all(isinstance(record["ts"], int) for record in records)
        assert records[0]["ts"] == LEGACY_RECORD["ts"]

        other = create_ledger_session(
            settings=make_settings(household_id=None),
            backend=InMemoryStateBackend(),
        )
        other.import_backup(text)
        assert [txn.to_wire() for txn in other.store.list()] == [
            txn.to_wire() for txn in session.store.list()
        ]

    @pytest.mark.asyncio
    async def test_push_then_pull_on_another_device(self, session, remote):
        """Test a pushed mixed ledger loads and sorts on a second device."""
        await session.start()
        session.record("expense", "3", "Food", on=date(2024, 5, 12))
        await session.close()

        pushed = remote.row("home")["txns"]
        assert all(isinstance(record["ts"], int) for record in pushed)

        device = create_ledger_session(
            settings=make_settings(),
            backend=InMemoryStateBackend(),
            remote=remote,
        )
        assert await device.start() is True
        listed = device.month_transactions("2024-05")
        assert [txn.amount for txn in listed] == [Decimal("3"), Decimal("20")]


class TestSettingsValidation:
    """Tests for validate_all_settings and the startup check."""

    @pytest.fixture
    def sheets_env(self, monkeypatch, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-123")

    @pytest.fixture
    def no_sheets_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

    def test_all_configured(self, sheets_env):
        status = validate_all_settings()
        assert status["google_sheets"] is True
        assert status["ledger"] is True

    def test_sheets_missing(self, no_sheets_env):
        status = validate_all_settings()
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status
        assert status["ledger"] is True

    def test_session_runs_local_only_without_sheets(self, no_sheets_env):
        session = create_ledger_session(
            settings=make_settings(),
            backend=InMemoryStateBackend(),
        )
        assert session.reconciler is None

    def test_session_syncs_when_sheets_configured(self, sheets_env):
        session = create_ledger_session(
            settings=make_settings(),
            backend=InMemoryStateBackend(),
        )
        assert session.reconciler is not None
        assert session.reconciler.enabled


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
