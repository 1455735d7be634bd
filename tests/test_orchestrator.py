"""Integration tests for the wired application."""

import pytest
from datetime import date
from decimal import Decimal

from budget_manager.config import Settings
from budget_manager.ledger import SessionError
from budget_manager.models import SessionContext
from budget_manager.orchestrator import BudgetApp, create_app_components
from budget_manager.services.storage import (
    InMemoryStore,
    JsonFileStore,
    SerializationError,
    StorageError,
)


@pytest.fixture
def app(monkeypatch):
    for name in ("LEDGER_DEFAULT_INCOME", "LEDGER_DEFAULT_OVERALL_BUDGET", "LEDGER_DEFAULT_CATEGORIES"):
        monkeypatch.delenv(name, raising=False)
    return BudgetApp(InMemoryStore(), Settings())


def _food(amount):
    return {"amount": amount, "date": date(2024, 3, 1), "category": "Food"}


class TestBudgetApp:
    """Tests for opening, persisting and closing ledgers."""

    def test_open_requires_login(self, app):
        with pytest.raises(SessionError):
            app.open_ledger(SessionContext.anonymous())

    def test_first_open_saves_defaults(self, app):
        app.open_ledger(SessionContext.for_user("asha"))

        assert app.snapshots.has_snapshot() is True
        assert app.store.get("categories") == ["Food", "Transport", "Rent"]
        assert app.store.get("income") == 1000.0

    def test_changes_persist_between_opens(self, app):
        session = SessionContext.for_user("asha")
        ledger = app.open_ledger(session)
        ledger.add_expense(_food("25.00"))
        ledger.set_income("1200")

        reopened = app.open_ledger(session)

        assert reopened.total_expenses() == Decimal("25")
        assert reopened.income == Decimal("1200")

    def test_reopen_detaches_previous_ledger(self, app):
        session = SessionContext.for_user("asha")
        old = app.open_ledger(session)
        app.open_ledger(session)

        old.set_income("1")

        assert app.store.get("income") == 1000.0

    def test_full_flow(self, app):
        """Register, log in, record, log out and resume."""
        app.auth.register("asha", "asha@example.com", "pw")
        ledger = app.open_ledger(app.auth.login("asha", "pw"))
        ledger.add_expense(_food("40.00"))

        resumed = app.resume()
        assert resumed is not None
        assert resumed.session.username == "asha"
        assert resumed.category_total("Food") == Decimal("40")

        app.logout()
        assert app.resume() is None
        resumed.set_income("1")
        assert app.store.get("income") == 1000.0


class TestCreateAppComponents:
    """Tests for the factory."""

    def test_in_memory(self):
        app = create_app_components(use_storage=False)
        assert isinstance(app.store, InMemoryStore)

    def test_json_store(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "json")
        path = tmp_path / "budget.json"

        app = create_app_components(data_path=path, settings=Settings())
        app.open_ledger(SessionContext.for_user("asha"))

        assert isinstance(app.store, JsonFileStore)
        assert path.exists()

    def test_corrupt_store_fails_at_startup(self, tmp_path, monkeypatch):
        """Test that a broken data file is reported by the factory, not later."""
        monkeypatch.setenv("STORAGE_BACKEND", "json")
        path = tmp_path / "budget.json"
        path.write_text("{not json")

        with pytest.raises(SerializationError):
            create_app_components(data_path=path, settings=Settings())

    def test_in_memory_fallback_after_corrupt_store(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "json")
        path = tmp_path / "budget.json"
        path.write_text("{not json")

        try:
            app = create_app_components(data_path=path, settings=Settings())
        except StorageError:
            app = create_app_components(use_storage=False)

        assert isinstance(app.store, InMemoryStore)
        assert app.resume() is None
