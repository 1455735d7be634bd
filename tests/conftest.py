"""Shared fixtures for the budget manager tests."""

from datetime import date

import pytest

from budget_manager.config import LedgerSettings
from budget_manager.ledger import LedgerEngine
from budget_manager.models import SessionContext
from budget_manager.services.storage import InMemoryStore


@pytest.fixture
def ledger_settings():
    """Ledger settings with the shipped defaults, independent of the environment."""
    return LedgerSettings(
        default_income="1000",
        default_overall_budget="500",
        default_categories="Food,Transport,Rent",
        default_category_ceiling="100",
        revalidate_on_update=True,
        warning_threshold="75",
        limit_threshold="100",
        _env_file=None,
    )


@pytest.fixture
def session():
    return SessionContext.for_user("asha")


@pytest.fixture
def engine(session, ledger_settings):
    """A brand new ledger with default figures and categories."""
    return LedgerEngine(session, settings=ledger_settings)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def today():
    return date(2024, 3, 15)
