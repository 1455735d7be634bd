"""
Data Models Package

This package contains all Pydantic models used in the Personal Budget Manager.
All data flowing through the system must conform to these schemas.
"""

from budget_manager.models.ledger import (
    ALL_CATEGORIES,
    BudgetBand,
    CategoryStatus,
    Expense,
    ExpenseDraft,
    LedgerSnapshot,
    LedgerState,
    LedgerSummary,
    SortOrder,
)
from budget_manager.models.session import (
    SessionContext,
    UserAccount,
)

__all__ = [
    # Ledger models
    "ALL_CATEGORIES",
    "BudgetBand",
    "CategoryStatus",
    "Expense",
    "ExpenseDraft",
    "LedgerSnapshot",
    "LedgerState",
    "LedgerSummary",
    "SortOrder",
    # Session models
    "SessionContext",
    "UserAccount",
]
