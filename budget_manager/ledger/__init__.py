"""Ledger engine package."""

from budget_manager.ledger.engine import OVERALL_ALERT, ExpenseRef, LedgerEngine, StateListener
from budget_manager.ledger.errors import (
    BudgetExceededError,
    DuplicateCategoryError,
    ExpenseNotFoundError,
    InvalidExpenseError,
    InvalidNumericInputError,
    LedgerError,
    SessionError,
    UnknownCategoryError,
)
from budget_manager.ledger.parsing import capped_percentage, parse_amount, round2

__all__ = [
    "OVERALL_ALERT",
    "ExpenseRef",
    "LedgerEngine",
    "StateListener",
    # Errors
    "BudgetExceededError",
    "DuplicateCategoryError",
    "ExpenseNotFoundError",
    "InvalidExpenseError",
    "InvalidNumericInputError",
    "LedgerError",
    "SessionError",
    "UnknownCategoryError",
    # Input boundary
    "capped_percentage",
    "parse_amount",
    "round2",
]
