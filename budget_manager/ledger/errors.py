"""
Ledger Errors

All ledger errors are local and non-fatal: a rejected operation leaves the
ledger exactly as it was, so callers can show the message and carry on.
"""

from decimal import Decimal
from typing import Union
from uuid import UUID


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class BudgetExceededError(LedgerError):
    """Admitting the expense would push a category past its ceiling."""

    def __init__(self, category: str, attempted_total: Decimal, ceiling: Decimal):
        self.category = category
        self.attempted_total = attempted_total
        self.ceiling = ceiling
        super().__init__(
            f"Budget exceeded for {category}: "
            f"{attempted_total:.2f} would pass the ceiling of {ceiling:.2f}"
        )


class ExpenseNotFoundError(LedgerError, IndexError):
    """Edit/delete target is not in the ledger (bad position or unknown id)."""

    def __init__(self, ref: Union[int, UUID]):
        self.ref = ref
        if isinstance(ref, int):
            message = f"No expense at position {ref}"
        else:
            message = f"No expense with id {ref}"
        super().__init__(message)


class UnknownCategoryError(LedgerError, KeyError):
    """A category name that is not in the category set."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown category: {category!r}")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateCategoryError(LedgerError):
    """Category already exists (only raised by strict add_category)."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Category already exists: {category!r}")


class InvalidNumericInputError(LedgerError, ValueError):
    """User-supplied number could not be parsed, or was negative."""

    def __init__(self, raw: object, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid numeric input {raw!r}: {reason}")


class SessionError(LedgerError):
    """The ledger was opened without an authenticated session."""
    pass


class InvalidExpenseError(LedgerError, ValueError):
    """Submitted expense has a missing or malformed date or category."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invalid expense: {detail}")
