"""
Core Data Models for Personal Budget Manager

These models define the strict schemas for everything the ledger holds.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for the key-value store
4. Give the presentation layer ready-made summaries

DESIGN DECISION: Money is Decimal everywhere inside the process. It only
becomes a JSON number at the storage boundary (see field serializers),
because the persisted snapshot shape stores plain numbers.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BudgetBand(str, Enum):
    """
    Discretized spend level of a category.

    Drives both progress-bar styling and the warning text shown to the user.
    """
    GREEN = "green"    # below the warning threshold
    ORANGE = "orange"  # warning threshold up to (not including) the limit
    RED = "red"        # limit reached


class SortOrder(str, Enum):
    """Sort direction for amount-ordered expense views."""
    ASC = "asc"
    DESC = "desc"


ALL_CATEGORIES = "All"


# =============================================================================
# EXPENSES
# =============================================================================

class ExpenseDraft(BaseModel):
    """
    A candidate expense submitted for admission.

    It has no identity yet: the ledger assigns one when it accepts the draft.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount spent"
    )
    date: dt.date = Field(
        ...,
        description="Day the money was spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Name of an existing category"
    )

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)


class Expense(ExpenseDraft):
    """
    A recorded expense.

    The id is stable for the life of the expense; its position in the
    ledger is not (positions shift when earlier expenses are deleted).
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Stable expense identifier"
    )

    @classmethod
    def from_draft(cls, draft: ExpenseDraft, expense_id: Optional[UUID] = None) -> "Expense":
        """Promote a draft, keeping ``expense_id`` when one is given."""
        data = draft.model_dump()
        if expense_id is not None:
            data["id"] = expense_id
        return cls(**data)

    def to_draft(self) -> ExpenseDraft:
        return ExpenseDraft(amount=self.amount, date=self.date, category=self.category)


# =============================================================================
# LEDGER STATE
# =============================================================================

class LedgerState(BaseModel):
    """
    The aggregate root held by the ledger engine.

    Derived figures (totals, balance, percentages) are deliberately absent:
    they are always recomputed from this state, never stored.
    """
    model_config = ConfigDict(frozen=True)

    expenses: tuple[Expense, ...] = Field(default_factory=tuple)
    categories: tuple[str, ...] = Field(default_factory=tuple)
    category_budgets: dict[str, Decimal] = Field(default_factory=dict)
    overall_budget: Decimal = Field(default=Decimal("0"), ge=0)
    income: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator('categories')
    @classmethod
    def validate_categories(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Categories must be non-blank and unique."""
        if any(not name.strip() for name in v):
            raise ValueError("Category names cannot be blank")
        if len(set(v)) != len(v):
            raise ValueError("Category names must be unique")
        return v

    @field_validator('category_budgets')
    @classmethod
    def validate_budgets(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        if any(ceiling < 0 for ceiling in v.values()):
            raise ValueError("Category budgets cannot be negative")
        return v

    @model_validator(mode='after')
    def validate_references(self) -> 'LedgerState':
        """Every expense and every budget entry must name a known category."""
        known = set(self.categories)
        unknown_budgets = sorted(set(self.category_budgets) - known)
        if unknown_budgets:
            raise ValueError(f"Budgets reference unknown categories: {unknown_budgets}")
        unknown_expenses = sorted({e.category for e in self.expenses} - known)
        if unknown_expenses:
            raise ValueError(f"Expenses reference unknown categories: {unknown_expenses}")
        ids = [e.id for e in self.expenses]
        if len(set(ids)) != len(ids):
            raise ValueError("Expense ids must be unique")
        return self


class LedgerSnapshot(BaseModel):
    """
    Serialized copy of a ledger, in the shape the key-value store holds.

    Field aliases are the store keys, so ``model_dump(by_alias=True,
    mode="json")`` yields exactly the key/value pairs to persist.
    """
    model_config = ConfigDict(populate_by_name=True)

    expenses: list[Expense] = Field(default_factory=list)
    budget_limit: Decimal = Field(default=Decimal("0"), ge=0, alias="budgetLimit")
    income: Decimal = Field(default=Decimal("0"), ge=0)
    categories: list[str] = Field(default_factory=list)
    category_budgets: dict[str, Decimal] = Field(
        default_factory=dict,
        alias="categoryBudgets",
    )

    @field_serializer("budget_limit", "income", when_used="json")
    def _decimal_as_number(self, value: Decimal) -> float:
        return float(value)

    @field_serializer("category_budgets", when_used="json")
    def _budgets_as_numbers(self, value: dict[str, Decimal]) -> dict[str, float]:
        return {name: float(ceiling) for name, ceiling in value.items()}

    @classmethod
    def from_state(cls, state: LedgerState) -> "LedgerSnapshot":
        return cls(
            expenses=list(state.expenses),
            budget_limit=state.overall_budget,
            income=state.income,
            categories=list(state.categories),
            category_budgets=dict(state.category_budgets),
        )

    def to_state(self) -> LedgerState:
        """Rebuild the in-memory state; raises ValueError if inconsistent."""
        return LedgerState(
            expenses=tuple(self.expenses),
            categories=tuple(self.categories),
            category_budgets=dict(self.category_budgets),
            overall_budget=self.budget_limit,
            income=self.income,
        )

    def to_store_items(self) -> dict[str, object]:
        """Get the key/value pairs to write to the store."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# DERIVED VIEWS (for the presentation layer)
# =============================================================================

class CategoryStatus(BaseModel):
    """Spend position of one category against its ceiling."""

    category: str
    total: Decimal = Field(..., ge=0)
    ceiling: Decimal = Field(..., ge=0)
    has_explicit_budget: bool = Field(
        ...,
        description="False when the default ceiling applies"
    )
    percentage: Decimal = Field(..., ge=0, le=100)
    band: BudgetBand
    message: Optional[str] = Field(
        default=None,
        description="Warning text for ORANGE/RED bands"
    )

    @property
    def remaining(self) -> Decimal:
        """Headroom before the ceiling (negative if already past it)."""
        return self.ceiling - self.total


class LedgerSummary(BaseModel):
    """Dashboard roll-up of the whole ledger."""

    income: Decimal
    overall_budget: Decimal
    total_expenses: Decimal
    balance: Decimal
    overall_percentage: Decimal = Field(..., ge=0, le=100)
    is_over_budget: bool
    alert: Optional[str] = None
    expense_count: int = Field(..., ge=0)
    categories: list[CategoryStatus] = Field(default_factory=list)
    warnings: dict[str, str] = Field(
        default_factory=dict,
        description="Persistent per-category rejection warnings"
    )
