"""
Ledger Engine

The one place where budget rules are enforced. It owns the in-memory
ledger (expenses, categories, category ceilings, overall budget, income)
and every operation that reads or changes it.

GUARANTEES:
1. Admission control - an expense that would push its category past the
   ceiling is rejected and nothing changes
2. Aggregates are never stored - totals, balance and percentages are
   recomputed from the current state on every call
3. Mutations are atomic - a new LedgerState is built and swapped in, so a
   failed operation cannot leave a half-applied change
4. Every effective mutation notifies state-changed listeners (that is how
   the storage layer persists after each change)

Expenses can be addressed by position (as the list shows them) or by their
stable id. Prefer ids: positions shift when an earlier expense is deleted.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from budget_manager.config import LedgerSettings, get_settings
from budget_manager.ledger.errors import (
    BudgetExceededError,
    DuplicateCategoryError,
    ExpenseNotFoundError,
    InvalidExpenseError,
    SessionError,
    UnknownCategoryError,
)
from budget_manager.ledger.parsing import NumericInput, capped_percentage, parse_amount
from budget_manager.log import get_logger
from budget_manager.models import (
    ALL_CATEGORIES,
    BudgetBand,
    CategoryStatus,
    Expense,
    ExpenseDraft,
    LedgerSnapshot,
    LedgerState,
    LedgerSummary,
    SessionContext,
    SortOrder,
)

ExpenseRef = Union[int, UUID]
StateListener = Callable[[LedgerSnapshot], None]

OVERALL_ALERT = "Warning: You have reached or exceeded your budget limit!"


class LedgerEngine:
    """
    Expense ledger with per-category budget enforcement.

    Single-threaded and synchronous: each call runs to completion before
    the next, and a query issued after a mutation always sees it.
    """

    def __init__(
        self,
        session: SessionContext,
        state: Optional[LedgerState] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        """
        Open a ledger for an authenticated session.

        Args:
            session: Who owns this ledger. Must be authenticated.
            state: Initial state (e.g. hydrated from storage).
                   If None, the configured defaults are used.
            settings: Ledger settings. If None, loaded from the environment.

        Raises:
            SessionError: If the session is not authenticated.
        """
        if not session.authenticated:
            raise SessionError("A ledger can only be opened for a logged-in user")

        self._session = session
        self._settings = settings or get_settings().ledger
        self._state = state if state is not None else self.default_state(self._settings)
        self._warnings: dict[str, str] = {}
        self._listeners: list[StateListener] = []
        self._logger = get_logger(__name__).bind(user=session.username)

        self._logger.info(
            "ledger_opened",
            expense_count=len(self._state.expenses),
            category_count=len(self._state.categories),
        )

    @staticmethod
    def default_state(settings: LedgerSettings) -> LedgerState:
        """The state of a brand new ledger."""
        return LedgerState(
            categories=tuple(settings.default_categories_list),
            overall_budget=settings.default_overall_budget,
            income=settings.default_income,
        )

    @classmethod
    def from_snapshot(
        cls,
        session: SessionContext,
        snapshot: LedgerSnapshot,
        settings: Optional[LedgerSettings] = None,
    ) -> "LedgerEngine":
        """Rebuild an engine from a persisted snapshot."""
        return cls(session, state=snapshot.to_state(), settings=settings)

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def state(self) -> LedgerState:
        """Current state. Immutable, safe to hand out."""
        return self._state

    @property
    def expenses(self) -> tuple[Expense, ...]:
        """All expenses in canonical (insertion) order."""
        return self._state.expenses

    @property
    def categories(self) -> tuple[str, ...]:
        return self._state.categories

    @property
    def category_budgets(self) -> dict[str, Decimal]:
        return dict(self._state.category_budgets)

    @property
    def overall_budget(self) -> Decimal:
        return self._state.overall_budget

    @property
    def income(self) -> Decimal:
        return self._state.income

    @property
    def warnings(self) -> dict[str, str]:
        """Persistent per-category rejection warnings."""
        return dict(self._warnings)

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot.from_state(self._state)

    # =========================================================================
    # OBSERVERS
    # =========================================================================

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every mutation.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: LedgerState, event: str, **context) -> None:
        """Swap in ``new_state``, log the change and notify listeners."""
        self._state = new_state
        self._logger.info(event, **context)

        if not self._listeners:
            return

        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                # The in-memory change stands; the caller learns that
                # the listener (usually persistence) failed.
                self._logger.error(
                    "state_listener_failed",
                    trigger=event,
                    error=str(e),
                )
                raise

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def _index_of(self, ref: ExpenseRef) -> int:
        expenses = self._state.expenses
        if isinstance(ref, bool):
            raise ExpenseNotFoundError(ref)
        if isinstance(ref, int):
            if 0 <= ref < len(expenses):
                return ref
            raise ExpenseNotFoundError(ref)
        for index, expense in enumerate(expenses):
            if expense.id == ref:
                return index
        raise ExpenseNotFoundError(ref)

    def expense(self, ref: ExpenseRef) -> Expense:
        """Get an expense by position or id."""
        return self._state.expenses[self._index_of(ref)]

    def position_of(self, expense_id: UUID) -> int:
        """Current position of an expense in canonical order."""
        return self._index_of(expense_id)

    def has_category(self, name: str) -> bool:
        return name in self._state.categories

    def _require_category(self, name: str) -> None:
        if not self.has_category(name):
            raise UnknownCategoryError(name)

    @staticmethod
    def _as_draft(candidate: Union[ExpenseDraft, Mapping]) -> ExpenseDraft:
        """
        Turn submitted form data into a draft.

        The amount goes through ``parse_amount`` like every other number
        the user types, so it is rounded to cents and clamped to 0.

        Raises:
            InvalidExpenseError: If the date or category is unusable.
        """
        if isinstance(candidate, ExpenseDraft):
            return candidate
        data = dict(candidate)
        data["amount"] = parse_amount(data.get("amount"))
        try:
            return ExpenseDraft.model_validate(data)
        except ValidationError as e:
            raise InvalidExpenseError(str(e))

    # =========================================================================
    # EXPENSE MUTATIONS
    # =========================================================================

    def _admit(
        self,
        draft: ExpenseDraft,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        """
        Check ``draft`` against its category ceiling.

        ``exclude_id`` leaves one expense out of the running total (the
        expense being replaced by an update).

        Raises:
            BudgetExceededError: If the ceiling would be passed. The
                category's warning flag is raised before raising.
        """
        current = sum(
            (
                e.amount
                for e in self._state.expenses
                if e.category == draft.category and e.id != exclude_id
            ),
            Decimal("0"),
        )
        attempted = current + draft.amount
        ceiling = self.category_ceiling(draft.category)

        if attempted > ceiling:
            self._warnings[draft.category] = (
                f"Adding this expense would exceed your {draft.category} "
                f"budget of {ceiling:.2f} (spent {current:.2f})."
            )
            self._logger.warning(
                "expense_rejected",
                category=draft.category,
                amount=str(draft.amount),
                attempted_total=str(attempted),
                ceiling=str(ceiling),
            )
            raise BudgetExceededError(draft.category, attempted, ceiling)

    def add_expense(self, candidate: Union[ExpenseDraft, Mapping]) -> Expense:
        """
        Admit a new expense and append it to the ledger.

        Args:
            candidate: The expense to record ({amount, date, category}).

        Returns:
            The recorded expense, with its new id.

        Raises:
            InvalidExpenseError: If the date or category is malformed.
            UnknownCategoryError: If the category does not exist.
            BudgetExceededError: If the category ceiling would be passed.
                Nothing is recorded in that case.
        """
        draft = self._as_draft(candidate)
        self._require_category(draft.category)
        self._admit(draft)

        expense = Expense.from_draft(draft)
        self._commit(
            self._state.model_copy(update={"expenses": self._state.expenses + (expense,)}),
            "expense_added",
            expense_id=str(expense.id),
            category=expense.category,
            amount=str(expense.amount),
        )
        return expense

    def update_expense(
        self,
        ref: ExpenseRef,
        replacement: Union[ExpenseDraft, Mapping],
    ) -> Expense:
        """
        Replace an expense, keeping its id and position.

        When ``revalidate_on_update`` is on (the default) the replacement
        goes through the same ceiling check as a new expense, with the old
        amount taken out of the category total first.

        Raises:
            ExpenseNotFoundError: If ``ref`` matches no expense.
            UnknownCategoryError: If the new category does not exist.
            BudgetExceededError: If re-validation fails.
        """
        index = self._index_of(ref)
        current = self._state.expenses[index]
        draft = self._as_draft(replacement)
        self._require_category(draft.category)

        if self._settings.revalidate_on_update:
            self._admit(draft, exclude_id=current.id)

        updated = Expense.from_draft(draft, expense_id=current.id)
        expenses = list(self._state.expenses)
        expenses[index] = updated
        self._commit(
            self._state.model_copy(update={"expenses": tuple(expenses)}),
            "expense_updated",
            expense_id=str(updated.id),
            position=index,
            category=updated.category,
            old_amount=str(current.amount),
            new_amount=str(updated.amount),
        )
        return updated

    def delete_expense(self, ref: ExpenseRef) -> Expense:
        """
        Remove an expense. Later expenses move up one position.

        Raises:
            ExpenseNotFoundError: If ``ref`` matches no expense.
        """
        index = self._index_of(ref)
        removed = self._state.expenses[index]
        expenses = self._state.expenses[:index] + self._state.expenses[index + 1:]
        self._commit(
            self._state.model_copy(update={"expenses": expenses}),
            "expense_deleted",
            expense_id=str(removed.id),
            position=index,
            category=removed.category,
            amount=str(removed.amount),
        )
        return removed

    # =========================================================================
    # CATEGORY MUTATIONS
    # =========================================================================

    def add_category(self, name: str, *, strict: bool = False) -> bool:
        """
        Add a category at the end of the list.

        Blank names and names already present are a no-op (returns False).

        Raises:
            DuplicateCategoryError: Only with ``strict=True``, for a name
                that already exists.
        """
        name = (name or "").strip()
        if not name:
            return False
        if self.has_category(name):
            if strict:
                raise DuplicateCategoryError(name)
            return False

        self._commit(
            self._state.model_copy(update={"categories": self._state.categories + (name,)}),
            "category_added",
            category=name,
        )
        return True

    def delete_category(self, name: str) -> list[Expense]:
        """
        Delete a category together with its budget and all its expenses.

        All three removals land in one state swap. Deleting a category
        that does not exist changes nothing.

        Returns:
            The expenses removed by the cascade.
        """
        name = (name or "").strip()
        cascaded = [e for e in self._state.expenses if e.category == name]
        had_warning = self._warnings.pop(name, None) is not None

        if not self.has_category(name) and not cascaded:
            return []

        budgets = {c: v for c, v in self._state.category_budgets.items() if c != name}
        new_state = self._state.model_copy(update={
            "categories": tuple(c for c in self._state.categories if c != name),
            "category_budgets": budgets,
            "expenses": tuple(e for e in self._state.expenses if e.category != name),
        })
        self._commit(
            new_state,
            "category_deleted",
            category=name,
            cascaded_expenses=len(cascaded),
            cleared_warning=had_warning,
        )
        return cascaded

    def set_category_budget(self, name: str, ceiling: NumericInput) -> Decimal:
        """
        Set (or replace) the ceiling for a category.

        Returns:
            The ceiling actually stored (invalid input becomes 0).

        Raises:
            UnknownCategoryError: If the category does not exist.
        """
        self._require_category(name)
        value = parse_amount(ceiling)
        if self._state.category_budgets.get(name) == value:
            return value

        budgets = dict(self._state.category_budgets)
        budgets[name] = value
        self._commit(
            self._state.model_copy(update={"category_budgets": budgets}),
            "category_budget_set",
            category=name,
            ceiling=str(value),
        )
        return value

    # =========================================================================
    # OVERALL FIGURES
    # =========================================================================

    def set_overall_budget(self, value: NumericInput) -> Decimal:
        """Set the overall ceiling. Invalid or negative input becomes 0."""
        amount = parse_amount(value)
        if amount != self._state.overall_budget:
            self._commit(
                self._state.model_copy(update={"overall_budget": amount}),
                "overall_budget_set",
                overall_budget=str(amount),
            )
        return amount

    def set_income(self, value: NumericInput) -> Decimal:
        """Set income. Invalid or negative input becomes 0."""
        amount = parse_amount(value)
        if amount != self._state.income:
            self._commit(
                self._state.model_copy(update={"income": amount}),
                "income_set",
                income=str(amount),
            )
        return amount

    def clear_warning(self, category: str) -> bool:
        """Dismiss a category's rejection warning. Returns False if none."""
        return self._warnings.pop(category, None) is not None

    # =========================================================================
    # AGGREGATE QUERIES
    # =========================================================================

    def total_expenses(self) -> Decimal:
        return sum((e.amount for e in self._state.expenses), Decimal("0"))

    def balance(self) -> Decimal:
        """Income minus total expenses (may be negative)."""
        return self._state.income - self.total_expenses()

    def category_total(self, name: str) -> Decimal:
        return sum(
            (e.amount for e in self._state.expenses if e.category == name),
            Decimal("0"),
        )

    def category_ceiling(self, name: str) -> Decimal:
        """Explicit ceiling, or the default one when none was set."""
        return self._state.category_budgets.get(
            name, self._settings.default_category_ceiling
        )

    def category_percentage(self, name: str) -> Decimal:
        return capped_percentage(self.category_total(name), self.category_ceiling(name))

    def overall_percentage(self) -> Decimal:
        return capped_percentage(self.total_expenses(), self._state.overall_budget)

    def is_over_overall_budget(self) -> bool:
        return self.total_expenses() >= self._state.overall_budget

    def overall_alert(self) -> Optional[str]:
        return OVERALL_ALERT if self.is_over_overall_budget() else None

    def _band_for(self, percentage: Decimal) -> BudgetBand:
        if percentage >= self._settings.limit_threshold:
            return BudgetBand.RED
        if percentage >= self._settings.warning_threshold:
            return BudgetBand.ORANGE
        return BudgetBand.GREEN

    def category_band(self, name: str) -> BudgetBand:
        return self._band_for(self.category_percentage(name))

    def category_status(self, name: str) -> CategoryStatus:
        """Everything the dashboard shows for one category."""
        percentage = self.category_percentage(name)
        band = self._band_for(percentage)

        message = None
        if band is BudgetBand.RED:
            message = f"Warning: You have reached your budget limit for {name}!"
        elif band is BudgetBand.ORANGE:
            message = f"Warning: You are nearing your budget limit for {name}."

        return CategoryStatus(
            category=name,
            total=self.category_total(name),
            ceiling=self.category_ceiling(name),
            has_explicit_budget=name in self._state.category_budgets,
            percentage=percentage,
            band=band,
            message=message,
        )

    def totals_by_category(self) -> dict[str, Decimal]:
        """Spend per category, for categories that have expenses."""
        totals: dict[str, Decimal] = {}
        for expense in self._state.expenses:
            totals[expense.category] = totals.get(expense.category, Decimal("0")) + expense.amount
        return totals

    def used_categories(self) -> list[str]:
        """Categories that appear on at least one expense, first-seen order."""
        return list(self.totals_by_category())

    def summary(self) -> LedgerSummary:
        total = self.total_expenses()
        return LedgerSummary(
            income=self._state.income,
            overall_budget=self._state.overall_budget,
            total_expenses=total,
            balance=self._state.income - total,
            overall_percentage=self.overall_percentage(),
            is_over_budget=self.is_over_overall_budget(),
            alert=self.overall_alert(),
            expense_count=len(self._state.expenses),
            categories=[self.category_status(c) for c in self._state.categories],
            warnings=self.warnings,
        )

    # =========================================================================
    # VIEWS (never reorder the canonical sequence)
    # =========================================================================

    def filtered_expenses(self, category: str = ALL_CATEGORIES) -> list[Expense]:
        """Expenses in canonical order, limited to ``category`` unless "All"."""
        if category == ALL_CATEGORIES:
            return list(self._state.expenses)
        return [e for e in self._state.expenses if e.category == category]

    def sorted_expenses(self, order: Union[SortOrder, str] = SortOrder.DESC) -> list[Expense]:
        """Expenses sorted by amount. Ties keep canonical order."""
        return self.view(ALL_CATEGORIES, order)

    def view(
        self,
        category: str = ALL_CATEGORIES,
        order: Union[SortOrder, str] = SortOrder.DESC,
    ) -> list[Expense]:
        """Filtered then sorted projection, as the expense list shows it."""
        order = SortOrder(order)
        expenses = self.filtered_expenses(category)
        return sorted(
            expenses,
            key=lambda e: e.amount,
            reverse=order is SortOrder.DESC,
        )
