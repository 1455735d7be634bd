"""
Ledger Snapshot Persistence

Reads the ledger out of a key-value store at startup and writes it back
after every change (write-through). The engine knows nothing about this:
``attach`` subscribes the store to the engine's state-changed hook.

Stored keys (values are JSON):
    expenses          list of {id, amount, date, category}
    budgetLimit       overall ceiling
    income            income
    categories        ordered list of unique names
    categoryBudgets   {category: ceiling}

Loading is forgiving, because snapshots written by older versions of the
app did not keep every invariant. Each repair is logged as a warning:
- a missing or malformed key falls back to its default
- an unreadable expense entry is dropped
- an expense naming an unknown category adds that category
- a budget for an unknown category is dropped
- missing or duplicate expense ids are regenerated
"""

from typing import Any, Callable, Optional
from uuid import uuid4

from pydantic import ValidationError

from budget_manager.config import LedgerSettings, get_settings
from budget_manager.ledger.errors import InvalidNumericInputError
from budget_manager.ledger.parsing import parse_amount
from budget_manager.log import get_logger
from budget_manager.models import Expense, LedgerSnapshot
from budget_manager.services.storage.interface import KeyValueStore

EXPENSES_KEY = "expenses"
BUDGET_LIMIT_KEY = "budgetLimit"
INCOME_KEY = "income"
CATEGORIES_KEY = "categories"
CATEGORY_BUDGETS_KEY = "categoryBudgets"

SNAPSHOT_KEYS = (
    EXPENSES_KEY,
    BUDGET_LIMIT_KEY,
    INCOME_KEY,
    CATEGORIES_KEY,
    CATEGORY_BUDGETS_KEY,
)


class LedgerSnapshotStore:
    """Load and save ledger snapshots through a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger
        self._logger = get_logger(__name__)

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def has_snapshot(self) -> bool:
        return any(key in self._store for key in SNAPSHOT_KEYS)

    # =========================================================================
    # SAVE
    # =========================================================================

    def save(self, snapshot: LedgerSnapshot) -> None:
        """Write every snapshot key."""
        self._store.set_many(snapshot.to_store_items())
        self._logger.debug(
            "snapshot_saved",
            expense_count=len(snapshot.expenses),
            category_count=len(snapshot.categories),
        )

    def __call__(self, snapshot: LedgerSnapshot) -> None:
        self.save(snapshot)

    def attach(self, engine) -> Callable[[], None]:
        """
        Persist after every change ``engine`` makes.

        Returns the unsubscribe function.
        """
        return engine.subscribe(self.save)

    def clear(self) -> None:
        for key in SNAPSHOT_KEYS:
            self._store.remove(key)
        self._logger.info("snapshot_cleared")

    # =========================================================================
    # LOAD
    # =========================================================================

    def load(self) -> LedgerSnapshot:
        """
        Read the stored snapshot, falling back to defaults key by key.

        The result always satisfies the ledger invariants, so it can be
        handed straight to ``LedgerEngine.from_snapshot``.
        """
        categories = self._load_categories()
        expenses = self._load_expenses(categories)
        budgets = self._load_budgets(categories)

        snapshot = LedgerSnapshot(
            expenses=expenses,
            budget_limit=self._load_number(
                BUDGET_LIMIT_KEY, self._settings.default_overall_budget
            ),
            income=self._load_number(INCOME_KEY, self._settings.default_income),
            categories=categories,
            category_budgets=budgets,
        )
        self._logger.info(
            "snapshot_loaded",
            expense_count=len(snapshot.expenses),
            category_count=len(snapshot.categories),
        )
        return snapshot

    def _repair(self, reason: str, **context: Any) -> None:
        self._logger.warning("snapshot_repaired", reason=reason, **context)

    def _load_number(self, key: str, default):
        raw = self._store.get(key)
        if raw is None:
            return default
        try:
            return parse_amount(raw, strict=True)
        except InvalidNumericInputError as e:
            self._repair("invalid_number", key=key, error=e.reason)
            return parse_amount(raw)

    def _load_categories(self) -> list[str]:
        raw = self._store.get(CATEGORIES_KEY)
        if raw is None:
            return list(self._settings.default_categories_list)
        if not isinstance(raw, list):
            self._repair("categories_not_a_list", value_type=type(raw).__name__)
            return list(self._settings.default_categories_list)

        categories: list[str] = []
        for item in raw:
            name = item.strip() if isinstance(item, str) else ""
            if not name:
                self._repair("blank_category_dropped", value=repr(item))
            elif name in categories:
                self._repair("duplicate_category_dropped", category=name)
            else:
                categories.append(name)
        return categories

    def _load_expenses(self, categories: list[str]) -> list[Expense]:
        raw = self._store.get(EXPENSES_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            self._repair("expenses_not_a_list", value_type=type(raw).__name__)
            return []

        expenses: list[Expense] = []
        seen_ids = set()
        for position, item in enumerate(raw):
            if not isinstance(item, dict):
                self._repair("expense_dropped", position=position, error="not an object")
                continue

            data = dict(item)
            try:
                data["amount"] = parse_amount(data.get("amount"), strict=True)
                if data.get("id") in (None, ""):
                    data.pop("id", None)
                expense = Expense.model_validate(data)
            except (InvalidNumericInputError, ValidationError) as e:
                self._repair("expense_dropped", position=position, error=str(e))
                continue

            if expense.id in seen_ids:
                self._repair("duplicate_expense_id", position=position, expense_id=str(expense.id))
                expense = Expense.from_draft(expense.to_draft(), expense_id=uuid4())
            seen_ids.add(expense.id)

            if expense.category not in categories:
                self._repair("unknown_category_added", category=expense.category)
                categories.append(expense.category)

            expenses.append(expense)
        return expenses

    def _load_budgets(self, categories: list[str]) -> dict:
        raw = self._store.get(CATEGORY_BUDGETS_KEY)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            self._repair("budgets_not_an_object", value_type=type(raw).__name__)
            return {}

        budgets = {}
        for name, ceiling in raw.items():
            if name not in categories:
                self._repair("budget_for_unknown_category_dropped", category=name)
                continue
            try:
                budgets[name] = parse_amount(ceiling, strict=True)
            except InvalidNumericInputError as e:
                self._repair("invalid_budget_clamped", category=name, error=e.reason)
                budgets[name] = parse_amount(ceiling)
        return budgets
