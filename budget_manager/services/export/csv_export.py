"""
CSV Export

Serializes a read-only view of the expense sequence. The exporter takes
expenses, not the engine, so it cannot change the ledger.
"""

import csv
import io
from collections.abc import Iterable
from pathlib import Path

from budget_manager.models import Expense

CSV_HEADER = ["Date", "Category", "Amount"]


def export_expenses_csv(expenses: Iterable[Expense]) -> str:
    """
    Render expenses as CSV text, one row per expense, in the given order.

    Amounts always carry two decimals.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for expense in expenses:
        writer.writerow([
            expense.date.isoformat(),
            expense.category,
            f"{expense.amount:.2f}",
        ])
    return buffer.getvalue()


def write_expenses_csv(expenses: Iterable[Expense], path: Path) -> Path:
    """Write the CSV export to ``path`` and return it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_expenses_csv(expenses), encoding="utf-8")
    return path
