"""Tests for CSV export."""

import csv
import io
from datetime import date
from decimal import Decimal

from budget_manager.models import ExpenseDraft, SortOrder
from budget_manager.services.export import CSV_HEADER, export_expenses_csv, write_expenses_csv


def _add(engine, amount, category, day):
    engine.add_expense(
        ExpenseDraft(amount=Decimal(amount), date=date(2024, 3, day), category=category)
    )


class TestCsvExport:
    """Tests for the expense CSV."""

    def test_header_only_when_empty(self):
        assert export_expenses_csv([]) == "Date,Category,Amount\n"

    def test_rows_in_given_order(self, engine):
        _add(engine, "12.5", "Food", 1)
        _add(engine, "40", "Rent", 3)

        text = export_expenses_csv(engine.expenses)

        assert text.splitlines() == [
            "Date,Category,Amount",
            "2024-03-01,Food,12.50",
            "2024-03-03,Rent,40.00",
        ]

    def test_view_can_be_exported(self, engine):
        _add(engine, "5", "Food", 1)
        _add(engine, "9", "Food", 2)

        rows = list(csv.reader(io.StringIO(export_expenses_csv(engine.view("Food", SortOrder.DESC)))))

        assert rows[0] == CSV_HEADER
        assert [row[2] for row in rows[1:]] == ["9.00", "5.00"]

    def test_category_with_comma_is_quoted(self, engine):
        engine.add_category("Food, Drinks")
        _add(engine, "3", "Food, Drinks", 4)

        rows = list(csv.reader(io.StringIO(export_expenses_csv(engine.expenses))))

        assert rows[1] == ["2024-03-04", "Food, Drinks", "3.00"]

    def test_write_to_file(self, engine, tmp_path):
        _add(engine, "7", "Transport", 5)

        path = write_expenses_csv(engine.expenses, tmp_path / "out" / "expenses.csv")

        assert path.read_text(encoding="utf-8").endswith("2024-03-05,Transport,7.00\n")
