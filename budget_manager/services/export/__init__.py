"""Export package."""

from budget_manager.services.export.csv_export import (
    CSV_HEADER,
    export_expenses_csv,
    write_expenses_csv,
)

__all__ = ["CSV_HEADER", "export_expenses_csv", "write_expenses_csv"]
