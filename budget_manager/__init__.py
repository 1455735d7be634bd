"""
Personal Budget Manager - Source Package

Record everyday expenses against an income, an overall budget and
per-category budgets, and see at a glance where the money went.

DESIGN PRINCIPLES:
1. Budget rules live in one place (the ledger engine)
2. Reject, don't clip - an expense over its category ceiling is refused
3. Totals are always recomputed, never stored
4. Every change is persisted immediately
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Budget Manager Team"
