"""
Numeric Input Boundary

User-typed amounts, budgets and income all pass through ``parse_amount``
before they reach the ledger.

POLICY: anything that does not parse, is not finite, or is negative is
coerced to 0 (what the budget form has always done). Pass ``strict=True``
to get an InvalidNumericInputError instead.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from budget_manager.ledger.errors import InvalidNumericInputError

NumericInput = Union[str, int, float, Decimal, None]

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: NumericInput, *, strict: bool = False) -> Decimal:
    """
    Parse a user-supplied money value into a non-negative Decimal.

    Returns the value rounded to cents. See module docstring for the
    invalid-input policy.
    """
    if isinstance(raw, bool):
        return _reject(raw, "booleans are not amounts", strict)

    if raw is None:
        return _reject(raw, "no value given", strict)

    try:
        if isinstance(raw, float):
            # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
            value = Decimal(str(raw))
        elif isinstance(raw, str):
            text = raw.strip().replace(",", "")
            if not text:
                return _reject(raw, "empty input", strict)
            value = Decimal(text)
        else:
            value = Decimal(raw)
    except (InvalidOperation, ValueError, TypeError):
        return _reject(raw, "not a number", strict)

    if not value.is_finite():
        return _reject(raw, "not a finite number", strict)
    if value < 0:
        return _reject(raw, "negative values are not allowed", strict)

    return round2(value)


def _reject(raw: object, reason: str, strict: bool) -> Decimal:
    if strict:
        raise InvalidNumericInputError(raw, reason)
    return Decimal("0.00")


def capped_percentage(part: Decimal, whole: Decimal) -> Decimal:
    """
    ``min(100, round2(part / whole * 100))``.

    A zero ``whole`` gives 100 when anything was spent, otherwise 0.
    """
    if whole == 0:
        return HUNDRED if part > 0 else Decimal("0")
    return min(HUNDRED, round2(part / whole * HUNDRED))
