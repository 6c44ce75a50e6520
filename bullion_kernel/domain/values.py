"""
Values -- numeric and calendar primitives shared by every layer.

Responsibility:
    Decimal coercion, the fixed quantity tolerances, the transaction kind
    enumeration, and ISO calendar-day parsing.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Imported by entities, engines and
    services alike.

Invariants enforced:
    - Quantities and amounts are always ``Decimal`` (never float).  Floats
      are converted through ``str()`` so that ``0.1`` stays ``0.1``.
    - CLOSURE_EPSILON (1e-4) decides when a lot is drained; SHORTFALL_EPSILON
      (1e-3) decides when a sale is under-covered.  Both are fixed.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Remaining quantity below this snaps to zero and closes the lot.
CLOSURE_EPSILON = Decimal("0.0001")

# Uncovered sale quantity above this rejects the sale.
SHORTFALL_EPSILON = Decimal("0.001")


class TransactionKind(str, Enum):
    """Direction of a ledger transaction."""

    PURCHASE = "PURCHASE"
    SALE = "SALE"


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric input to Decimal.

    Raises:
        ValueError: If the value cannot be read as a number.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid numeric value: {value!r}") from e


def to_day(value: date | str) -> date:
    """Coerce an ISO ``YYYY-MM-DD`` string (or date) to a calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Cannot parse date from {value!r}")


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning zero when the denominator is zero."""
    if denominator == ZERO:
        return ZERO
    return numerator / denominator
