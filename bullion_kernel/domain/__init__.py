"""
Pure domain layer.

Data objects and value helpers with NO dependencies on the ORM, the
database or I/O.  Time enters only through an injected Clock.
"""

from bullion_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from bullion_kernel.domain.entities import LotAllocation, Lot, Transaction
from bullion_kernel.domain.values import (
    CLOSURE_EPSILON,
    SHORTFALL_EPSILON,
    TransactionKind,
    safe_divide,
    to_day,
    to_decimal,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Lot",
    "LotAllocation",
    "Transaction",
    "TransactionKind",
    "CLOSURE_EPSILON",
    "SHORTFALL_EPSILON",
    "safe_divide",
    "to_day",
    "to_decimal",
]
