"""
Typed exception hierarchy for the bullion ledger.

Every error has a typed class, a machine-readable ``code`` class
attribute, and carries its context as attributes rather than only in the
message string.  Callers catch by type and read the attributes:

    try:
        ledger.record_sale(...)
    except InsufficientStockError as e:
        prompt_user(f"Only {e.available} g on hand")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BullionLedgerError (base)
    |
    +-- StockError
    |   +-- InsufficientStockError
    |
    +-- ValidationError
    |   +-- MissingFieldError
    |   +-- NonPositiveValueError
    |   +-- NegativeTaxRateError
    |   +-- LockedPeriodError
    |   +-- UnknownTransactionKindError
    |
    +-- PersistenceError
        +-- SnapshotFormatError

===============================================================================
ERROR CODES
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|------------------------------------------
Stock        | INSUFFICIENT_STOCK        | Sale exceeds total remaining lot quantity
-------------|---------------------------|------------------------------------------
Validation   | MISSING_FIELD             | Required capture field is empty
             | NON_POSITIVE_VALUE        | Quantity or rate <= 0
             | NEGATIVE_TAX_RATE         | Tax rate < 0
             | LOCKED_PERIOD             | Date on or before the lock date
             | UNKNOWN_TRANSACTION_KIND  | Kind is neither PURCHASE nor SALE
-------------|---------------------------|------------------------------------------
Persistence  | SNAPSHOT_FORMAT           | Stored snapshot cannot be decoded

Division by zero in analytics is never raised; reducers return zero.
"""

from decimal import Decimal


class BullionLedgerError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "BULLION_LEDGER_ERROR"


# Stock-related exceptions


class StockError(BullionLedgerError):
    """Base exception for stock availability errors."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """
    Requested sale quantity exceeds the remaining lot quantity.

    The sale is rejected as a whole; no lot or transaction is touched.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock: requested {requested} g, available {available} g"
        )


# Validation exceptions


class ValidationError(BullionLedgerError):
    """Base exception for rejected capture input."""

    code: str = "VALIDATION_ERROR"


class MissingFieldError(ValidationError):
    """A required field was not supplied."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing required field: {field_name}")


class NonPositiveValueError(ValidationError):
    """Quantity or rate is zero or negative."""

    code: str = "NON_POSITIVE_VALUE"

    def __init__(self, field_name: str, value: Decimal):
        self.field_name = field_name
        self.value = value
        super().__init__(f"{field_name} must be positive, got {value}")


class NegativeTaxRateError(ValidationError):
    """Tax rate is negative."""

    code: str = "NEGATIVE_TAX_RATE"

    def __init__(self, tax_rate: Decimal):
        self.tax_rate = tax_rate
        super().__init__(f"Tax rate cannot be negative, got {tax_rate}")


class LockedPeriodError(ValidationError):
    """Transaction date falls on or before the configured lock date."""

    code: str = "LOCKED_PERIOD"

    def __init__(self, transaction_date: str, lock_date: str):
        self.transaction_date = transaction_date
        self.lock_date = lock_date
        super().__init__(
            f"Date locked: cannot record {transaction_date}, "
            f"books are locked through {lock_date}"
        )


class UnknownTransactionKindError(ValidationError):
    """Transaction kind is not recognised."""

    code: str = "UNKNOWN_TRANSACTION_KIND"

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown transaction kind: {kind!r}")


# Persistence exceptions


class PersistenceError(BullionLedgerError):
    """Base exception for snapshot storage errors."""

    code: str = "PERSISTENCE_ERROR"


class SnapshotFormatError(PersistenceError):
    """A stored snapshot could not be decoded into ledger entities."""

    code: str = "SNAPSHOT_FORMAT"

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Malformed snapshot in {source}: {detail}")
