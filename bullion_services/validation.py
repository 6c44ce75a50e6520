"""
bullion_services.validation -- Capture-side transaction candidates and their checks.

Responsibility:
    Define ``TransactionDraft`` (a loosely-typed candidate as produced by a
    form or an upstream extractor) and ``validate_draft``, which turns it
    into a typed ``ValidatedDraft`` or raises a ``ValidationError``.

Architecture position:
    Services -- called by LedgerService before any state is touched.

Invariants enforced:
    - Date, kind, counterparty, quantity and rate are required.
    - Quantity and rate are strictly positive; tax rate is non-negative.
    - Lock date: a transaction dated on or before the lock date is refused,
      for purchases and sales alike.

Failure modes:
    - MissingFieldError, UnknownTransactionKindError, NonPositiveValueError,
      NegativeTaxRateError, LockedPeriodError.
    - ValidationError for a field that is present but unreadable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from bullion_kernel.domain.values import ZERO, TransactionKind, to_day, to_decimal
from bullion_kernel.exceptions import (
    LockedPeriodError,
    MissingFieldError,
    NegativeTaxRateError,
    NonPositiveValueError,
    UnknownTransactionKindError,
    ValidationError,
)
from bullion_kernel.logging_config import get_logger

logger = get_logger("services.validation")


@dataclass(frozen=True)
class TransactionDraft:
    """Unvalidated transaction candidate.  Any field may be missing."""

    transaction_date: date | str | None
    kind: TransactionKind | str | None
    counterparty: str | None
    quantity: Any
    unit_rate: Any
    tax_rate: Any = None


@dataclass(frozen=True)
class ValidatedDraft:
    """A draft that passed every check, with typed fields."""

    transaction_date: date
    kind: TransactionKind
    counterparty: str
    quantity: Decimal
    unit_rate: Decimal
    tax_rate: Decimal


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_kind(value: TransactionKind | str) -> TransactionKind:
    if isinstance(value, TransactionKind):
        return value
    try:
        return TransactionKind(str(value).strip().upper())
    except ValueError:
        raise UnknownTransactionKindError(str(value)) from None


def _parse_number(field_name: str, value: Any) -> Decimal:
    try:
        number = to_decimal(value)
    except ValueError:
        raise ValidationError(f"{field_name} is not a number: {value!r}") from None
    if not number.is_finite():
        raise ValidationError(f"{field_name} is not a finite number: {value!r}")
    return number


def validate_draft(
    draft: TransactionDraft,
    lock_date: date | None = None,
    default_tax_rate: Decimal = Decimal("3"),
) -> ValidatedDraft:
    """
    Check a draft and return its typed form.

    Args:
        draft: The candidate.
        lock_date: Books are closed through this date, inclusive.
        default_tax_rate: Used when the draft carries no tax rate.

    Raises:
        ValidationError (subclass): on the first failed check.
    """
    for field_name in ("transaction_date", "kind", "counterparty", "quantity", "unit_rate"):
        if _is_blank(getattr(draft, field_name)):
            raise MissingFieldError(field_name)

    kind = _parse_kind(draft.kind)

    try:
        day = to_day(draft.transaction_date)
    except ValueError:
        raise ValidationError(
            f"transaction_date is not an ISO date: {draft.transaction_date!r}"
        ) from None

    quantity = _parse_number("quantity", draft.quantity)
    if quantity <= ZERO:
        raise NonPositiveValueError("quantity", quantity)

    unit_rate = _parse_number("unit_rate", draft.unit_rate)
    if unit_rate <= ZERO:
        raise NonPositiveValueError("unit_rate", unit_rate)

    if _is_blank(draft.tax_rate):
        tax_rate = default_tax_rate
    else:
        tax_rate = _parse_number("tax_rate", draft.tax_rate)
    if tax_rate < ZERO:
        raise NegativeTaxRateError(tax_rate)

    if lock_date is not None and day <= lock_date:
        logger.warning("transaction_in_locked_period", extra={
            "transaction_date": day.isoformat(),
            "lock_date": lock_date.isoformat(),
        })
        raise LockedPeriodError(day.isoformat(), lock_date.isoformat())

    return ValidatedDraft(
        transaction_date=day,
        kind=kind,
        counterparty=str(draft.counterparty).strip(),
        quantity=quantity,
        unit_rate=unit_rate,
        tax_rate=tax_rate,
    )
