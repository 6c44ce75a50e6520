"""
Ledger entities -- the two durable records of the bullion ledger.

Responsibility:
    Define the ``Transaction`` (purchase or sale, immutable once created),
    the ``Lot`` (cost batch opened by a purchase and drained by sales) and
    the ``LotAllocation`` record linking a sale to the lots that funded it.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.
    May only import kernel/domain/values and kernel/logging_config.

Invariants enforced:
    - Transaction derived amounts: taxable = quantity * unit_rate,
      tax = taxable * tax_rate / 100, gross = taxable + tax,
      profit = taxable - cogs (sales only).
    - Positive quantity and rate: Transaction.__post_init__ rejects <= 0.
    - Lot bounds: 0 <= remaining_quantity <= original_quantity.
    - One lot per purchase: Lot.open_from() copies the purchase id.

Failure modes:
    - ValueError from Transaction.__post_init__ on non-positive quantity or
      rate, or when a purchase carries cogs.
    - ValueError from Lot.__post_init__ when remaining is out of bounds.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from bullion_kernel.domain.values import (
    CLOSURE_EPSILON,
    HUNDRED,
    ZERO,
    TransactionKind,
)
from bullion_kernel.logging_config import get_logger

logger = get_logger("domain.entities")


@dataclass(frozen=True, slots=True)
class LotAllocation:
    """Quantity a sale drew from one lot, at that lot's unit cost."""

    lot_id: str
    quantity: Decimal
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    Immutable purchase or sale record.

    Sales carry ``cogs``, ``profit`` and the ordered ``allocations`` that
    funded them; these are fixed at creation and never recomputed.
    Purchases carry ``None`` for cogs/profit and no allocations.
    """

    id: str
    transaction_date: date
    kind: TransactionKind
    counterparty: str
    quantity: Decimal
    unit_rate: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    taxable_amount: Decimal
    gross_amount: Decimal
    cogs: Decimal | None = None
    profit: Decimal | None = None
    allocations: tuple[LotAllocation, ...] = ()

    def __post_init__(self) -> None:
        if self.quantity <= ZERO:
            raise ValueError(f"Transaction quantity must be positive, got {self.quantity}")
        if self.unit_rate <= ZERO:
            raise ValueError(f"Transaction rate must be positive, got {self.unit_rate}")
        if self.kind is TransactionKind.PURCHASE and self.cogs is not None:
            raise ValueError("Purchases do not carry cost of goods sold")

    @property
    def is_sale(self) -> bool:
        return self.kind is TransactionKind.SALE

    @property
    def is_purchase(self) -> bool:
        return self.kind is TransactionKind.PURCHASE

    @classmethod
    def create(
        cls,
        transaction_id: str,
        transaction_date: date,
        kind: TransactionKind,
        counterparty: str,
        quantity: Decimal,
        unit_rate: Decimal,
        tax_rate: Decimal,
        cogs: Decimal | None = None,
        allocations: tuple[LotAllocation, ...] = (),
    ) -> Transaction:
        """Factory computing the derived tax, gross and profit amounts.

        Postconditions:
            taxable_amount == quantity * unit_rate and
            profit == taxable_amount - cogs when cogs is given.
        """
        taxable = quantity * unit_rate
        tax = taxable * tax_rate / HUNDRED
        profit = taxable - cogs if cogs is not None else None
        return cls(
            id=transaction_id,
            transaction_date=transaction_date,
            kind=kind,
            counterparty=counterparty,
            quantity=quantity,
            unit_rate=unit_rate,
            tax_rate=tax_rate,
            tax_amount=tax,
            taxable_amount=taxable,
            gross_amount=taxable + tax,
            cogs=cogs,
            profit=profit,
            allocations=tuple(allocations),
        )


@dataclass(slots=True)
class Lot:
    """
    Cost batch opened by one purchase.

    ``original_quantity`` and ``unit_cost`` never change.  Only sale
    allocations touch the lot: they decrement ``remaining_quantity``,
    add to ``cumulative_revenue`` and set ``closed_date`` once drained.
    """

    id: str
    lot_date: date
    original_quantity: Decimal
    remaining_quantity: Decimal
    unit_cost: Decimal
    closed_date: date | None = None
    cumulative_revenue: Decimal = field(default=ZERO)

    def __post_init__(self) -> None:
        if self.original_quantity <= ZERO:
            logger.error("lot_invalid_quantity", extra={
                "lot_id": self.id,
                "quantity": str(self.original_quantity),
            })
            raise ValueError(f"Lot quantity must be positive, got {self.original_quantity}")
        if self.remaining_quantity < ZERO or (
            self.remaining_quantity - self.original_quantity > CLOSURE_EPSILON
        ):
            raise ValueError(
                f"Lot remaining {self.remaining_quantity} outside "
                f"[0, {self.original_quantity}]"
            )

    @classmethod
    def open_from(cls, purchase: Transaction) -> Lot:
        """Open the lot belonging to a purchase transaction."""
        if not purchase.is_purchase:
            raise ValueError(f"Lots are opened by purchases, got {purchase.kind.value}")
        return cls(
            id=purchase.id,
            lot_date=purchase.transaction_date,
            original_quantity=purchase.quantity,
            remaining_quantity=purchase.quantity,
            unit_cost=purchase.unit_rate,
        )

    @property
    def is_open(self) -> bool:
        """True while the lot still holds stock."""
        return self.remaining_quantity > ZERO

    @property
    def remaining_value(self) -> Decimal:
        """Remaining quantity valued at the lot's unit cost."""
        return self.remaining_quantity * self.unit_cost

    def copy(self) -> Lot:
        return replace(self)
