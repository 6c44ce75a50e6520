"""
Module: bullion_engines.allocation
Responsibility:
    FIFO consumption of cost lots: decide which lots fund a disposal, how
    much each contributes and at what cost, then commit the draws.

Architecture position:
    Engines -- calculation layer, zero I/O.
    May only import bullion_kernel/domain and bullion_kernel/exceptions.

    ``plan_fifo_draws`` is the shared primitive.  It walks an ordered
    sequence of (available, unit_cost) layers without touching them and
    returns a plan.  Two callers commit plans differently:
      - ``allocate_fifo`` applies the plan to live ``Lot`` objects;
      - ``bullion_engines.valuation`` applies it to a scratch queue.

Invariants enforced:
    - FIFO order: lots are drained in ascending ``lot_date``; ties keep
      their insertion order (stable sort).
    - Closure: a lot left with less than CLOSURE_EPSILON snaps to exactly
      zero and is closed on the sale date.
    - Atomicity: ``allocate_fifo`` plans first and commits only when the
      uncovered quantity is within SHORTFALL_EPSILON.  On shortfall no lot
      is modified.

Failure modes:
    - InsufficientStockError when the lots cannot cover the request.
    - ValueError on a non-positive request quantity.

Usage:
    from bullion_engines.allocation import allocate_fifo

    result = allocate_fifo(
        lots=store.lots,
        quantity=Decimal("60"),
        sale_rate=Decimal("6500"),
        sale_date=date(2024, 1, 5),
    )
    cogs = result.total_cost
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from bullion_engines.tracer import traced_engine
from bullion_kernel.domain.entities import Lot, LotAllocation
from bullion_kernel.domain.values import (
    CLOSURE_EPSILON,
    SHORTFALL_EPSILON,
    ZERO,
)
from bullion_kernel.exceptions import InsufficientStockError
from bullion_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


@dataclass(frozen=True, slots=True)
class LayerDraw:
    """
    One step of a FIFO walk: quantity taken from the layer at ``index``.

    ``remaining_after`` is already snapped to zero when ``exhausts`` is set.
    """

    index: int
    quantity: Decimal
    unit_cost: Decimal
    remaining_after: Decimal
    exhausts: bool

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_cost


@dataclass(frozen=True, slots=True)
class FifoPlan:
    """
    Result of walking layers for a requested quantity.

    Guarantees:
        - ``allocated + uncovered == requested``.
        - ``draws`` are in walk order with strictly increasing indices.
    """

    requested: Decimal
    draws: tuple[LayerDraw, ...]
    uncovered: Decimal

    @property
    def allocated(self) -> Decimal:
        return sum((d.quantity for d in self.draws), ZERO)

    @property
    def total_cost(self) -> Decimal:
        return sum((d.cost for d in self.draws), ZERO)

    @property
    def is_covered(self) -> bool:
        """True when the uncovered remainder is within SHORTFALL_EPSILON."""
        return self.uncovered <= SHORTFALL_EPSILON


@dataclass(frozen=True, slots=True)
class AllocationResult:
    """Committed FIFO allocation for one sale."""

    quantity: Decimal
    total_cost: Decimal
    allocations: tuple[LotAllocation, ...]
    closed_lot_ids: tuple[str, ...]

    @property
    def lot_count(self) -> int:
        return len(self.allocations)

    @property
    def average_unit_cost(self) -> Decimal:
        """Weighted average cost of the quantity drawn."""
        drawn = sum((a.quantity for a in self.allocations), ZERO)
        if drawn == ZERO:
            return ZERO
        return self.total_cost / drawn


def plan_fifo_draws(
    layers: Iterable[tuple[Decimal, Decimal]],
    quantity: Decimal,
) -> FifoPlan:
    """Walk ``(available, unit_cost)`` layers front to back for ``quantity``.

    Preconditions:
        Layers are already in consumption order.

    Postconditions:
        Layers are not modified.  Empty layers are skipped.  The walk stops
        as soon as the outstanding quantity is within CLOSURE_EPSILON.
    """
    remaining = quantity
    draws: list[LayerDraw] = []

    for index, (available, unit_cost) in enumerate(layers):
        if remaining <= CLOSURE_EPSILON:
            break
        if available <= ZERO:
            continue

        take = min(available, remaining)
        left = available - take
        exhausts = left < CLOSURE_EPSILON
        if exhausts:
            left = ZERO
        remaining -= take

        draws.append(LayerDraw(
            index=index,
            quantity=take,
            unit_cost=unit_cost,
            remaining_after=left,
            exhausts=exhausts,
        ))

    return FifoPlan(
        requested=quantity,
        draws=tuple(draws),
        uncovered=max(remaining, ZERO),
    )


def fifo_order(lots: Iterable[Lot]) -> list[Lot]:
    """Lots in consumption order: ascending date, insertion order on ties."""
    return sorted(lots, key=lambda lot: lot.lot_date)


def available_quantity(lots: Iterable[Lot]) -> Decimal:
    """Total remaining quantity across lots."""
    return sum((lot.remaining_quantity for lot in lots), ZERO)


@traced_engine("allocation", "1.0", fingerprint_fields=("quantity", "sale_rate", "sale_date"))
def allocate_fifo(
    lots: Sequence[Lot],
    quantity: Decimal,
    sale_rate: Decimal,
    sale_date: date,
) -> AllocationResult:
    """
    Consume ``quantity`` from ``lots`` oldest first and commit the draws.

    Each drawn lot has ``remaining_quantity`` reduced, ``cumulative_revenue``
    increased by ``taken * sale_rate`` and, when drained, ``closed_date``
    set to ``sale_date``.

    Args:
        lots: Live lots.  Mutated in place on success only.
        quantity: Grams to dispose of.
        sale_rate: Sale price per gram, for revenue attribution.
        sale_date: Date stamped on lots the sale closes.

    Returns:
        AllocationResult with total cost and per-lot allocations.

    Raises:
        ValueError: If quantity <= 0.
        InsufficientStockError: If the lots cannot cover the quantity.
    """
    if quantity <= ZERO:
        raise ValueError(f"Allocation quantity must be positive, got {quantity}")

    ordered = fifo_order(lots)
    plan = plan_fifo_draws(
        ((lot.remaining_quantity, lot.unit_cost) for lot in ordered),
        quantity,
    )

    if not plan.is_covered:
        available = available_quantity(ordered)
        logger.warning("fifo_allocation_shortfall", extra={
            "requested": str(quantity),
            "available": str(available),
            "uncovered": str(plan.uncovered),
        })
        raise InsufficientStockError(requested=quantity, available=available)

    allocations: list[LotAllocation] = []
    closed: list[str] = []
    for draw in plan.draws:
        lot = ordered[draw.index]
        lot.cumulative_revenue += draw.quantity * sale_rate
        lot.remaining_quantity = draw.remaining_after
        if draw.exhausts:
            lot.closed_date = sale_date
            closed.append(lot.id)
        allocations.append(LotAllocation(
            lot_id=lot.id,
            quantity=draw.quantity,
            unit_cost=draw.unit_cost,
        ))

    result = AllocationResult(
        quantity=quantity,
        total_cost=plan.total_cost,
        allocations=tuple(allocations),
        closed_lot_ids=tuple(closed),
    )

    logger.info("fifo_allocation_completed", extra={
        "quantity": str(quantity),
        "sale_rate": str(sale_rate),
        "sale_date": sale_date.isoformat(),
        "lot_count": result.lot_count,
        "closed_lots": list(closed),
        "total_cost": str(result.total_cost),
    })

    return result
