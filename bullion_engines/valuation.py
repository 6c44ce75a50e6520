"""
Module: bullion_engines.valuation
Responsibility:
    Point-in-time inventory valuation by replaying transaction history
    against a fresh FIFO queue.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Shares the FIFO walk with bullion_engines.allocation.

Invariants enforced:
    - Purity: only transactions dated on or before ``as_of`` are read; the
      live Lot collection is never consulted or modified.  Lot identities
      play no part; every purchase becomes an anonymous scratch layer.
    - Idempotence: identical inputs give bit-identical Decimal results,
      regardless of call order.
    - Ordering: transactions are stable-sorted by date, so same-day
      transactions replay in recorded order.

Failure modes:
    None.  A sale larger than the replayed stock drains the queue and
    the remainder is ignored.

Usage:
    from bullion_engines.valuation import replay_inventory_value

    value = replay_inventory_value(transactions, as_of=date(2024, 1, 31))
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from bullion_engines.allocation import plan_fifo_draws
from bullion_engines.tracer import traced_engine
from bullion_kernel.domain.entities import Transaction
from bullion_kernel.domain.values import ZERO
from bullion_kernel.logging_config import get_logger

logger = get_logger("engines.valuation")


@dataclass(frozen=True, slots=True)
class ScratchLayer:
    """Quantity left of one replayed purchase, at its purchase rate."""

    quantity: Decimal
    unit_cost: Decimal

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_cost


def replay_layers(
    transactions: Iterable[Transaction],
    as_of: date,
) -> tuple[ScratchLayer, ...]:
    """Replay history up to ``as_of`` and return the surviving layers, oldest first."""
    relevant = sorted(
        (tx for tx in transactions if tx.transaction_date <= as_of),
        key=lambda tx: tx.transaction_date,
    )

    # [quantity, unit_cost] pairs; mutable so a partial draw updates in place
    queue: deque[list[Decimal]] = deque()

    for tx in relevant:
        if tx.is_purchase:
            queue.append([tx.quantity, tx.unit_rate])
            continue

        plan = plan_fifo_draws(((q, c) for q, c in queue), tx.quantity)
        for draw in plan.draws:
            queue[draw.index][0] = draw.remaining_after
        while queue and queue[0][0] == ZERO:
            queue.popleft()

    return tuple(ScratchLayer(quantity=q, unit_cost=c) for q, c in queue)


@traced_engine("valuation", "1.0", fingerprint_fields=("as_of",))
def replay_inventory_value(
    transactions: Iterable[Transaction],
    as_of: date,
) -> Decimal:
    """
    FIFO inventory value as of the end of ``as_of``.

    Returns:
        Sum of quantity * purchase rate over the replayed layers.
    """
    layers = replay_layers(transactions, as_of)
    value = sum((layer.value for layer in layers), ZERO)

    logger.debug("inventory_value_replayed", extra={
        "as_of": as_of.isoformat(),
        "layer_count": len(layers),
        "value": str(value),
    })

    return value


def replay_stock_quantity(
    transactions: Iterable[Transaction],
    as_of: date,
) -> Decimal:
    """Grams on hand as of the end of ``as_of``, by replay."""
    return sum((layer.quantity for layer in replay_layers(transactions, as_of)), ZERO)
