"""
Module: bullion_engines.position
Responsibility:
    Current stock position from the live lots (quantity, FIFO value,
    weighted average cost), unrealized profit at a market rate, and the
    realized profit summary over a set of sales.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - fifo_value = sum(remaining_quantity * unit_cost) over all lots.
    - Weighted average cost is zero when there is no stock.
    - Unrealized profit is None unless the market rate is positive.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from bullion_kernel.domain.entities import Lot, Transaction
from bullion_kernel.domain.values import HUNDRED, ZERO, safe_divide


@dataclass(frozen=True)
class StockPosition:
    stock: Decimal
    fifo_value: Decimal

    @property
    def weighted_average_cost(self) -> Decimal:
        return safe_divide(self.fifo_value, self.stock)


@dataclass(frozen=True)
class RealizedProfit:
    """Profit realized by a set of sales."""

    sale_count: int
    grams_sold: Decimal
    taxable_revenue: Decimal
    cogs: Decimal
    profit: Decimal

    @property
    def margin_percent(self) -> Decimal:
        return safe_divide(self.profit, self.taxable_revenue) * HUNDRED


def stock_position(lots: Iterable[Lot]) -> StockPosition:
    stock = ZERO
    value = ZERO
    for lot in lots:
        stock += lot.remaining_quantity
        value += lot.remaining_value
    return StockPosition(stock=stock, fifo_value=value)


def unrealized_profit(
    position: StockPosition,
    market_rate: Decimal | None,
) -> Decimal | None:
    """Mark-to-market gain of the stock on hand at ``market_rate`` per gram."""
    if market_rate is None or market_rate <= ZERO:
        return None
    return position.stock * market_rate - position.fifo_value


def realized_profit(transactions: Iterable[Transaction]) -> RealizedProfit:
    sales = [tx for tx in transactions if tx.is_sale]
    return RealizedProfit(
        sale_count=len(sales),
        grams_sold=sum((s.quantity for s in sales), ZERO),
        taxable_revenue=sum((s.taxable_amount for s in sales), ZERO),
        cogs=sum((s.cogs or ZERO for s in sales), ZERO),
        profit=sum((s.profit or ZERO for s in sales), ZERO),
    )
