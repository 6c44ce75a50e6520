"""
Module: bullion_engines.turnover
Responsibility:
    Inventory turnover over a date range: COGS divided by the average of
    the replayed inventory values at the range start and end, plus the
    implied average days to sell.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Calls bullion_engines.valuation twice; the replayer is idempotent so
    call order does not matter.

Invariants enforced:
    - Zero average inventory gives a zero ratio; a zero ratio gives zero
      days to sell.
    - days_in_range = max(1, end - start) in whole days.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from bullion_engines.tracer import traced_engine
from bullion_engines.valuation import replay_inventory_value
from bullion_kernel.domain.entities import Transaction
from bullion_kernel.domain.values import ZERO, safe_divide
from bullion_kernel.logging_config import get_logger

logger = get_logger("engines.turnover")

_TWO = Decimal("2")


@dataclass(frozen=True)
class TurnoverStats:
    """Turnover metrics for one date range."""

    start: date
    end: date
    total_cogs: Decimal
    opening_inventory_value: Decimal
    closing_inventory_value: Decimal
    average_inventory_value: Decimal
    turnover_ratio: Decimal
    average_days_to_sell: Decimal


@traced_engine("turnover", "1.0", fingerprint_fields=("start", "end"))
def calculate_turnover(
    transactions: Sequence[Transaction],
    start: date,
    end: date,
) -> TurnoverStats:
    """
    Turnover for sales dated ``start`` through ``end`` inclusive.

    Args:
        transactions: The full transaction history.  Inventory values are
            replayed from all of it; COGS comes from sales in range.
        start: First day of the range.
        end: Last day of the range.
    """
    total_cogs = sum(
        (tx.cogs or ZERO for tx in transactions
         if tx.is_sale and start <= tx.transaction_date <= end),
        ZERO,
    )

    opening = replay_inventory_value(transactions, start)
    closing = replay_inventory_value(transactions, end)
    average = (opening + closing) / _TWO

    ratio = safe_divide(total_cogs, average) if average > ZERO else ZERO
    days_in_range = Decimal(max(1, (end - start).days))
    days_to_sell = safe_divide(days_in_range, ratio) if ratio > ZERO else ZERO

    logger.info("turnover_calculated", extra={
        "start": start.isoformat(),
        "end": end.isoformat(),
        "total_cogs": str(total_cogs),
        "average_inventory_value": str(average),
        "turnover_ratio": str(ratio),
    })

    return TurnoverStats(
        start=start,
        end=end,
        total_cogs=total_cogs,
        opening_inventory_value=opening,
        closing_inventory_value=closing,
        average_inventory_value=average,
        turnover_ratio=ratio,
        average_days_to_sell=days_to_sell,
    )
