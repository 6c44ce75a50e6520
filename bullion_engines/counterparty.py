"""
Module: bullion_engines.counterparty
Responsibility:
    Per-counterparty analytics: supplier price statistics over purchases
    and customer profitability with a behaviour tag over sales.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Supplier volatility is the rate spread (max - min), not a standard
      deviation.
    - Behaviour tag: one base tag ("Bulk Buyer", "Frequent", "Regular")
      followed by at most one margin suffix.
    - All ratios with a zero denominator evaluate to zero.
    - Output ordering: suppliers by grams purchased descending, customers
      by profit contribution descending; ties keep first-seen order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from bullion_engines.tracer import traced_engine
from bullion_kernel.domain.entities import Transaction
from bullion_kernel.domain.values import HUNDRED, ZERO, safe_divide
from bullion_kernel.logging_config import get_logger

logger = get_logger("engines.counterparty")


@dataclass(frozen=True)
class BehaviorThresholds:
    """Cut-offs for the customer behaviour tag."""

    bulk_grams_per_transaction: Decimal = Decimal("100")
    frequent_transaction_count: int = 5
    price_sensitive_margin_percent: Decimal = Decimal("0.5")
    high_margin_percent: Decimal = Decimal("2.0")


@dataclass(frozen=True)
class SupplierStat:
    """Purchase statistics for one supplier."""

    name: str
    transaction_count: int
    total_grams_purchased: Decimal
    average_rate: Decimal
    min_rate: Decimal
    max_rate: Decimal

    @property
    def volatility(self) -> Decimal:
        """Spread between the highest and lowest observed rate."""
        return self.max_rate - self.min_rate


@dataclass(frozen=True)
class CustomerStat:
    """Sales statistics and behaviour tag for one customer."""

    name: str
    transaction_count: int
    total_grams: Decimal
    total_spend: Decimal
    profit_contribution: Decimal
    margin_percent: Decimal
    average_grams_per_transaction: Decimal
    average_selling_price: Decimal
    average_profit_per_gram: Decimal
    behavior_pattern: str


def classify_behavior(
    average_grams: Decimal,
    transaction_count: int,
    margin_percent: Decimal,
    thresholds: BehaviorThresholds | None = None,
) -> str:
    """Behaviour tag for a customer."""
    t = thresholds or BehaviorThresholds()

    if average_grams > t.bulk_grams_per_transaction:
        pattern = "Bulk Buyer"
    elif transaction_count > t.frequent_transaction_count:
        pattern = "Frequent"
    else:
        pattern = "Regular"

    if margin_percent < t.price_sensitive_margin_percent:
        pattern += " (Price Sensitive)"
    elif margin_percent > t.high_margin_percent:
        pattern += " (High Margin)"

    return pattern


@traced_engine("supplier_stats", "1.0")
def supplier_stats(transactions: Iterable[Transaction]) -> list[SupplierStat]:
    """Group purchases by supplier, largest volume first."""
    grouped: dict[str, list[Transaction]] = {}
    for tx in transactions:
        if tx.is_purchase:
            grouped.setdefault(tx.counterparty, []).append(tx)

    stats: list[SupplierStat] = []
    for name, purchases in grouped.items():
        grams = sum((p.quantity for p in purchases), ZERO)
        cost = sum((p.quantity * p.unit_rate for p in purchases), ZERO)
        rates = [p.unit_rate for p in purchases]
        stats.append(SupplierStat(
            name=name,
            transaction_count=len(purchases),
            total_grams_purchased=grams,
            average_rate=safe_divide(cost, grams),
            min_rate=min(rates),
            max_rate=max(rates),
        ))

    stats.sort(key=lambda s: s.total_grams_purchased, reverse=True)
    logger.debug("supplier_stats_calculated", extra={"supplier_count": len(stats)})
    return stats


@traced_engine("customer_stats", "1.0")
def customer_stats(
    transactions: Iterable[Transaction],
    thresholds: BehaviorThresholds | None = None,
) -> list[CustomerStat]:
    """Group sales by customer, most profitable first.

    Customers whose total spend is zero are left out.
    """
    grouped: dict[str, list[Transaction]] = {}
    for tx in transactions:
        if tx.is_sale:
            grouped.setdefault(tx.counterparty, []).append(tx)

    stats: list[CustomerStat] = []
    for name, sales in grouped.items():
        count = len(sales)
        grams = sum((s.quantity for s in sales), ZERO)
        spend = sum((s.gross_amount for s in sales), ZERO)
        profit = sum((s.profit or ZERO for s in sales), ZERO)
        if spend <= ZERO:
            continue

        margin = safe_divide(profit, spend) * HUNDRED
        average_grams = grams / count
        stats.append(CustomerStat(
            name=name,
            transaction_count=count,
            total_grams=grams,
            total_spend=spend,
            profit_contribution=profit,
            margin_percent=margin,
            average_grams_per_transaction=average_grams,
            average_selling_price=safe_divide(spend, grams),
            average_profit_per_gram=safe_divide(profit, grams),
            behavior_pattern=classify_behavior(average_grams, count, margin, thresholds),
        ))

    stats.sort(key=lambda c: c.profit_contribution, reverse=True)
    logger.debug("customer_stats_calculated", extra={"customer_count": len(stats)})
    return stats
