"""
Module: bullion_engines.trends
Responsibility:
    Calendar series over sales: daily profit, daily average selling price
    and the monthly business ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Daily series contain one point per calendar day of the range,
      inclusive, including days without sales.
    - Monthly rows are keyed by calendar month and ordered newest first.
    - Margins divide by gross turnover; a zero turnover gives zero.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from bullion_kernel.domain.entities import Transaction
from bullion_kernel.domain.values import HUNDRED, ZERO, safe_divide
from bullion_kernel.logging_config import get_logger

logger = get_logger("engines.trends")


@dataclass(frozen=True)
class DailyProfitPoint:
    day: date
    profit: Decimal
    grams: Decimal

    @property
    def profit_per_gram(self) -> Decimal:
        return safe_divide(self.profit, self.grams)


@dataclass(frozen=True)
class DailyPricePoint:
    day: date
    average_sell_rate: Decimal | None


@dataclass(frozen=True)
class MonthlyLedgerRow:
    """Sales totals for one calendar month."""

    month: date  # first day of the month
    turnover: Decimal
    profit: Decimal
    tax: Decimal
    grams: Decimal

    @property
    def margin_percent(self) -> Decimal:
        return safe_divide(self.profit, self.turnover) * HUNDRED


@dataclass(frozen=True)
class MonthlyLedger:
    rows: tuple[MonthlyLedgerRow, ...]

    @property
    def total_turnover(self) -> Decimal:
        return sum((r.turnover for r in self.rows), ZERO)

    @property
    def total_profit(self) -> Decimal:
        return sum((r.profit for r in self.rows), ZERO)

    @property
    def total_tax(self) -> Decimal:
        return sum((r.tax for r in self.rows), ZERO)

    @property
    def total_grams(self) -> Decimal:
        return sum((r.grams for r in self.rows), ZERO)

    @property
    def margin_percent(self) -> Decimal:
        return safe_divide(self.total_profit, self.total_turnover) * HUNDRED


def _days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=n) for n in range((end - start).days + 1)]


def _sales_by_day(transactions: Iterable[Transaction]) -> dict[date, list[Transaction]]:
    by_day: dict[date, list[Transaction]] = {}
    for tx in transactions:
        if tx.is_sale:
            by_day.setdefault(tx.transaction_date, []).append(tx)
    return by_day


def daily_profit_trend(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[DailyProfitPoint]:
    """Realized profit and grams sold for each day from ``start`` to ``end``."""
    by_day = _sales_by_day(transactions)
    points = []
    for day in _days(start, end):
        sales = by_day.get(day, [])
        points.append(DailyProfitPoint(
            day=day,
            profit=sum((s.profit or ZERO for s in sales), ZERO),
            grams=sum((s.quantity for s in sales), ZERO),
        ))
    return points


def daily_price_trend(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[DailyPricePoint]:
    """Quantity-weighted average selling rate per day; None on days with no sales."""
    by_day = _sales_by_day(transactions)
    points = []
    for day in _days(start, end):
        sales = by_day.get(day, [])
        grams = sum((s.quantity for s in sales), ZERO)
        value = sum((s.taxable_amount for s in sales), ZERO)
        points.append(DailyPricePoint(
            day=day,
            average_sell_rate=value / grams if grams > ZERO else None,
        ))
    return points


def monthly_ledger(transactions: Iterable[Transaction]) -> MonthlyLedger:
    """Group every sale by calendar month, newest month first."""
    months: dict[date, list[Decimal]] = {}
    for tx in transactions:
        if not tx.is_sale:
            continue
        key = tx.transaction_date.replace(day=1)
        acc = months.setdefault(key, [ZERO, ZERO, ZERO, ZERO])
        acc[0] += tx.gross_amount
        acc[1] += tx.profit or ZERO
        acc[2] += tx.tax_amount
        acc[3] += tx.quantity

    rows = tuple(
        MonthlyLedgerRow(month=month, turnover=t, profit=p, tax=x, grams=g)
        for month, (t, p, x, g) in sorted(months.items(), reverse=True)
    )
    logger.debug("monthly_ledger_built", extra={"month_count": len(rows)})
    return MonthlyLedger(rows=rows)
