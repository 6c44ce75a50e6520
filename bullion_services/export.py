"""
bullion_services.export -- Tabular projections of ledger data and CSV rendering.

Each ``*_table`` function turns entities or engine results into a
``Table`` of headers plus rows; ``to_csv`` renders any table.  Numeric
cells stay ``Decimal``/``int`` so the CSV writer leaves them unquoted,
while text and dates are quoted.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from bullion_engines.counterparty import CustomerStat, SupplierStat
from bullion_engines.trends import MonthlyLedger
from bullion_kernel.domain.entities import Lot, Transaction
from bullion_kernel.domain.values import ZERO


@dataclass(frozen=True)
class Table:
    headers: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...]

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.headers, row)) for row in self.rows]


def transactions_table(transactions: Iterable[Transaction], currency: str = "INR") -> Table:
    headers = (
        "Date", "Type", "Party", "Qty (g)", f"Rate ({currency}/g)",
        f"Taxable ({currency})", f"GST ({currency})", f"Total ({currency})",
        f"Profit ({currency})",
    )
    rows = tuple(
        (
            tx.transaction_date.isoformat(), tx.kind.value, tx.counterparty,
            tx.quantity, tx.unit_rate, tx.taxable_amount, tx.tax_amount,
            tx.gross_amount, tx.profit if tx.profit is not None else ZERO,
        )
        for tx in transactions
    )
    return Table(headers, rows)


def inventory_table(lots: Iterable[Lot], currency: str = "INR") -> Table:
    headers = (
        "Batch ID", "Date", "Original Qty (g)", "Remaining Qty (g)",
        f"Cost ({currency}/g)", f"Total Value ({currency})", "Status",
    )
    rows = tuple(
        (
            lot.id, lot.lot_date.isoformat(), lot.original_quantity,
            lot.remaining_quantity, lot.unit_cost, lot.remaining_value,
            "Active" if lot.is_open else "Closed",
        )
        for lot in lots
    )
    return Table(headers, rows)


def suppliers_table(stats: Iterable[SupplierStat]) -> Table:
    headers = (
        "Supplier", "Transactions", "Total Volume (g)", "Avg Rate",
        "Min Rate", "Max Rate", "Volatility",
    )
    rows = tuple(
        (s.name, s.transaction_count, s.total_grams_purchased, s.average_rate,
         s.min_rate, s.max_rate, s.volatility)
        for s in stats
    )
    return Table(headers, rows)


def customers_table(stats: Iterable[CustomerStat]) -> Table:
    headers = (
        "Customer", "Frequency", "Total Grams", "Total Spend", "Avg Price",
        "Avg Profit/g", "Pattern",
    )
    rows = tuple(
        (c.name, c.transaction_count, c.total_grams, c.total_spend,
         c.average_selling_price, c.average_profit_per_gram, c.behavior_pattern)
        for c in stats
    )
    return Table(headers, rows)


def monthly_table(ledger: MonthlyLedger) -> Table:
    headers = ("Month", "Turnover", "Profit", "Margin %", "Qty Sold")
    rows = tuple(
        (r.month.strftime("%B %Y"), r.turnover, r.profit,
         round(r.margin_percent, 2), r.grams)
        for r in ledger.rows
    )
    return Table(headers, rows)


def to_csv(table: Table) -> str:
    """Comma-separated text with a header line; non-numeric cells quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(table.headers)
    writer.writerows(_row(r) for r in table.rows)
    return buffer.getvalue()


def _row(row: Sequence[Any]) -> list[Any]:
    return ["" if cell is None else cell for cell in row]
