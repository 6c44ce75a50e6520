"""
bullion_services.reporting_service -- Dashboard summary over the ledger.

Responsibility:
    Run every read-only engine over the right slice of the ledger and
    bundle the results into one ``LedgerSummary``.

Architecture position:
    Services -- read-only orchestration over bullion_engines.
    Never mutates transactions or lots.

Slices used (a report filter is a date range plus a party search):
    - filtered transactions (date + search): supplier and customer stats,
      realized profit, daily price trend.
    - lots matching the search only: stock position, aging, risk alerts.
    - lots matching date + search: inventory table.
    - all transactions: turnover, daily profit trend, monthly ledger and
      the recent-sales margin alert.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from bullion_engines.aging import AgingStats, StockAgingCalculator
from bullion_engines.counterparty import (
    BehaviorThresholds,
    CustomerStat,
    SupplierStat,
    customer_stats,
    supplier_stats,
)
from bullion_engines.filters import LedgerFilter
from bullion_engines.position import (
    RealizedProfit,
    StockPosition,
    realized_profit,
    stock_position,
    unrealized_profit,
)
from bullion_engines.risk import AlertThresholds, RiskAlert, evaluate_risk_alerts
from bullion_engines.trends import (
    DailyPricePoint,
    DailyProfitPoint,
    MonthlyLedger,
    daily_price_trend,
    daily_profit_trend,
    monthly_ledger,
)
from bullion_engines.turnover import TurnoverStats, calculate_turnover
from bullion_kernel.domain.entities import Lot, Transaction
from bullion_kernel.logging_config import get_logger

logger = get_logger("services.reporting")


@dataclass(frozen=True)
class LedgerSummary:
    """Everything the dashboard shows for one filter."""

    filter: LedgerFilter
    transactions: tuple[Transaction, ...]
    inventory: tuple[Lot, ...]
    position: StockPosition
    unrealized_profit: Decimal | None
    realized: RealizedProfit
    aging: AgingStats
    suppliers: tuple[SupplierStat, ...]
    customers: tuple[CustomerStat, ...]
    turnover: TurnoverStats
    alerts: tuple[RiskAlert, ...]
    profit_trend: tuple[DailyProfitPoint, ...]
    price_trend: tuple[DailyPricePoint, ...]
    monthly: MonthlyLedger


class ReportingService:
    """
    Builds ``LedgerSummary`` objects.

    Contract:
        Thresholds and the aging calculator are injected; the service
        holds no ledger state of its own.
    """

    def __init__(
        self,
        aging: StockAgingCalculator,
        alert_thresholds: AlertThresholds | None = None,
        behavior_thresholds: BehaviorThresholds | None = None,
    ):
        self._aging = aging
        self._alerts = alert_thresholds or AlertThresholds()
        self._behavior = behavior_thresholds or BehaviorThresholds()

    def summarize(
        self,
        transactions: Sequence[Transaction],
        lots: Sequence[Lot],
        report_filter: LedgerFilter,
        market_rate: Decimal | None = None,
        now: datetime | None = None,
    ) -> LedgerSummary:
        filtered = report_filter.transactions(transactions)
        stock_lots = report_filter.lots_matching_search(lots, transactions)
        position = stock_position(stock_lots)
        aging = self._aging.age_lots(stock_lots, now=now)

        summary = LedgerSummary(
            filter=report_filter,
            transactions=tuple(filtered),
            inventory=tuple(report_filter.lots(lots, transactions)),
            position=position,
            unrealized_profit=unrealized_profit(position, market_rate),
            realized=realized_profit(filtered),
            aging=aging,
            suppliers=tuple(supplier_stats(filtered)),
            customers=tuple(customer_stats(filtered, self._behavior)),
            turnover=calculate_turnover(transactions, report_filter.start, report_filter.end),
            alerts=tuple(evaluate_risk_alerts(aging, transactions, self._alerts)),
            profit_trend=tuple(daily_profit_trend(
                transactions, report_filter.start, report_filter.end,
            )),
            price_trend=tuple(daily_price_trend(
                filtered, report_filter.start, report_filter.end,
            )),
            monthly=monthly_ledger(transactions),
        )

        logger.info("ledger_summarized", extra={
            "start": report_filter.start.isoformat(),
            "end": report_filter.end.isoformat(),
            "search": report_filter.query or None,
            "transaction_count": len(filtered),
            "alert_count": len(summary.alerts),
        })
        return summary
