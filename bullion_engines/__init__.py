"""
Module: bullion_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for bullion_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import bullion_kernel (and sibling engine modules).
    MUST NOT import bullion_services or bullion_config.

Invariants enforced:
    - Purity: engines never read the wall clock directly.  "Now" is passed
      in or read from an injected Clock.
    - Decimal-only arithmetic for every quantity and amount.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from bullion_engines import allocate_fifo, replay_inventory_value
    from bullion_engines import StockAgingCalculator, calculate_turnover
"""

from bullion_kernel.logging_config import get_logger

logger = get_logger("engines")

from bullion_engines.aging import (
    STALE_BUCKET,
    STOCK_BUCKETS,
    AgeBucket,
    AgedLot,
    AgingStats,
    StockAgingCalculator,
)
from bullion_engines.allocation import (
    AllocationResult,
    FifoPlan,
    LayerDraw,
    allocate_fifo,
    available_quantity,
    fifo_order,
    plan_fifo_draws,
)
from bullion_engines.counterparty import (
    BehaviorThresholds,
    CustomerStat,
    SupplierStat,
    classify_behavior,
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
from bullion_engines.risk import (
    AlertThresholds,
    RiskAlert,
    Severity,
    evaluate_risk_alerts,
    recent_sales_margin,
)
from bullion_engines.tracer import traced_engine
from bullion_engines.trends import (
    DailyPricePoint,
    DailyProfitPoint,
    MonthlyLedger,
    MonthlyLedgerRow,
    daily_price_trend,
    daily_profit_trend,
    monthly_ledger,
)
from bullion_engines.turnover import TurnoverStats, calculate_turnover
from bullion_engines.valuation import (
    ScratchLayer,
    replay_inventory_value,
    replay_layers,
    replay_stock_quantity,
)

__all__ = [
    # Aging
    "AgeBucket",
    "AgedLot",
    "AgingStats",
    "STALE_BUCKET",
    "STOCK_BUCKETS",
    "StockAgingCalculator",
    # Allocation
    "AllocationResult",
    "FifoPlan",
    "LayerDraw",
    "allocate_fifo",
    "available_quantity",
    "fifo_order",
    "plan_fifo_draws",
    # Counterparty
    "BehaviorThresholds",
    "CustomerStat",
    "SupplierStat",
    "classify_behavior",
    "customer_stats",
    "supplier_stats",
    # Filters
    "LedgerFilter",
    # Position
    "RealizedProfit",
    "StockPosition",
    "realized_profit",
    "stock_position",
    "unrealized_profit",
    # Risk
    "AlertThresholds",
    "RiskAlert",
    "Severity",
    "evaluate_risk_alerts",
    "recent_sales_margin",
    # Tracer
    "traced_engine",
    # Trends
    "DailyPricePoint",
    "DailyProfitPoint",
    "MonthlyLedger",
    "MonthlyLedgerRow",
    "daily_price_trend",
    "daily_profit_trend",
    "monthly_ledger",
    # Turnover
    "TurnoverStats",
    "calculate_turnover",
    # Valuation
    "ScratchLayer",
    "replay_inventory_value",
    "replay_layers",
    "replay_stock_quantity",
]
