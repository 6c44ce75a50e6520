"""
Module: bullion_engines.risk
Responsibility:
    Raise risk alerts from the aging snapshot and recent sales margins.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - HIGH "old-stock" alert whenever the stale aging bucket holds stock.
    - MEDIUM "low-margin" alert when the most recently recorded sales (in
      recorded order, not date order) have
      sum(profit) / sum(taxable_amount) below the threshold.  A zero
      taxable sum never triggers the alert.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from bullion_engines.aging import STALE_BUCKET, AgingStats
from bullion_kernel.domain.entities import Transaction
from bullion_kernel.domain.values import ZERO
from bullion_kernel.logging_config import get_logger

logger = get_logger("engines.risk")


class Severity(str, Enum):
    """Alert severity."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class AlertThresholds:
    """Trigger levels for risk alerts."""

    recent_sales_window: int = 5
    low_margin_ratio: Decimal = Decimal("0.005")
    stale_bucket: str = STALE_BUCKET

    def __post_init__(self) -> None:
        if self.recent_sales_window <= 0:
            raise ValueError("recent_sales_window must be positive")


@dataclass(frozen=True)
class RiskAlert:
    """One alert for the dashboard."""

    id: str
    severity: Severity
    context: str
    message: str


def recent_sales_margin(
    transactions: Sequence[Transaction],
    window: int,
) -> Decimal | None:
    """Profit over taxable amount for the last ``window`` recorded sales.

    Returns None when there are no sales or their taxable sum is zero.
    """
    sales = [tx for tx in transactions if tx.is_sale]
    recent = sales[-window:]
    if not recent:
        return None
    taxable = sum((tx.taxable_amount for tx in recent), ZERO)
    if taxable == ZERO:
        return None
    profit = sum((tx.profit or ZERO for tx in recent), ZERO)
    return profit / taxable


def evaluate_risk_alerts(
    aging: AgingStats,
    transactions: Sequence[Transaction],
    thresholds: AlertThresholds | None = None,
) -> list[RiskAlert]:
    """Alerts in severity order (HIGH before MEDIUM)."""
    t = thresholds or AlertThresholds()
    alerts: list[RiskAlert] = []

    stale = aging.quantity_in(t.stale_bucket)
    if stale > ZERO:
        alerts.append(RiskAlert(
            id="old-stock",
            severity=Severity.HIGH,
            context="Inventory",
            message=f"{stale:.3f} g of gold is older than 30 days.",
        ))

    margin = recent_sales_margin(transactions, t.recent_sales_window)
    if margin is not None and margin < t.low_margin_ratio:
        alerts.append(RiskAlert(
            id="low-margin",
            severity=Severity.MEDIUM,
            context="Profit",
            message=(
                f"Recent sales margins are critically low "
                f"(< {t.low_margin_ratio * 100:.1f}%)."
            ),
        ))

    if alerts:
        logger.info("risk_alerts_raised", extra={
            "alert_ids": [a.id for a in alerts],
        })

    return alerts
