"""
Ledger configuration schema.

Frozen dataclasses the loader parses YAML into.  Alert and behaviour
thresholds reuse the engine types so a parsed configuration can be
handed straight to the engines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path

from bullion_engines.counterparty import BehaviorThresholds
from bullion_engines.risk import AlertThresholds


@dataclass(frozen=True)
class LedgerConfig:
    """Bookkeeping settings."""

    currency: str = "INR"
    default_tax_rate: Decimal = Decimal("3")
    lock_date: date | None = None  # transactions on or before are rejected

    def __post_init__(self) -> None:
        if self.default_tax_rate < 0:
            raise ValueError("default_tax_rate cannot be negative")


@dataclass(frozen=True)
class StorageConfig:
    """Where snapshots are kept.  At most one of the two is normally set."""

    json_path: Path | None = None
    database_url: str | None = None


@dataclass(frozen=True)
class BullionConfig:
    """The complete runtime configuration."""

    config_id: str
    version: int
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    alerts: AlertThresholds = field(default_factory=AlertThresholds)
    behavior: BehaviorThresholds = field(default_factory=BehaviorThresholds)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = "INFO"
    checksum: str = ""
