"""
Configuration Loader (``bullion_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``bullion_config.schema`` dataclasses.  Runtime callers go through
``bullion_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Numbers destined for ``Decimal`` fields are read through ``str()``.
* Sections missing from the file take the schema defaults; keys present
  with a malformed value raise.
* ``compute_checksum`` is deterministic for identical data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id``  -> ``KeyError`` propagates.
* Invalid date or number  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from bullion_config.schema import BullionConfig, LedgerConfig, StorageConfig
from bullion_engines.counterparty import BehaviorThresholds
from bullion_engines.risk import AlertThresholds
from bullion_kernel.domain.values import to_decimal

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root in {path} must be a mapping")
    return data


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def _decimal(data: dict[str, Any], key: str, default: Decimal) -> Decimal:
    if data.get(key) is None:
        return default
    return to_decimal(data[key])


def parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    defaults = LedgerConfig()
    lock = data.get("lock_date")
    return LedgerConfig(
        currency=str(data.get("currency", defaults.currency)),
        default_tax_rate=_decimal(data, "default_tax_rate", defaults.default_tax_rate),
        lock_date=parse_date(lock) if lock else None,
    )


def parse_alerts(data: dict[str, Any]) -> AlertThresholds:
    defaults = AlertThresholds()
    return AlertThresholds(
        recent_sales_window=int(data.get("recent_sales_window", defaults.recent_sales_window)),
        low_margin_ratio=_decimal(data, "low_margin_ratio", defaults.low_margin_ratio),
    )


def parse_behavior(data: dict[str, Any]) -> BehaviorThresholds:
    defaults = BehaviorThresholds()
    return BehaviorThresholds(
        bulk_grams_per_transaction=_decimal(
            data, "bulk_grams_per_transaction", defaults.bulk_grams_per_transaction,
        ),
        frequent_transaction_count=int(
            data.get("frequent_transaction_count", defaults.frequent_transaction_count),
        ),
        price_sensitive_margin_percent=_decimal(
            data, "price_sensitive_margin_percent", defaults.price_sensitive_margin_percent,
        ),
        high_margin_percent=_decimal(data, "high_margin_percent", defaults.high_margin_percent),
    )


def parse_storage(data: dict[str, Any]) -> StorageConfig:
    json_path = data.get("json_path")
    return StorageConfig(
        json_path=Path(json_path) if json_path else None,
        database_url=data.get("database_url") or None,
    )


def parse_config(data: dict[str, Any]) -> BullionConfig:
    """
    Parse a ``BullionConfig`` from a dict.

    Preconditions:
        - ``data`` contains ``config_id``.
    Raises:
        KeyError: if ``config_id`` is missing.
        ValueError: if a value cannot be parsed.
    """
    level = str((data.get("logging") or {}).get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")

    return BullionConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        ledger=parse_ledger(data.get("ledger") or {}),
        alerts=parse_alerts(data.get("alerts") or {}),
        behavior=parse_behavior(data.get("behavior") or {}),
        storage=parse_storage(data.get("storage") or {}),
        log_level=level,
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
