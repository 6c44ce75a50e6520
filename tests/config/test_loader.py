"""
Tests for configuration loading through get_active_config().
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from bullion_config import get_active_config
from bullion_config.loader import compute_checksum, parse_config


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "bullion.yaml"
    path.write_text(text)
    return path


class TestDefaults:
    def test_packaged_defaults(self):
        config = get_active_config()

        assert config.config_id == "bullion-default"
        assert config.version == 1
        assert config.ledger.currency == "INR"
        assert config.ledger.default_tax_rate == Decimal("3")
        assert config.ledger.lock_date is None
        assert config.alerts.recent_sales_window == 5
        assert config.alerts.low_margin_ratio == Decimal("0.005")
        assert config.behavior.bulk_grams_per_transaction == Decimal("100")
        assert config.storage.json_path is None
        assert config.storage.database_url is None
        assert config.log_level == "INFO"

    def test_config_trace_logged(self, captured_logs):
        config = get_active_config()

        [entry] = [r for r in captured_logs() if r["message"] == "BULLION_CONFIG_TRACE"]
        assert entry["config_id"] == "bullion-default"
        assert entry["checksum"] == config.checksum


class TestCustomFile:
    def test_overrides(self, tmp_path):
        path = _write(tmp_path, """
config_id: shop-42
version: 3
ledger:
  currency: USD
  default_tax_rate: 5
  lock_date: 2024-01-31
alerts:
  recent_sales_window: 10
storage:
  json_path: data/ledger.json
logging:
  level: debug
""")

        config = get_active_config(path)

        assert config.config_id == "shop-42"
        assert config.version == 3
        assert config.ledger.currency == "USD"
        assert config.ledger.default_tax_rate == Decimal("5")
        assert config.ledger.lock_date == date(2024, 1, 31)
        assert config.alerts.recent_sales_window == 10
        assert config.alerts.low_margin_ratio == Decimal("0.005")
        assert config.storage.json_path == Path("data/ledger.json")
        assert config.log_level == "DEBUG"

    def test_missing_sections_take_defaults(self, tmp_path):
        config = get_active_config(_write(tmp_path, "config_id: minimal\n"))

        assert config.ledger.default_tax_rate == Decimal("3")
        assert config.behavior.frequent_transaction_count == 5

    def test_missing_config_id(self, tmp_path):
        with pytest.raises(KeyError):
            get_active_config(_write(tmp_path, "version: 1\n"))

    def test_bad_log_level(self, tmp_path):
        with pytest.raises(ValueError):
            get_active_config(_write(tmp_path, "config_id: x\nlogging:\n  level: LOUD\n"))

    def test_bad_number(self, tmp_path):
        with pytest.raises(ValueError):
            get_active_config(_write(tmp_path, "config_id: x\nledger:\n  default_tax_rate: lots\n"))

    def test_non_mapping_root(self, tmp_path):
        with pytest.raises(ValueError):
            get_active_config(_write(tmp_path, "- a\n- b\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")


class TestChecksum:
    def test_deterministic_and_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_changes_with_content(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_stored_on_config(self):
        data = {"config_id": "x"}

        assert parse_config(data).checksum == compute_checksum(data)
