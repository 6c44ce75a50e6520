"""
Tests for the valuation replayer.

Covers:
- Point-in-time value from purchases and sales
- Date cut-off and ordering
- Oversold history
- Purity and idempotence
"""

from datetime import date
from decimal import Decimal

from bullion_engines.valuation import (
    ScratchLayer,
    replay_inventory_value,
    replay_layers,
    replay_stock_quantity,
)
from tests.conftest import make_purchase, make_sale


class TestReplayInventoryValue:
    """Tests for replay_inventory_value."""

    def setup_method(self):
        self.history = [
            make_purchase("p1", date(2024, 1, 1), "100", "6000"),
            make_sale("s1", date(2024, 1, 5), "60", "6500", cogs="360000"),
        ]

    def test_before_any_transaction(self):
        assert replay_inventory_value(self.history, date(2023, 12, 31)) == Decimal("0")

    def test_before_sale(self):
        assert replay_inventory_value(self.history, date(2024, 1, 3)) == Decimal("600000")

    def test_on_sale_date_includes_sale(self):
        assert replay_inventory_value(self.history, date(2024, 1, 5)) == Decimal("240000")

    def test_spans_layers_at_different_costs(self):
        history = [
            make_purchase("p1", date(2024, 1, 1), "50", "6000"),
            make_purchase("p2", date(2024, 1, 3), "50", "6200"),
            make_sale("s1", date(2024, 1, 5), "60", "6500", cogs="362000"),
        ]

        assert replay_inventory_value(history, date(2024, 1, 5)) == Decimal("248000")

    def test_unsorted_history_is_replayed_by_date(self):
        history = [
            make_sale("s1", date(2024, 1, 5), "60", "6500", cogs="360000"),
            make_purchase("p1", date(2024, 1, 1), "100", "6000"),
        ]

        assert replay_inventory_value(history, date(2024, 1, 5)) == Decimal("240000")

    def test_same_day_keeps_recorded_order(self):
        history = [
            make_purchase("p1", date(2024, 1, 1), "10", "100"),
            make_purchase("p2", date(2024, 1, 2), "10", "200"),
            make_sale("s1", date(2024, 1, 2), "10", "300", cogs="1000"),
        ]

        assert replay_inventory_value(history, date(2024, 1, 2)) == Decimal("2000")

    def test_oversold_history_drains_to_zero(self):
        history = [
            make_purchase("p1", date(2024, 1, 1), "10", "100"),
            make_sale("s1", date(2024, 1, 2), "15", "300", cogs="1000"),
        ]

        assert replay_inventory_value(history, date(2024, 1, 2)) == Decimal("0")

    def test_empty_history(self):
        assert replay_inventory_value([], date(2024, 1, 1)) == Decimal("0")

    def test_idempotent(self):
        first = replay_inventory_value(self.history, date(2024, 1, 5))
        second = replay_inventory_value(self.history, date(2024, 1, 5))

        assert first == second


class TestReplayLayers:
    """Tests for the scratch layer helpers."""

    def test_partial_layer_survives(self):
        history = [
            make_purchase("p1", date(2024, 1, 1), "50", "6000"),
            make_purchase("p2", date(2024, 1, 3), "50", "6200"),
            make_sale("s1", date(2024, 1, 5), "60", "6500", cogs="362000"),
        ]

        assert replay_layers(history, date(2024, 1, 5)) == (
            ScratchLayer(Decimal("40"), Decimal("6200")),
        )

    def test_stock_quantity(self):
        history = [
            make_purchase("p1", date(2024, 1, 1), "100", "6000"),
            make_sale("s1", date(2024, 1, 5), "60", "6500", cogs="360000"),
        ]

        assert replay_stock_quantity(history, date(2024, 1, 4)) == Decimal("100")
        assert replay_stock_quantity(history, date(2024, 1, 5)) == Decimal("40")
