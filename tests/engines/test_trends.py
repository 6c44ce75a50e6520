"""
Tests for daily trends and the monthly business ledger.
"""

from datetime import date
from decimal import Decimal

from bullion_engines.trends import daily_price_trend, daily_profit_trend, monthly_ledger
from tests.conftest import make_purchase, make_sale


class TestDailyProfitTrend:
    def test_one_point_per_day(self):
        history = [make_sale("s1", date(2024, 1, 2), "60", "6500", cogs="360000")]

        points = daily_profit_trend(history, date(2024, 1, 1), date(2024, 1, 3))

        assert [p.day for p in points] == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        assert points[1].profit == Decimal("30000")
        assert points[1].grams == Decimal("60")
        assert points[1].profit_per_gram == Decimal("500")

    def test_empty_days_are_zero(self):
        points = daily_profit_trend([], date(2024, 1, 1), date(2024, 1, 2))

        assert all(p.profit == 0 and p.profit_per_gram == 0 for p in points)

    def test_purchases_ignored(self):
        history = [make_purchase("p1", date(2024, 1, 1), "100", "6000")]

        [point] = daily_profit_trend(history, date(2024, 1, 1), date(2024, 1, 1))

        assert point.grams == Decimal("0")


class TestDailyPriceTrend:
    def test_quantity_weighted_average(self):
        history = [
            make_sale("s1", date(2024, 1, 1), "10", "6000", cogs="50000"),
            make_sale("s2", date(2024, 1, 1), "30", "6400", cogs="150000"),
        ]

        points = daily_price_trend(history, date(2024, 1, 1), date(2024, 1, 2))

        assert points[0].average_sell_rate == Decimal("6300")
        assert points[1].average_sell_rate is None


class TestMonthlyLedger:
    def setup_method(self):
        self.history = [
            make_purchase("p1", date(2024, 1, 1), "200", "6000"),
            make_sale("s1", date(2024, 1, 5), "60", "6500", cogs="360000"),
            make_sale("s2", date(2024, 1, 20), "40", "6500", cogs="240000"),
            make_sale("s3", date(2024, 2, 3), "10", "6600", cogs="60000"),
        ]

    def test_newest_month_first(self):
        ledger = monthly_ledger(self.history)

        assert [r.month for r in ledger.rows] == [date(2024, 2, 1), date(2024, 1, 1)]

    def test_month_totals(self):
        january = monthly_ledger(self.history).rows[1]

        assert january.turnover == Decimal("669500")
        assert january.profit == Decimal("50000")
        assert january.tax == Decimal("19500")
        assert january.grams == Decimal("100")
        assert january.margin_percent == Decimal("50000") / Decimal("669500") * 100

    def test_overall_totals(self):
        ledger = monthly_ledger(self.history)

        assert ledger.total_turnover == Decimal("737480")
        assert ledger.total_profit == Decimal("56000")
        assert ledger.total_grams == Decimal("110")

    def test_empty(self):
        ledger = monthly_ledger([])

        assert ledger.rows == ()
        assert ledger.margin_percent == Decimal("0")
