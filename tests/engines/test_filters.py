"""
Tests for LedgerFilter.
"""

from datetime import date

from bullion_engines.filters import LedgerFilter
from tests.conftest import make_lot, make_purchase, make_sale


class TestLedgerFilter:
    def setup_method(self):
        self.transactions = [
            make_purchase("p1", date(2024, 1, 1), "100", "6000", party="Golden Traders"),
            make_purchase("p2", date(2024, 2, 1), "50", "6100", party="Silver Line"),
            make_sale("s1", date(2024, 1, 10), "20", "6500", cogs="120000", party="gold smith co"),
        ]
        self.lots = [
            make_lot("p1", date(2024, 1, 1), "100", "6000"),
            make_lot("p2", date(2024, 2, 1), "50", "6100"),
            make_lot("orphan", date(2024, 1, 5), "10", "6000"),
        ]

    def test_reversed_range_matches_nothing_dated(self):
        f = LedgerFilter(date(2024, 2, 1), date(2024, 1, 1))

        assert f.transactions(self.transactions) == []
        assert f.lots(self.lots, self.transactions) == []
        assert len(f.lots_matching_search(self.lots, self.transactions)) == 3

    def test_transactions_by_date(self):
        f = LedgerFilter(date(2024, 1, 1), date(2024, 1, 31))

        assert [tx.id for tx in f.transactions(self.transactions)] == ["p1", "s1"]

    def test_search_is_case_insensitive_substring(self):
        f = LedgerFilter(date(2024, 1, 1), date(2024, 12, 31), search="  GOLD ")

        assert [tx.id for tx in f.transactions(self.transactions)] == ["p1", "s1"]

    def test_blank_search_matches_all(self):
        f = LedgerFilter(date(2024, 1, 1), date(2024, 12, 31), search="   ")

        assert len(f.transactions(self.transactions)) == 3
        assert len(f.lots_matching_search(self.lots, self.transactions)) == 3

    def test_lots_match_through_originating_purchase(self):
        f = LedgerFilter(date(2024, 1, 1), date(2024, 12, 31), search="silver")

        assert [lot.id for lot in f.lots_matching_search(self.lots, self.transactions)] == ["p2"]

    def test_lot_without_purchase_never_matches_search(self):
        f = LedgerFilter(date(2024, 1, 1), date(2024, 12, 31), search="o")

        ids = [lot.id for lot in f.lots_matching_search(self.lots, self.transactions)]

        assert "orphan" not in ids

    def test_lots_by_date_and_search(self):
        f = LedgerFilter(date(2024, 1, 1), date(2024, 1, 31), search="traders")

        assert [lot.id for lot in f.lots(self.lots, self.transactions)] == ["p1"]

    def test_search_ignores_lot_dates(self):
        f = LedgerFilter(date(2024, 3, 1), date(2024, 3, 31), search="silver")

        assert [lot.id for lot in f.lots_matching_search(self.lots, self.transactions)] == ["p2"]
        assert f.lots(self.lots, self.transactions) == []
