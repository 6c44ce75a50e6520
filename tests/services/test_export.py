"""
Tests for tabular export projections and CSV rendering.
"""

import csv
import io
from datetime import date
from decimal import Decimal

from bullion_engines.counterparty import customer_stats, supplier_stats
from bullion_engines.trends import monthly_ledger
from bullion_services.export import (
    customers_table,
    inventory_table,
    monthly_table,
    suppliers_table,
    to_csv,
    transactions_table,
)


def _parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestProjections:
    def test_transactions_table(self, ledger):
        ledger.record_purchase("2024-01-01", "Supplier, Ltd", 100, 6000)
        ledger.record_sale("2024-01-02", "Customer X", 40, 6500)

        table = transactions_table(ledger.transactions)

        assert table.headers[0] == "Date"
        assert table.rows[0][8] == Decimal("0")
        assert table.rows[1][8] == Decimal("20000")
        assert table.as_dicts()[1]["Party"] == "Customer X"

    def test_inventory_status(self, ledger):
        ledger.record_purchase("2024-01-01", "A", 10, 6000)
        ledger.record_purchase("2024-01-02", "B", 10, 6100)
        ledger.record_sale("2024-01-03", "X", 10, 6500)

        rows = inventory_table(ledger.lots).as_dicts()

        assert [r["Status"] for r in rows] == ["Closed", "Active"]
        assert rows[1]["Total Value (INR)"] == Decimal("61000")

    def test_supplier_and_customer_tables(self, ledger):
        ledger.record_purchase("2024-01-01", "A", 10, 6000)
        ledger.record_sale("2024-01-03", "X", 5, 6500)

        suppliers = suppliers_table(supplier_stats(ledger.transactions))
        customers = customers_table(customer_stats(ledger.transactions))

        assert suppliers.rows[0][0] == "A"
        assert suppliers.rows[0][6] == Decimal("0")
        assert customers.rows[0][0] == "X"
        assert customers.rows[0][6] == "Regular (High Margin)"

    def test_monthly_table(self, ledger):
        ledger.record_purchase("2024-01-01", "A", 10, 6000)
        ledger.record_sale("2024-01-03", "X", 5, 6500)

        [row] = monthly_table(monthly_ledger(ledger.transactions)).rows

        assert row[0] == "January 2024"


class TestToCsv:
    def test_round_trips_through_csv_reader(self, ledger):
        ledger.record_purchase(date(2024, 1, 1), 'Supplier, "Gold" Ltd', 100, 6000)

        rows = _parse(to_csv(transactions_table(ledger.transactions)))

        assert rows[0][:3] == ["Date", "Type", "Party"]
        assert rows[1][2] == 'Supplier, "Gold" Ltd'
        assert rows[1][3] == "100"

    def test_text_quoted_numbers_not(self, ledger):
        ledger.record_purchase("2024-01-01", "Supplier A", 100, 6000)

        line = to_csv(transactions_table(ledger.transactions)).splitlines()[1]

        assert '"Supplier A"' in line
        assert ",100," in line

    def test_empty_table_has_header_only(self):
        text = to_csv(transactions_table([]))

        assert len(text.splitlines()) == 1
