"""
Module: bullion_engines.filters
Responsibility:
    Select the slice of the ledger a report looks at: an inclusive date
    range plus an optional case-insensitive counterparty substring.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Lots have no counterparty of their own; a lot matches the search
      through the purchase that opened it (shared id).  A lot whose
      purchase is unknown never matches a non-empty search.
    - An empty or whitespace-only search matches everything.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from bullion_kernel.domain.entities import Lot, Transaction


@dataclass(frozen=True)
class LedgerFilter:
    """
    Date range and counterparty search applied to ledger collections.

    A range whose start falls after its end matches no dated record;
    search-only slices are unaffected.
    """

    start: date
    end: date
    search: str | None = None

    @property
    def query(self) -> str:
        return (self.search or "").strip().lower()

    def in_range(self, day: date) -> bool:
        return self.start <= day <= self.end

    def matches_party(self, name: str) -> bool:
        query = self.query
        return not query or query in name.lower()

    def transactions(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        """Transactions dated in range whose counterparty matches the search."""
        return [
            tx for tx in transactions
            if self.in_range(tx.transaction_date) and self.matches_party(tx.counterparty)
        ]

    def lots_matching_search(
        self,
        lots: Iterable[Lot],
        transactions: Iterable[Transaction],
    ) -> list[Lot]:
        """Lots whose originating purchase matches the search, any date."""
        if not self.query:
            return list(lots)
        parties = {tx.id: tx.counterparty for tx in transactions if tx.is_purchase}
        return [
            lot for lot in lots
            if lot.id in parties and self.matches_party(parties[lot.id])
        ]

    def lots(
        self,
        lots: Iterable[Lot],
        transactions: Iterable[Transaction],
    ) -> list[Lot]:
        """Lots opened in range whose originating purchase matches the search."""
        return [
            lot for lot in self.lots_matching_search(lots, transactions)
            if self.in_range(lot.lot_date)
        ]
