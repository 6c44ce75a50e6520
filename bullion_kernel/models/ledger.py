"""
Module: bullion_kernel.models.ledger
Responsibility: ORM persistence for ledger snapshots: one row per transaction
    and one row per lot.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, domain/, or outer layers.

Invariants enforced:
    - Snapshot ordering.  ``position`` records each entity's index in the
      in-memory collection.  Lot order is the FIFO tie-break and transaction
      order defines "most recent", so both are restored exactly on load.
    - Sale-only columns.  cogs and profit are NULL for purchases.
    - Lot identity.  A lot's id equals the id of the purchase that opened it.

Failure modes:
    - IntegrityError on duplicate ids within one snapshot.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from bullion_kernel.db.base import Base


class TransactionModel(Base):
    """
    Persistent storage for purchase and sale transactions.

    Non-goals:
        - Rows are replaced wholesale on every snapshot save; there is no
          incremental update path.
    """

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        Index("idx_ledger_tx_date", "transaction_date"),
        Index("idx_ledger_tx_position", "position"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(nullable=False)
    transaction_date: Mapped[date] = mapped_column(nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    party_name: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity_grams: Mapped[Decimal] = mapped_column(nullable=False)
    rate_per_gram: Mapped[Decimal] = mapped_column(nullable=False)
    gst_rate: Mapped[Decimal] = mapped_column(nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(nullable=False)
    taxable_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    # Sales only
    cogs: Mapped[Decimal | None] = mapped_column(nullable=True)
    profit: Mapped[Decimal | None] = mapped_column(nullable=True)
    allocations: Mapped[list | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.id}: {self.kind} {self.quantity_grams} g "
            f"@ {self.rate_per_gram} on {self.transaction_date}>"
        )


class LotModel(Base):
    """Persistent storage for cost lots."""

    __tablename__ = "ledger_lots"

    __table_args__ = (
        Index("idx_ledger_lot_date", "lot_date"),
        Index("idx_ledger_lot_position", "position"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(nullable=False)
    lot_date: Mapped[date] = mapped_column(nullable=False)

    original_quantity: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_quantity: Mapped[Decimal] = mapped_column(nullable=False)
    cost_per_gram: Mapped[Decimal] = mapped_column(nullable=False)

    closed_date: Mapped[date | None] = mapped_column(nullable=True)
    total_revenue: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Lot {self.id}: {self.remaining_quantity}/{self.original_quantity} g "
            f"@ {self.cost_per_gram}>"
        )
