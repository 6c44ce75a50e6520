"""
bullion_services.persistence -- Snapshot stores for the ledger's two collections.

Responsibility:
    Save and load the complete (transactions, lots) pair.  Every save
    replaces the previous snapshot; there is no incremental path.

Architecture position:
    Services -- the persistence collaborator of LedgerService.
    ``JsonSnapshotStore`` keeps one JSON document on disk;
    ``SqlSnapshotStore`` keeps two tables via bullion_kernel.models.

Invariants enforced:
    - Round trip: load() returns entities equal to those saved, in the
      same order (lot order is the FIFO tie-break; transaction order
      defines "most recent").
    - The wire ``transactions`` array is newest first, the order the
      dashboard app keeps; memory stays in recorded (oldest first) order,
      so the array is reversed on save and on load.  Version 1 documents
      were written oldest first and are read as such.
    - Wire names follow the published snapshot layout (``partyName``,
      ``quantityGrams``, ...).  Decimals are written as strings; loading
      accepts numbers or strings, and ``kind`` as an alias of ``type``.
    - SqlSnapshotStore replaces the snapshot inside one database
      transaction.

Failure modes:
    - SnapshotFormatError when a stored document cannot be decoded.
    - OSError / SQLAlchemyError propagate from the underlying storage.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from bullion_kernel.db.engine import session_scope
from bullion_kernel.domain.entities import Lot, LotAllocation, Transaction
from bullion_kernel.domain.values import ZERO, TransactionKind, to_day, to_decimal
from bullion_kernel.exceptions import SnapshotFormatError
from bullion_kernel.logging_config import get_logger
from bullion_kernel.models.ledger import LotModel, TransactionModel

logger = get_logger("services.persistence")

SNAPSHOT_VERSION = 2
_OLDEST_FIRST_VERSION = 1

Snapshot = tuple[list[Transaction], list[Lot]]


class SnapshotStore(Protocol):
    """Persistence collaborator: full snapshot in, full snapshot out."""

    def load(self) -> Snapshot: ...

    def save(self, transactions: Sequence[Transaction], lots: Sequence[Lot]) -> None: ...


# =============================================================================
# Wire format
# =============================================================================


def _dec(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _opt_dec(data: dict[str, Any], key: str) -> Decimal | None:
    value = data.get(key)
    return None if value is None else to_decimal(value)


def transaction_to_wire(tx: Transaction) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": tx.id,
        "date": tx.transaction_date.isoformat(),
        "type": tx.kind.value,
        "partyName": tx.counterparty,
        "quantityGrams": str(tx.quantity),
        "ratePerGram": str(tx.unit_rate),
        "gstRate": str(tx.tax_rate),
        "gstAmount": str(tx.tax_amount),
        "taxableAmount": str(tx.taxable_amount),
        "totalAmount": str(tx.gross_amount),
    }
    if tx.is_sale:
        record["cogs"] = _dec(tx.cogs)
        record["profit"] = _dec(tx.profit)
        record["allocations"] = [allocation_to_wire(a) for a in tx.allocations]
    return record


def allocation_to_wire(allocation: LotAllocation) -> dict[str, str]:
    return {
        "lotId": allocation.lot_id,
        "quantity": str(allocation.quantity),
        "unitCost": str(allocation.unit_cost),
    }


def allocation_from_wire(data: dict[str, Any]) -> LotAllocation:
    return LotAllocation(
        lot_id=str(data["lotId"]),
        quantity=to_decimal(data["quantity"]),
        unit_cost=to_decimal(data["unitCost"]),
    )


def transaction_from_wire(data: dict[str, Any]) -> Transaction:
    """
    Decode one transaction record.

    Stored derived amounts are taken as-is rather than recomputed, except
    ``taxableAmount`` which older snapshots omit.

    Raises:
        KeyError, ValueError, TypeError: on a malformed record.
    """
    kind = TransactionKind(str(data.get("type", data.get("kind"))).upper())
    quantity = to_decimal(data["quantityGrams"])
    rate = to_decimal(data["ratePerGram"])
    taxable = _opt_dec(data, "taxableAmount")
    if taxable is None:
        taxable = quantity * rate
    return Transaction(
        id=str(data["id"]),
        transaction_date=to_day(data["date"]),
        kind=kind,
        counterparty=str(data["partyName"]),
        quantity=quantity,
        unit_rate=rate,
        tax_rate=to_decimal(data["gstRate"]),
        tax_amount=to_decimal(data["gstAmount"]),
        taxable_amount=taxable,
        gross_amount=to_decimal(data["totalAmount"]),
        cogs=_opt_dec(data, "cogs") if kind is TransactionKind.SALE else None,
        profit=_opt_dec(data, "profit") if kind is TransactionKind.SALE else None,
        allocations=tuple(allocation_from_wire(a) for a in data.get("allocations") or ()),
    )


def lot_to_wire(lot: Lot) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": lot.id,
        "date": lot.lot_date.isoformat(),
        "originalQuantity": str(lot.original_quantity),
        "remainingQuantity": str(lot.remaining_quantity),
        "costPerGram": str(lot.unit_cost),
        "totalRevenue": str(lot.cumulative_revenue),
    }
    if lot.closed_date is not None:
        record["closedDate"] = lot.closed_date.isoformat()
    return record


def lot_from_wire(data: dict[str, Any]) -> Lot:
    closed = data.get("closedDate")
    return Lot(
        id=str(data["id"]),
        lot_date=to_day(data["date"]),
        original_quantity=to_decimal(data["originalQuantity"]),
        remaining_quantity=to_decimal(data["remainingQuantity"]),
        unit_cost=to_decimal(data["costPerGram"]),
        closed_date=to_day(closed) if closed else None,
        cumulative_revenue=_opt_dec(data, "totalRevenue") or ZERO,
    )


def snapshot_to_wire(
    transactions: Sequence[Transaction],
    lots: Sequence[Lot],
) -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "transactions": [transaction_to_wire(tx) for tx in reversed(transactions)],
        "lots": [lot_to_wire(lot) for lot in lots],
    }


def snapshot_from_wire(data: Any, source: str) -> Snapshot:
    """Decode a whole snapshot document, wrapping any decode fault."""
    if not isinstance(data, dict):
        raise SnapshotFormatError(source, "top level must be an object")
    try:
        transactions = [transaction_from_wire(r) for r in data.get("transactions") or []]
        lots = [lot_from_wire(r) for r in data.get("lots") or []]
    except (KeyError, ValueError, TypeError) as e:
        logger.error("snapshot_decode_failed", extra={"source": source, "detail": str(e)})
        raise SnapshotFormatError(source, f"{type(e).__name__}: {e}") from e
    if data.get("version") != _OLDEST_FIRST_VERSION:
        transactions.reverse()
    return transactions, lots


# =============================================================================
# JSON file store
# =============================================================================


class JsonSnapshotStore:
    """
    Snapshot kept as one JSON document.

    Saves write a temporary file beside the target and rename it into
    place, so a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Snapshot:
        if not self.path.exists():
            logger.info("snapshot_missing", extra={"path": str(self.path)})
            return [], []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise SnapshotFormatError(str(self.path), str(e)) from e
        transactions, lots = snapshot_from_wire(data, str(self.path))
        logger.info("snapshot_loaded", extra={
            "path": str(self.path),
            "transaction_count": len(transactions),
            "lot_count": len(lots),
        })
        return transactions, lots

    def save(self, transactions: Sequence[Transaction], lots: Sequence[Lot]) -> None:
        document = json.dumps(snapshot_to_wire(transactions, lots), indent=2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
        logger.debug("snapshot_saved", extra={
            "path": str(self.path),
            "transaction_count": len(transactions),
            "lot_count": len(lots),
        })


# =============================================================================
# SQL store
# =============================================================================


def _transaction_to_model(tx: Transaction, position: int) -> TransactionModel:
    return TransactionModel(
        id=tx.id,
        position=position,
        transaction_date=tx.transaction_date,
        kind=tx.kind.value,
        party_name=tx.counterparty,
        quantity_grams=tx.quantity,
        rate_per_gram=tx.unit_rate,
        gst_rate=tx.tax_rate,
        gst_amount=tx.tax_amount,
        taxable_amount=tx.taxable_amount,
        total_amount=tx.gross_amount,
        cogs=tx.cogs,
        profit=tx.profit,
        allocations=[allocation_to_wire(a) for a in tx.allocations] if tx.is_sale else None,
    )


def _transaction_from_model(row: TransactionModel) -> Transaction:
    return Transaction(
        id=row.id,
        transaction_date=row.transaction_date,
        kind=TransactionKind(row.kind),
        counterparty=row.party_name,
        quantity=row.quantity_grams,
        unit_rate=row.rate_per_gram,
        tax_rate=row.gst_rate,
        tax_amount=row.gst_amount,
        taxable_amount=row.taxable_amount,
        gross_amount=row.total_amount,
        cogs=row.cogs,
        profit=row.profit,
        allocations=tuple(allocation_from_wire(a) for a in row.allocations or ()),
    )


def _lot_to_model(lot: Lot, position: int) -> LotModel:
    return LotModel(
        id=lot.id,
        position=position,
        lot_date=lot.lot_date,
        original_quantity=lot.original_quantity,
        remaining_quantity=lot.remaining_quantity,
        cost_per_gram=lot.unit_cost,
        closed_date=lot.closed_date,
        total_revenue=lot.cumulative_revenue,
    )


def _lot_from_model(row: LotModel) -> Lot:
    return Lot(
        id=row.id,
        lot_date=row.lot_date,
        original_quantity=row.original_quantity,
        remaining_quantity=row.remaining_quantity,
        unit_cost=row.cost_per_gram,
        closed_date=row.closed_date,
        cumulative_revenue=row.total_revenue if row.total_revenue is not None else ZERO,
    )


class SqlSnapshotStore:
    """
    Snapshot kept in the ``ledger_transactions`` and ``ledger_lots`` tables.

    Contract:
        Receives a session factory via constructor injection; falls back
        to the module-level factory from bullion_kernel.db.engine.

    Precision:
        Amount columns are ``Numeric(38, 9)``.  Values with more than nine
        decimal places (derived amounts such as ``taxable_amount`` or
        ``profit`` on fractional quantities) come back rounded to nine
        places; on SQLite they also pass through a float.  The JSON store
        keeps every digit.  Use JsonSnapshotStore where exact round trips
        of such values matter.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    def load(self) -> Snapshot:
        with session_scope(self._session_factory) as session:
            tx_rows = session.scalars(
                select(TransactionModel).order_by(TransactionModel.position)
            ).all()
            lot_rows = session.scalars(
                select(LotModel).order_by(LotModel.position)
            ).all()
            try:
                transactions = [_transaction_from_model(r) for r in tx_rows]
                lots = [_lot_from_model(r) for r in lot_rows]
            except (KeyError, ValueError, TypeError) as e:
                raise SnapshotFormatError("database", f"{type(e).__name__}: {e}") from e

        logger.info("snapshot_loaded", extra={
            "source": "database",
            "transaction_count": len(transactions),
            "lot_count": len(lots),
        })
        return transactions, lots

    def save(self, transactions: Sequence[Transaction], lots: Sequence[Lot]) -> None:
        with session_scope(self._session_factory) as session:
            session.execute(delete(LotModel))
            session.execute(delete(TransactionModel))
            session.add_all(_transaction_to_model(tx, i) for i, tx in enumerate(transactions))
            session.add_all(_lot_to_model(lot, i) for i, lot in enumerate(lots))

        logger.debug("snapshot_saved", extra={
            "source": "database",
            "transaction_count": len(transactions),
            "lot_count": len(lots),
        })
