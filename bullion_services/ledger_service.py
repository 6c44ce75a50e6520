"""
bullion_services.ledger_service -- The ledger facade: record, value, summarize.

Responsibility:
    Accept purchases and sales, keep the transaction log and the lot set
    consistent, hand every new state to the snapshot store, and expose
    point-in-time valuation and the dashboard summary.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Owns one ``LedgerStore``; there is no module-level ledger state.
    Composes validate_draft (capture checks), allocate_fifo (sales),
    replay_inventory_value (valuation) and ReportingService (analytics).

Invariants enforced:
    - One lot per purchase, same id and date; lots stay stable-sorted by
      date so same-day lots drain in insertion order.
    - Atomic sales: a sale short by more than SHORTFALL_EPSILON raises
      InsufficientStockError and neither the lots nor the log change.
    - Sum of remaining lot quantity equals current stock.
    - Transactions are append-only; cogs and profit are fixed at creation.

Failure modes:
    - ValidationError subclasses from validate_draft.
    - InsufficientStockError from record_sale.
    - Errors from the snapshot store propagate after the in-memory
      mutation has been applied.

Usage:
    ledger = LedgerService(config=get_active_config())
    ledger.record_purchase("2024-01-01", "Supplier A", 100, 6000, 3)
    sale = ledger.record_sale("2024-01-05", "Customer X", 60, 6500, 3)
    sale.profit            # Decimal("30000")
    ledger.value_as_of("2024-01-31")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from bullion_config import BullionConfig, get_active_config
from bullion_engines.aging import StockAgingCalculator
from bullion_engines.allocation import allocate_fifo, available_quantity
from bullion_engines.filters import LedgerFilter
from bullion_engines.valuation import replay_inventory_value
from bullion_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from bullion_kernel.domain.clock import Clock, SystemClock
from bullion_kernel.domain.entities import Lot, Transaction
from bullion_kernel.domain.values import (
    SHORTFALL_EPSILON,
    TransactionKind,
    to_day,
    to_decimal,
)
from bullion_kernel.exceptions import InsufficientStockError
from bullion_kernel.logging_config import LogContext, get_logger
from bullion_services.persistence import JsonSnapshotStore, SnapshotStore, SqlSnapshotStore
from bullion_services.reporting_service import LedgerSummary, ReportingService
from bullion_services.validation import TransactionDraft, ValidatedDraft, validate_draft

logger = get_logger("services.ledger")


class LedgerStore:
    """
    In-memory ledger state: the transaction log and the lot set.

    ``lots`` is kept in FIFO order (ascending date, insertion order on
    ties).  Lots are never removed except by ``clear``.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        lots: Iterable[Lot] = (),
    ):
        self.transactions: list[Transaction] = list(transactions)
        self.lots: list[Lot] = list(lots)

    @property
    def current_stock(self) -> Decimal:
        return available_quantity(self.lots)

    def add_purchase(self, purchase: Transaction, lot: Lot) -> None:
        self.transactions.append(purchase)
        self.lots.append(lot)
        self.lots.sort(key=lambda x: x.lot_date)

    def add_sale(self, sale: Transaction) -> None:
        self.transactions.append(sale)

    def replace(self, transactions: Iterable[Transaction], lots: Iterable[Lot]) -> None:
        self.transactions = list(transactions)
        self.lots = sorted(lots, key=lambda x: x.lot_date)

    def clear(self) -> None:
        self.transactions.clear()
        self.lots.clear()


class LedgerService:
    """
    Ledger facade.

    Contract:
        Collaborators (store, snapshot store, clock, config, id factory)
        are injected; all default to stand-alone in-memory operation.
    Guarantees:
        - ``record_purchase`` opens exactly one lot.
        - ``record_sale`` either commits fully or raises with nothing
          changed.
        - The snapshot store, when attached, sees every committed state.
    Non-goals:
        - No concurrent writers.  Read-only queries may run alongside
          each other, never alongside a mutation.
    """

    def __init__(
        self,
        store: LedgerStore | None = None,
        snapshot_store: SnapshotStore | None = None,
        clock: Clock | None = None,
        config: BullionConfig | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._store = store or LedgerStore()
        self._snapshots = snapshot_store
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._new_id = id_factory or (lambda: uuid4().hex)
        self._lock_date = self._config.ledger.lock_date
        self._reporting = ReportingService(
            aging=StockAgingCalculator(self._clock),
            alert_thresholds=self._config.alerts,
            behavior_thresholds=self._config.behavior,
        )

    @classmethod
    def from_config(
        cls,
        config: BullionConfig,
        clock: Clock | None = None,
    ) -> LedgerService:
        """Build a ledger wired to the configured storage and load its snapshot."""
        snapshots: SnapshotStore | None = None
        if config.storage.database_url:
            engine = init_engine_from_url(config.storage.database_url)
            create_tables(engine)
            snapshots = SqlSnapshotStore(get_session_factory())
        elif config.storage.json_path:
            snapshots = JsonSnapshotStore(config.storage.json_path)

        service = cls(snapshot_store=snapshots, clock=clock, config=config)
        if snapshots is not None:
            service.load()
        return service

    # =========================================================================
    # State views
    # =========================================================================

    @property
    def config(self) -> BullionConfig:
        return self._config

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return tuple(self._store.transactions)

    @property
    def lots(self) -> tuple[Lot, ...]:
        return tuple(self._store.lots)

    @property
    def current_stock(self) -> Decimal:
        return self._store.current_stock

    @property
    def lock_date(self) -> date | None:
        return self._lock_date

    @lock_date.setter
    def lock_date(self, value: date | str | None) -> None:
        self._lock_date = to_day(value) if value else None
        logger.info("lock_date_changed", extra={
            "lock_date": self._lock_date.isoformat() if self._lock_date else None,
        })

    def snapshot(self) -> tuple[list[Transaction], list[Lot]]:
        """Detached copies of both collections."""
        return list(self._store.transactions), [lot.copy() for lot in self._store.lots]

    # =========================================================================
    # Mutations
    # =========================================================================

    def record_purchase(
        self,
        transaction_date: date | str,
        counterparty: str,
        quantity: Decimal | int | float | str,
        unit_rate: Decimal | int | float | str,
        tax_rate: Decimal | int | float | str | None = None,
    ) -> Transaction:
        return self.record(TransactionDraft(
            transaction_date=transaction_date,
            kind=TransactionKind.PURCHASE,
            counterparty=counterparty,
            quantity=quantity,
            unit_rate=unit_rate,
            tax_rate=tax_rate,
        ))

    def record_sale(
        self,
        transaction_date: date | str,
        counterparty: str,
        quantity: Decimal | int | float | str,
        unit_rate: Decimal | int | float | str,
        tax_rate: Decimal | int | float | str | None = None,
    ) -> Transaction:
        return self.record(TransactionDraft(
            transaction_date=transaction_date,
            kind=TransactionKind.SALE,
            counterparty=counterparty,
            quantity=quantity,
            unit_rate=unit_rate,
            tax_rate=tax_rate,
        ))

    def record(self, draft: TransactionDraft) -> Transaction:
        """
        Validate a capture candidate and record it.

        Raises:
            ValidationError: If the draft fails a capture check.
            InsufficientStockError: If a sale exceeds the stock on hand.
        """
        # one correlation id per recording request
        with LogContext.bind(correlation_id=uuid4().hex):
            validated = validate_draft(
                draft,
                lock_date=self._lock_date,
                default_tax_rate=self._config.ledger.default_tax_rate,
            )
            if validated.kind is TransactionKind.PURCHASE:
                tx = self._apply_purchase(validated)
            else:
                tx = self._apply_sale(validated)
            self._persist()
        return tx

    def _apply_purchase(self, draft: ValidatedDraft) -> Transaction:
        purchase = Transaction.create(
            transaction_id=self._new_id(),
            transaction_date=draft.transaction_date,
            kind=TransactionKind.PURCHASE,
            counterparty=draft.counterparty,
            quantity=draft.quantity,
            unit_rate=draft.unit_rate,
            tax_rate=draft.tax_rate,
        )
        lot = Lot.open_from(purchase)
        self._store.add_purchase(purchase, lot)

        with LogContext.bind(transaction_id=purchase.id):
            logger.info("lot_opened", extra={
                "lot_id": lot.id,
                "lot_date": lot.lot_date.isoformat(),
                "quantity": str(lot.original_quantity),
                "unit_cost": str(lot.unit_cost),
                "counterparty": purchase.counterparty,
            })
        return purchase

    def _apply_sale(self, draft: ValidatedDraft) -> Transaction:
        available = self._store.current_stock
        if draft.quantity - available > SHORTFALL_EPSILON:
            logger.warning("sale_rejected_insufficient_stock", extra={
                "requested": str(draft.quantity),
                "available": str(available),
            })
            raise InsufficientStockError(requested=draft.quantity, available=available)

        sale_id = self._new_id()
        with LogContext.bind(transaction_id=sale_id):
            allocation = allocate_fifo(
                self._store.lots,
                draft.quantity,
                draft.unit_rate,
                draft.transaction_date,
            )
            sale = Transaction.create(
                transaction_id=sale_id,
                transaction_date=draft.transaction_date,
                kind=TransactionKind.SALE,
                counterparty=draft.counterparty,
                quantity=draft.quantity,
                unit_rate=draft.unit_rate,
                tax_rate=draft.tax_rate,
                cogs=allocation.total_cost,
                allocations=allocation.allocations,
            )
            self._store.add_sale(sale)

            logger.info("sale_allocated", extra={
                "quantity": str(sale.quantity),
                "cogs": str(sale.cogs),
                "profit": str(sale.profit),
                "lot_count": allocation.lot_count,
                "closed_lot_ids": list(allocation.closed_lot_ids),
                "counterparty": sale.counterparty,
            })
        return sale

    def reset(self) -> None:
        """Clear both collections."""
        self._store.clear()
        logger.warning("ledger_reset")
        self._persist()

    # =========================================================================
    # Persistence
    # =========================================================================

    def load(self) -> None:
        """Replace the in-memory state with the attached store's snapshot."""
        if self._snapshots is None:
            raise RuntimeError("No snapshot store attached to this ledger")
        transactions, lots = self._snapshots.load()
        self._store.replace(transactions, lots)

    def _persist(self) -> None:
        if self._snapshots is not None:
            self._snapshots.save(self._store.transactions, self._store.lots)

    # =========================================================================
    # Queries
    # =========================================================================

    def value_as_of(self, as_of: date | str) -> Decimal:
        """FIFO inventory value at the end of ``as_of``, by replay."""
        return replay_inventory_value(self._store.transactions, to_day(as_of))

    def summarize(
        self,
        start: date | str,
        end: date | str,
        search: str | None = None,
        market_rate: Decimal | int | float | str | None = None,
        now: datetime | None = None,
    ) -> LedgerSummary:
        """Dashboard summary for a date range and optional party search."""
        rate = to_decimal(market_rate) if market_rate not in (None, "") else None
        return self._reporting.summarize(
            self._store.transactions,
            self._store.lots,
            LedgerFilter(start=to_day(start), end=to_day(end), search=search),
            market_rate=rate,
            now=now,
        )
