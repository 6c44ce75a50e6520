"""
Pytest fixtures for the bullion ledger test suite.

Provides:
- Structured log capture
- Deterministic clock
- Fresh in-memory ledgers with predictable ids
- SQLite-backed session factories for snapshot persistence
"""

import itertools
import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from bullion_config import get_active_config
from bullion_kernel.db.engine import create_tables, drop_tables
from bullion_kernel.domain.clock import DeterministicClock
from bullion_kernel.domain.entities import Lot, Transaction
from bullion_kernel.domain.values import TransactionKind
from bullion_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from bullion_services.ledger_service import LedgerService


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, handler=logging.NullHandler())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture bullion logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.record_purchase(...)
            logs = captured_logs()
            assert any(r["message"] == "lot_opened" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("bullion")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock():
    """Clock fixed at 2024-02-15 12:00 UTC."""
    return DeterministicClock(datetime(2024, 2, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def config():
    return get_active_config()


@pytest.fixture
def id_factory():
    """Sequential ids: tx-0001, tx-0002, ..."""
    counter = itertools.count(1)
    return lambda: f"tx-{next(counter):04d}"


@pytest.fixture
def ledger(clock, config, id_factory):
    """Fresh in-memory ledger with no snapshot store."""
    return LedgerService(clock=clock, config=config, id_factory=id_factory)


def make_purchase(
    tx_id: str,
    day: date,
    quantity: str,
    rate: str,
    party: str = "Supplier A",
    tax: str = "3",
) -> Transaction:
    return Transaction.create(
        transaction_id=tx_id,
        transaction_date=day,
        kind=TransactionKind.PURCHASE,
        counterparty=party,
        quantity=Decimal(quantity),
        unit_rate=Decimal(rate),
        tax_rate=Decimal(tax),
    )


def make_sale(
    tx_id: str,
    day: date,
    quantity: str,
    rate: str,
    cogs: str,
    party: str = "Customer X",
    tax: str = "3",
) -> Transaction:
    return Transaction.create(
        transaction_id=tx_id,
        transaction_date=day,
        kind=TransactionKind.SALE,
        counterparty=party,
        quantity=Decimal(quantity),
        unit_rate=Decimal(rate),
        tax_rate=Decimal(tax),
        cogs=Decimal(cogs),
    )


def make_lot(lot_id: str, day: date, quantity: str, cost: str, remaining: str | None = None) -> Lot:
    return Lot(
        id=lot_id,
        lot_date=day,
        original_quantity=Decimal(quantity),
        remaining_quantity=Decimal(remaining if remaining is not None else quantity),
        unit_cost=Decimal(cost),
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def sqlite_session_factory(tmp_path):
    """Session factory over a throwaway SQLite file with the ledger tables."""
    engine = create_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    create_tables(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    yield factory
    drop_tables(engine)
    engine.dispose()
