"""
bullion_services -- Package init and public API.

Responsibility:
    Stateful orchestration: the ledger facade, capture validation, the
    dashboard summary, snapshot persistence and tabular export.  This is
    the only layer that holds ledger state or touches storage.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction:
        bullion_services/ -> bullion_engines/  (allowed)
        bullion_services/ -> bullion_kernel/   (allowed)
        bullion_services/ -> bullion_config/   (allowed)
        bullion_engines/  -> bullion_services/ (FORBIDDEN)
        bullion_kernel/   -> bullion_services/ (FORBIDDEN)
"""

from bullion_kernel.logging_config import get_logger

logger = get_logger("services")

from bullion_services.export import (
    Table,
    customers_table,
    inventory_table,
    monthly_table,
    suppliers_table,
    to_csv,
    transactions_table,
)
from bullion_services.ledger_service import LedgerService, LedgerStore
from bullion_services.persistence import (
    JsonSnapshotStore,
    SnapshotStore,
    SqlSnapshotStore,
)
from bullion_services.reporting_service import LedgerSummary, ReportingService
from bullion_services.validation import TransactionDraft, ValidatedDraft, validate_draft

__all__ = [
    "JsonSnapshotStore",
    "LedgerService",
    "LedgerStore",
    "LedgerSummary",
    "ReportingService",
    "SnapshotStore",
    "SqlSnapshotStore",
    "Table",
    "TransactionDraft",
    "ValidatedDraft",
    "customers_table",
    "inventory_table",
    "monthly_table",
    "suppliers_table",
    "to_csv",
    "transactions_table",
    "validate_draft",
]
