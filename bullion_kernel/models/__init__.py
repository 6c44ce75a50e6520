"""ORM models for ledger snapshot persistence."""

from bullion_kernel.models.ledger import LotModel, TransactionModel

__all__ = ["LotModel", "TransactionModel"]
