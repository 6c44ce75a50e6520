"""
Bullion Kernel

Entities, value helpers, clock, typed exceptions, structured logging and
SQLAlchemy persistence primitives for a FIFO lot-accounted bullion ledger:
- One cost lot per purchase
- Sales drain lots oldest first
- Cost of goods sold fixed at sale time
"""

__version__ = "0.1.0"
