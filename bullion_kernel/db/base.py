"""
Module: bullion_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models.  Provides
    the type annotation map for consistent column types.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, domain/, or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(38, 9).  Gram quantities carry four significant decimals and
      rupee amounts two, both well inside nine.  NEVER use float.
    - Calendar days: date maps to Date (no time component).
    - Opaque identifiers: ledger ids are strings chosen by the ledger, not
      database-generated, so the same id survives every snapshot round trip.
"""

from datetime import date
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, Date, Numeric
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - Decimal maps to Numeric(38, 9).
        - date maps to Date.
        - int maps to BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        date: Date,
        int: BigInteger,
    }
