"""
Module: bullion_engines.aging
Responsibility:
    Age open stock lots and classify them into quantity-weighted aging
    buckets, with a quantity-weighted average age across all open lots.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    "Now" is supplied by the caller or an injected Clock.

Invariants enforced:
    - Only lots with remaining_quantity > 0 are aged.
    - Age is whole days, rounded up: ceil(|now - lot date| / 1 day), with
      the lot date taken as UTC midnight.
    - Every bucket of the bucket set appears in the result, zero-filled.
    - Empty input gives zero totals and a zero average, never a fault.

Failure modes:
    - ValueError when an age does not fall into any configured bucket.

Usage:
    from bullion_engines.aging import StockAgingCalculator

    stats = StockAgingCalculator(clock).age_lots(lots)
    stats.quantity_by_bucket()["30+"]
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal

from bullion_engines.tracer import traced_engine
from bullion_kernel.domain.clock import Clock, SystemClock
from bullion_kernel.domain.entities import Lot
from bullion_kernel.domain.values import ZERO, safe_divide
from bullion_kernel.logging_config import get_logger

logger = get_logger("engines.aging")


@dataclass(frozen=True)
class AgeBucket:
    """
    Definition of an aging bucket.

    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    Non-goals:
        - Does not enforce mutual exclusion across a bucket *set*; that
          is the caller's responsibility.
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded (e.g., 30+)

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        """Check if age falls within this bucket."""
        if age_days < self.min_days:
            return False
        if self.max_days is None:
            return True
        return age_days <= self.max_days


STOCK_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("0-7", 0, 7),
    AgeBucket("8-15", 8, 15),
    AgeBucket("16-30", 16, 30),
    AgeBucket("30+", 31, None),
)

STALE_BUCKET = "30+"


@dataclass(frozen=True)
class AgedLot:
    """An open lot with its age classification."""

    lot_id: str
    lot_date: date
    remaining_quantity: Decimal
    age_days: int
    bucket: AgeBucket


@dataclass(frozen=True)
class AgingStats:
    """
    Aging snapshot of open stock.

    Guarantees:
        - ``quantity_by_bucket()`` covers every bucket in ``self.buckets``.
        - ``total_quantity`` equals the sum over all buckets.
    """

    as_of: datetime
    buckets: tuple[AgeBucket, ...]
    items: tuple[AgedLot, ...]

    @property
    def total_quantity(self) -> Decimal:
        return sum((i.remaining_quantity for i in self.items), ZERO)

    @property
    def weighted_average_age(self) -> Decimal:
        """Average age in days, weighted by remaining quantity."""
        weighted = sum((i.remaining_quantity * i.age_days for i in self.items), ZERO)
        return safe_divide(weighted, self.total_quantity)

    def quantity_by_bucket(self) -> dict[str, Decimal]:
        result = {bucket.name: ZERO for bucket in self.buckets}
        for item in self.items:
            result[item.bucket.name] += item.remaining_quantity
        return result

    def quantity_in(self, bucket_name: str) -> Decimal:
        return self.quantity_by_bucket().get(bucket_name, ZERO)

    def items_in_bucket(self, bucket_name: str) -> tuple[AgedLot, ...]:
        return tuple(i for i in self.items if i.bucket.name == bucket_name)


class StockAgingCalculator:
    """
    Age open lots against the current time.

    Contract:
        Pure apart from reading the injected clock when ``now`` is not
        passed explicitly.
    """

    DEFAULT_BUCKETS = STOCK_BUCKETS

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    @staticmethod
    def calculate_age(lot_date: date, now: datetime) -> int:
        """Whole days between ``now`` and the lot date, rounded up."""
        start = datetime.combine(lot_date, time(), tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        delta = abs(now - start)
        partial = 1 if (delta.seconds or delta.microseconds) else 0
        return delta.days + partial

    def classify(
        self,
        age_days: int,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgeBucket:
        """
        Classify age into a bucket.

        Raises:
            ValueError: If age doesn't fit any bucket.
        """
        if buckets is None:
            buckets = self.DEFAULT_BUCKETS

        for bucket in buckets:
            if bucket.contains(age_days):
                return bucket

        logger.warning("age_classification_no_bucket", extra={
            "age_days": age_days,
            "bucket_count": len(buckets),
        })
        raise ValueError(f"Age {age_days} does not fit any bucket")

    @traced_engine("aging", "1.0", fingerprint_fields=("now",))
    def age_lots(
        self,
        lots: Iterable[Lot],
        now: datetime | None = None,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgingStats:
        """Age every open lot and bucket it by remaining quantity."""
        if buckets is None:
            buckets = self.DEFAULT_BUCKETS
        if now is None:
            now = self._clock.now()

        items: list[AgedLot] = []
        for lot in lots:
            if lot.remaining_quantity <= ZERO:
                continue
            age = self.calculate_age(lot.lot_date, now)
            items.append(AgedLot(
                lot_id=lot.id,
                lot_date=lot.lot_date,
                remaining_quantity=lot.remaining_quantity,
                age_days=age,
                bucket=self.classify(age, buckets),
            ))

        stats = AgingStats(as_of=now, buckets=tuple(buckets), items=tuple(items))

        logger.info("stock_aging_calculated", extra={
            "as_of": now.isoformat(),
            "open_lots": len(items),
            "total_quantity": str(stats.total_quantity),
        })

        return stats
