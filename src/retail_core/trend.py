"""Trend comparator: per-partition metric change between two periods.

The metric is summed independently for each period (two aggregate() calls),
then the two results are inner-joined on the partition value. A partition
missing from either period has no baseline and is dropped; it is never
zero-filled.

Percentage change is ``(value_a - value_b) / value_a * 100`` where period A
is the base period. A zero base value makes it undefined: the partition is
excluded explicitly and reported in ``TrendReport.undefined``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from retail_core.aggregate import DimensionLike, aggregate
from retail_core.config import DEFAULT_CONFIG
from retail_core.exceptions import UndefinedTrendError
from retail_core.records import RecordPredicate, TransactionRecord

logger = logging.getLogger(__name__)

DECREASE = "decrease"
INCREASE = "increase"


@dataclass(frozen=True)
class TrendDelta:
    """Metric values of one partition in two periods.

    Attributes:
        partition: Partition value, e.g. a branch identifier.
        value_a: Metric in the base period (A).
        value_b: Metric in the comparison period (B).
        percent_change: (value_a - value_b) / value_a * 100, rounded.
    """

    partition: Any
    value_a: Decimal
    value_b: Decimal
    percent_change: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {
            "partition": self.partition,
            "value_a": self.value_a,
            "value_b": self.value_b,
            "percent_change": self.percent_change,
        }


@dataclass(frozen=True)
class TrendReport(Sequence[TrendDelta]):
    """Ordered result of compare_trend().

    Attributes:
        deltas: Comparable partitions, sorted and truncated.
        excluded: Records dropped because their date could not be parsed.
        undefined: Partitions dropped because their base value was zero.
    """

    deltas: tuple[TrendDelta, ...] = ()
    excluded: int = 0
    undefined: tuple[Any, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.deltas)

    def __iter__(self) -> Iterator[TrendDelta]:
        return iter(self.deltas)

    def __getitem__(self, index):  # type: ignore[override]
        return self.deltas[index]


def percent_change(
    value_a: Decimal,
    value_b: Decimal,
    places: int = DEFAULT_CONFIG.percent_places,
    partition: Any = None,
) -> Decimal:
    """Return (value_a - value_b) / value_a * 100 rounded half away from zero.

    Raises:
        UndefinedTrendError: If value_a is zero.

    Examples:
        >>> percent_change(Decimal("100"), Decimal("80"))
        Decimal('20.00')
    """
    if value_a == 0:
        raise UndefinedTrendError(partition)
    change = (Decimal(value_a) - Decimal(value_b)) / Decimal(value_a) * 100
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the requested places
        ctx.prec = max(ctx.prec, change.adjusted() + places + 2)
        return change.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def compare_trend(
    records: Iterable[TransactionRecord],
    partition_by: DimensionLike,
    period_a: RecordPredicate,
    period_b: RecordPredicate,
    *,
    metric: str | Callable[[TransactionRecord], Any] = "total",
    direction: str = DECREASE,
    limit: int = DEFAULT_CONFIG.trend_limit,
    places: int = DEFAULT_CONFIG.percent_places,
) -> TrendReport:
    """Compare the summed metric per partition between two periods.

    Args:
        records: Transaction records.
        partition_by: Partition dimension, usually "branch".
        period_a: Predicate selecting base-period records.
        period_b: Predicate selecting comparison-period records.
        metric: Record field (or callable) summed per partition; default "total".
        direction: "decrease" keeps value_a > value_b, "increase" keeps
            value_b > value_a.
        limit: Maximum number of deltas returned.
        places: Decimal places of the percentage change.

    Returns:
        TrendReport sorted by percentage-change magnitude (largest first),
        ties by partition value.

    Raises:
        ValueError: If direction is invalid or limit is negative.

    Examples:
        >>> report = compare_trend(store, "branch", in_year(2022), in_year(2023))
        >>> [(d.partition, d.percent_change) for d in report]
        [('WALM045', Decimal('57.51')), ...]

    """
    if direction not in (DECREASE, INCREASE):
        raise ValueError(f"Invalid direction '{direction}'. Must be 'decrease' or 'increase'.")
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    # Both passes read the records, so materialise one-shot iterators
    if isinstance(records, Iterator):
        records = list(records)

    metrics = {"value": (metric, "sum")}
    table_a = aggregate(records, [partition_by], metrics, where=period_a)
    table_b = aggregate(records, [partition_by], metrics, where=period_b)

    values_a = {row.key[0]: row.metrics["value"] for row in table_a}
    values_b = {row.key[0]: row.metrics["value"] for row in table_b}

    deltas: list[TrendDelta] = []
    undefined: list[Any] = []
    for partition, value_a in values_a.items():
        if partition not in values_b:
            logger.debug("Partition %r missing from comparison period; skipped", partition)
            continue
        value_b = values_b[partition]
        try:
            change = percent_change(value_a, value_b, places, partition=partition)
        except UndefinedTrendError:
            undefined.append(partition)
            continue

        keep = value_a > value_b if direction == DECREASE else value_b > value_a
        if keep:
            deltas.append(TrendDelta(partition, value_a, value_b, change))

    if undefined:
        logger.warning(
            "Excluded %d partition(s) with zero base-period value: %s", len(undefined), undefined
        )

    deltas.sort(key=lambda d: (-abs(d.percent_change), str(d.partition)))
    excluded = max(table_a.excluded, table_b.excluded)

    logger.info(
        "Trend comparison (%s): %d comparable partition(s), returning %d",
        direction,
        len(deltas),
        min(limit, len(deltas)),
    )

    return TrendReport(
        deltas=tuple(deltas[:limit]),
        excluded=excluded,
        undefined=tuple(sorted(undefined, key=str)),
    )
