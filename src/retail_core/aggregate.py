"""Aggregator: grouped summary statistics over transaction records.

Records are grouped by a composite key built from one or more dimensions and
each group is reduced with count, sum, min, max or mean. Every other
analysis (ranking, temporal bucketing, trend comparison) is built on
aggregate().

All arithmetic stays in Decimal (or int for integer fields), so sums and
products over thousands of rows carry no floating-point drift.

Example:
    >>> table = aggregate(
    ...     records,
    ...     group_by=["branch", "payment_method"],
    ...     metrics={"revenue": ("total", "sum"), "no_payments": (None, "count")},
    ... )
    >>> table.as_dict("revenue")
    {('A', 'Cash'): Decimal('30'), ('A', 'Card'): Decimal('5')}
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from operator import attrgetter
from typing import Any, NamedTuple, Union

from retail_core.exceptions import EmptyGroupError, InvalidDateError
from retail_core.records import RecordPredicate, TransactionRecord

logger = logging.getLogger(__name__)

GroupKey = tuple[Any, ...]

REDUCERS = ("count", "sum", "min", "max", "mean")
_REDUCER_ALIASES = {"avg": "mean"}

# Marks "count the row itself" for count metrics without a source field
_ROW = object()


class Dimension(NamedTuple):
    """A named grouping selector.

    Attributes:
        name: Column name of the dimension in results.
        selector: Callable deriving the dimension value from a record.
    """

    name: str
    selector: Callable[[TransactionRecord], Any]


class Metric(NamedTuple):
    """An output metric: a source value reduced over each group.

    Attributes:
        source: Record attribute name, a callable over a record, or None
            (only meaningful for "count").
        reducer: One of "count", "sum", "min", "max", "mean".
    """

    source: str | Callable[[TransactionRecord], Any] | None
    reducer: str


DimensionLike = Union[str, Dimension]
MetricLike = Union[Metric, tuple]


@dataclass(frozen=True)
class AggregateResult:
    """One aggregated group.

    Attributes:
        dimensions: Names of the grouping dimensions, in key order.
        key: The group key (one value per dimension).
        metrics: Output metric name -> computed value.
    """

    dimensions: tuple[str, ...]
    key: GroupKey
    metrics: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Any:
        if name in self.dimensions:
            return self.key[self.dimensions.index(name)]
        return self.metrics[name]

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self) -> dict[str, Any]:
        """Flatten dimensions and metrics into one dict."""
        row = dict(zip(self.dimensions, self.key))
        row.update(self.metrics)
        return row


class AggregateTable(Sequence[AggregateResult]):
    """The rows produced by one aggregate() call.

    Row order is not part of the contract; use lookup() or as_dict() to
    address groups by key.

    Attributes:
        rows: The aggregated groups.
        dimensions: Names of the grouping dimensions.
        metric_names: Names of the computed metrics.
        excluded: Records dropped because a date/time derivation failed.
    """

    def __init__(
        self,
        rows: Iterable[AggregateResult],
        dimensions: tuple[str, ...],
        metric_names: tuple[str, ...],
        excluded: int = 0,
    ) -> None:
        self.rows: tuple[AggregateResult, ...] = tuple(rows)
        self.dimensions = dimensions
        self.metric_names = metric_names
        self.excluded = excluded

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[AggregateResult]:
        return iter(self.rows)

    def __getitem__(self, index):  # type: ignore[override]
        return self.rows[index]

    def __repr__(self) -> str:
        return (
            f"AggregateTable(dimensions={self.dimensions}, metrics={self.metric_names}, "
            f"rows={len(self.rows)}, excluded={self.excluded})"
        )

    def lookup(self, *key: Any) -> AggregateResult:
        """Return the row for a group key.

        Raises:
            KeyError: If no group has this key.
        """
        for row in self.rows:
            if row.key == key:
                return row
        raise KeyError(key)

    def as_dict(self, metric: str) -> dict[GroupKey, Any]:
        """Map each group key to one metric value."""
        return {row.key: row.metrics[metric] for row in self.rows}


class _Accumulator:
    """Associative running state for one metric of one group."""

    __slots__ = ("count", "total", "minimum", "maximum")

    def __init__(self) -> None:
        self.count = 0
        self.total: Any = None
        self.minimum: Any = None
        self.maximum: Any = None

    def add(self, value: Any) -> None:
        if value is None:
            return
        self.count += 1
        if value is _ROW:
            return
        self.total = value if self.total is None else self.total + value
        if self.minimum is None or value < self.minimum:
            self.minimum = value
        if self.maximum is None or value > self.maximum:
            self.maximum = value

    def merge(self, other: _Accumulator) -> None:
        self.count += other.count
        if other.total is not None:
            self.total = other.total if self.total is None else self.total + other.total
        if other.minimum is not None and (self.minimum is None or other.minimum < self.minimum):
            self.minimum = other.minimum
        if other.maximum is not None and (self.maximum is None or other.maximum > self.maximum):
            self.maximum = other.maximum

    def result(self, reducer: str) -> Any:
        if reducer == "count":
            return self.count
        if reducer == "sum":
            return self.total
        if reducer == "min":
            return self.minimum
        if reducer == "max":
            return self.maximum
        # mean: merged sum over merged count, never an average of averages.
        # A group whose source values are all None averages to None, like SQL AVG.
        if self.count == 0:
            return None
        return Decimal(self.total) / Decimal(self.count)


@dataclass
class _Partial:
    groups: dict[GroupKey, list[_Accumulator]]
    excluded: int = 0
    seen: int = 0


def apply_reducer(values: Iterable[Any], reducer: str) -> Any:
    """Reduce a flat sequence of values with one of the supported reducers.

    Args:
        values: Values to reduce; None values are skipped.
        reducer: "count", "sum", "min", "max" or "mean".

    Returns:
        The reduced value. sum/min/max of no values is None.

    Raises:
        ValueError: If the reducer is not supported.
        EmptyGroupError: If a mean is requested over no values.
    """
    reducer = _normalize_reducer(reducer)
    acc = _Accumulator()
    for value in values:
        acc.add(value)
    if reducer == "mean" and acc.count == 0:
        raise EmptyGroupError("Cannot compute mean of an empty group")
    return acc.result(reducer)


def _normalize_reducer(reducer: str) -> str:
    name = _REDUCER_ALIASES.get(reducer, reducer)
    if name not in REDUCERS:
        raise ValueError(f"Invalid reducer '{reducer}'. Must be one of {', '.join(REDUCERS)}.")
    return name


def _normalize_dimensions(group_by: Iterable[DimensionLike]) -> tuple[Dimension, ...]:
    dims = []
    for dim in group_by:
        if isinstance(dim, Dimension):
            dims.append(dim)
        elif isinstance(dim, str):
            dims.append(Dimension(dim, attrgetter(dim)))
        else:
            raise TypeError(f"group_by entries must be str or Dimension, got {type(dim).__name__}")
    return tuple(dims)


def _normalize_metrics(metrics: Mapping[str, MetricLike]) -> tuple[tuple[str, Metric], ...]:
    specs = []
    for name, spec in metrics.items():
        source, reducer = spec
        reducer = _normalize_reducer(reducer)
        if source is None and reducer != "count":
            raise ValueError(f"Metric '{name}' needs a source field for reducer '{reducer}'")
        specs.append((name, Metric(source, reducer)))
    return tuple(specs)


def _extract(record: TransactionRecord, source: Any) -> Any:
    if source is None:
        return _ROW
    if callable(source):
        return source(record)
    return getattr(record, source)


def _accumulate(
    records: Iterable[TransactionRecord],
    dims: tuple[Dimension, ...],
    specs: tuple[tuple[str, Metric], ...],
    where: RecordPredicate | None,
) -> _Partial:
    partial = _Partial(groups={})
    for record in records:
        partial.seen += 1
        try:
            if where is not None and not where(record):
                continue
            key = tuple(dim.selector(record) for dim in dims)
        except InvalidDateError as e:
            partial.excluded += 1
            logger.debug("Excluding record from date-dependent aggregation: %s", e)
            continue

        accs = partial.groups.get(key)
        if accs is None:
            accs = [_Accumulator() for _ in specs]
            partial.groups[key] = accs
        for acc, (_, metric) in zip(accs, specs):
            acc.add(_extract(record, metric.source))
    return partial


def _finalize(
    partial: _Partial,
    dims: tuple[Dimension, ...],
    specs: tuple[tuple[str, Metric], ...],
) -> AggregateTable:
    dim_names = tuple(d.name for d in dims)
    rows = [
        AggregateResult(
            dimensions=dim_names,
            key=key,
            metrics={name: acc.result(metric.reducer) for acc, (name, metric) in zip(accs, specs)},
        )
        for key, accs in partial.groups.items()
    ]

    if partial.excluded:
        logger.warning(
            "Excluded %d of %d record(s) with invalid date/time from aggregation by %s",
            partial.excluded,
            partial.seen,
            list(dim_names),
        )
    logger.info(
        "Aggregated %d record(s) into %d group(s) by %s",
        partial.seen - partial.excluded,
        len(rows),
        list(dim_names),
    )

    return AggregateTable(
        rows,
        dimensions=dim_names,
        metric_names=tuple(name for name, _ in specs),
        excluded=partial.excluded,
    )


def aggregate(
    records: Iterable[TransactionRecord],
    group_by: Sequence[DimensionLike],
    metrics: Mapping[str, MetricLike],
    *,
    where: RecordPredicate | None = None,
) -> AggregateTable:
    """Group records by a composite key and compute summary statistics.

    Args:
        records: Transaction records (a RecordStore or any iterable).
        group_by: Ordered dimensions; attribute names or Dimension selectors.
            An empty sequence produces a single grand-total group.
        metrics: Output name -> (source, reducer). source is a record
            attribute name, a callable over a record, or None for row counts.
        where: Optional predicate; only matching records are aggregated.

    Returns:
        AggregateTable with one row per distinct key. Records whose dimension
        or predicate raised InvalidDateError are counted in ``excluded``.

    Raises:
        ValueError: If a reducer is not supported.

    """
    dims = _normalize_dimensions(group_by)
    specs = _normalize_metrics(metrics)
    return _finalize(_accumulate(records, dims, specs, where), dims, specs)


def aggregate_shards(
    shards: Iterable[Iterable[TransactionRecord]],
    group_by: Sequence[DimensionLike],
    metrics: Mapping[str, MetricLike],
    *,
    where: RecordPredicate | None = None,
) -> AggregateTable:
    """Aggregate shards independently, merge by group key, then finalize.

    Shards may be produced by any partitioning of the input. The result equals
    aggregate() over all shards concatenated.
    """
    dims = _normalize_dimensions(group_by)
    specs = _normalize_metrics(metrics)

    merged = _Partial(groups={})
    for shard in shards:
        partial = _accumulate(shard, dims, specs, where)
        merged.seen += partial.seen
        merged.excluded += partial.excluded
        for key, accs in partial.groups.items():
            existing = merged.groups.get(key)
            if existing is None:
                merged.groups[key] = accs
                continue
            for target, acc in zip(existing, accs):
                target.merge(acc)

    return _finalize(merged, dims, specs)
