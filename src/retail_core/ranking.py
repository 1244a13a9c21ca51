"""Ranker: competition ranking of aggregated rows within partitions.

Ranks follow SQL ``RANK()`` semantics: rows with equal metric values share a
rank and the next distinct value takes ``1 + number of strictly better rows``
(1, 1, 3, ...). This is not DENSE_RANK (1, 1, 2) and not ROW_NUMBER
(1, 2, 3); a top-1 filter keeps every tied leader.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Union

from retail_core.aggregate import AggregateResult, GroupKey

logger = logging.getLogger(__name__)

ASCENDING = "asc"
DESCENDING = "desc"


@dataclass(frozen=True)
class RankedResult:
    """An aggregated row with its rank inside its partition.

    Attributes:
        row: The underlying AggregateResult.
        rank: Competition rank, starting at 1.
    """

    row: AggregateResult
    rank: int

    def __getitem__(self, name: str) -> Any:
        if name == "rank":
            return self.rank
        return self.row[name]

    @property
    def key(self) -> GroupKey:
        return self.row.key

    @property
    def dimensions(self) -> tuple[str, ...]:
        return self.row.dimensions

    @property
    def metrics(self):
        return self.row.metrics

    def as_dict(self) -> dict[str, Any]:
        data = self.row.as_dict()
        data["rank"] = self.rank
        return data


RankableRow = Union[AggregateResult, RankedResult]


class RankedTable(Sequence[RankedResult]):
    """Ranked rows plus the exclusion count carried over from aggregation.

    Attributes:
        rows: Ranked rows, ordered by partition, rank, group key.
        excluded: Records dropped upstream because a date/time derivation failed.
        dimensions: Grouping dimension names of the ranked rows.
        metric_names: Metric names of the ranked rows.
    """

    def __init__(
        self,
        rows: Iterable[RankedResult],
        excluded: int = 0,
        dimensions: tuple[str, ...] = (),
        metric_names: tuple[str, ...] = (),
    ) -> None:
        self.rows: tuple[RankedResult, ...] = tuple(rows)
        self.excluded = excluded
        self.dimensions = dimensions
        self.metric_names = metric_names

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[RankedResult]:
        return iter(self.rows)

    def __getitem__(self, index):  # type: ignore[override]
        return self.rows[index]

    def __repr__(self) -> str:
        return f"RankedTable(rows={len(self.rows)}, excluded={self.excluded})"


def _sort_token(value: Any) -> tuple[int, Any]:
    # None sorts first so mixed partitions stay comparable
    return (0, "") if value is None else (1, value)


def _table_context(rows: Iterable[Any]) -> dict[str, Any]:
    # Tables carry their shape and exclusion count; bare row lists carry none
    return {
        "excluded": getattr(rows, "excluded", 0),
        "dimensions": tuple(getattr(rows, "dimensions", ())),
        "metric_names": tuple(getattr(rows, "metric_names", ())),
    }


def _partition_value(row: AggregateResult, partition_by: str | None) -> Any:
    return None if partition_by is None else row[partition_by]


def rank_within_partition(
    rows: Iterable[RankableRow],
    partition_by: str | None,
    order_by: str,
    direction: str = DESCENDING,
) -> RankedTable:
    """Rank rows by a metric inside each partition.

    Args:
        rows: AggregateResult rows, or RankedResult rows to be ranked afresh.
        partition_by: Dimension name to partition on; None ranks all rows
            as a single partition.
        order_by: Metric (or dimension) name to order by.
        direction: "desc" (largest first, default) or "asc".

    Returns:
        RankedResult rows ordered by partition value, then rank, then group key.

    Raises:
        ValueError: If direction is not "asc" or "desc".
        KeyError: If partition_by or order_by is not a field of the rows.

    Examples:
        >>> ranked = rank_within_partition(table, "branch", "avg_rating")
        >>> [(r["category"], r.rank) for r in ranked]
        [('Food', 1), ('Sports', 1), ('Fashion', 3)]

    """
    if direction not in (ASCENDING, DESCENDING):
        raise ValueError(f"Invalid direction '{direction}'. Must be 'asc' or 'desc'.")

    partitions: dict[Any, list[AggregateResult]] = {}
    for item in rows:
        row = item.row if isinstance(item, RankedResult) else item
        partitions.setdefault(_partition_value(row, partition_by), []).append(row)

    descending = direction == DESCENDING
    ranked: list[RankedResult] = []
    for partition in sorted(partitions, key=_sort_token):
        members = partitions[partition]
        # Stable sort: key order first, then metric, so ties list deterministically
        members.sort(key=lambda r: tuple(_sort_token(v) for v in r.key))
        members.sort(key=lambda r: r[order_by], reverse=descending)

        rank = 0
        previous: Any = None
        for position, row in enumerate(members, start=1):
            value = row[order_by]
            if position == 1 or value != previous:
                rank = position
                previous = value
            ranked.append(RankedResult(row=row, rank=rank))

        logger.debug(
            "Ranked %d row(s) in partition %r by %s %s", len(members), partition, order_by, direction
        )

    return RankedTable(ranked, **_table_context(rows))


def top_k(ranked: Iterable[RankedResult], k: int = 1) -> RankedTable:
    """Keep rows whose rank is at most k (ties at the cut-off are kept).

    Raises:
        ValueError: If k < 1.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    return RankedTable((r for r in ranked if r.rank <= k), **_table_context(ranked))
