"""Business questions answered over a set of transaction records.

Each function answers one fixed question by combining the aggregator, the
ranker, the temporal bucketer and the trend comparator. None of them read or
write files; pass in a RecordStore (or any iterable of TransactionRecord) and
render the returned tables with retail_core.frames.to_frame() if needed.

Example:
    >>> from retail_core import RecordStore
    >>> from retail_core import queries
    >>>
    >>> store = RecordStore(records)
    >>> for row in queries.preferred_payment_method_per_branch(store):
    ...     print(row["branch"], row["payment_method"])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from retail_core.aggregate import AggregateTable, aggregate
from retail_core.config import DEFAULT_CONFIG, AnalyticsConfig
from retail_core.ranking import RankedTable, rank_within_partition, top_k
from retail_core.records import RecordStore, TransactionRecord
from retail_core.temporal import day_name_dimension, in_year, shift_dimension, year_dimension
from retail_core.trend import DECREASE, TrendReport, compare_trend

logger = logging.getLogger(__name__)

Records = Iterable[TransactionRecord]


@dataclass(frozen=True)
class SalesOverview:
    """Headline counts of a record set.

    Attributes:
        total_records: Number of transaction lines.
        distinct_branches: Number of distinct branches.
        min_quantity: Smallest quantity sold on a single line (None if empty).
    """

    total_records: int
    distinct_branches: int
    min_quantity: int | None


def overview(records: Records) -> SalesOverview:
    """Count records and branches, and find the minimum quantity sold."""
    store = RecordStore(records)
    totals = aggregate(
        store,
        group_by=[],
        metrics={"total_records": (None, "count"), "min_quantity": ("quantity", "min")},
    )

    if not totals:
        return SalesOverview(total_records=0, distinct_branches=0, min_quantity=None)

    row = totals[0]
    return SalesOverview(
        total_records=row["total_records"],
        distinct_branches=len(store.distinct("branch")),
        min_quantity=row["min_quantity"],
    )


def payment_method_summary(records: Records) -> AggregateTable:
    """Number of transactions and quantity sold per payment method.

    Returns:
        Rows keyed by (payment_method,) with ``no_payments`` and ``no_qty_sold``.
    """
    return aggregate(
        records,
        group_by=["payment_method"],
        metrics={"no_payments": (None, "count"), "no_qty_sold": ("quantity", "sum")},
    )


def quantity_by_payment_method(records: Records) -> AggregateTable:
    """Total quantity sold per payment method (``total_qty_sold``)."""
    return aggregate(
        records,
        group_by=["payment_method"],
        metrics={"total_qty_sold": ("quantity", "sum")},
    )


def top_rated_category_per_branch(records: Records) -> RankedTable:
    """Highest average-rated category in each branch.

    Ties keep every category sharing the best average.

    Returns:
        Rows keyed by (branch, category) with ``avg_rating`` and rank 1.
    """
    table = aggregate(
        records,
        group_by=["branch", "category"],
        metrics={"avg_rating": ("rating", "mean")},
    )
    return top_k(rank_within_partition(table, "branch", "avg_rating"), 1)


def busiest_day_per_branch(
    records: Records,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> RankedTable:
    """Weekday with the most transactions in each branch.

    Records with an unparseable date are left out and counted in
    ``excluded`` of the returned table.

    Returns:
        Rows keyed by (branch, day_name) with ``no_transactions`` and rank 1.
    """
    table = aggregate(
        records,
        group_by=["branch", day_name_dimension(config)],
        metrics={"no_transactions": (None, "count")},
    )
    return top_k(rank_within_partition(table, "branch", "no_transactions"), 1)


def rating_stats_by_city_category(records: Records) -> AggregateTable:
    """Minimum, maximum and average rating per city and category."""
    return aggregate(
        records,
        group_by=["city", "category"],
        metrics={
            "min_rating": ("rating", "min"),
            "max_rating": ("rating", "max"),
            "avg_rating": ("rating", "mean"),
        },
    )


def profit_by_category(records: Records) -> RankedTable:
    """Total profit (total * profit_margin) per category, highest first."""
    table = aggregate(
        records,
        group_by=["category"],
        metrics={"total_profit": ("profit", "sum")},
    )
    return rank_within_partition(table, None, "total_profit")


def preferred_payment_method_per_branch(records: Records) -> RankedTable:
    """Most frequently used payment method in each branch.

    Returns:
        Rows keyed by (branch, payment_method) with ``total_trans`` and rank 1.
    """
    table = aggregate(
        records,
        group_by=["branch", "payment_method"],
        metrics={"total_trans": (None, "count")},
    )
    return top_k(rank_within_partition(table, "branch", "total_trans"), 1)


def invoices_by_shift(
    records: Records,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> RankedTable:
    """Invoices per branch and shift, ordered by branch then count descending.

    Records with an unparseable time are left out and counted in
    ``excluded`` of the returned table.
    """
    table = aggregate(
        records,
        group_by=["branch", shift_dimension(config)],
        metrics={"num_invoices": (None, "count")},
    )
    return rank_within_partition(table, "branch", "num_invoices")


def revenue_decrease(
    records: Records,
    base_year: int | None = None,
    compare_year: int | None = None,
    limit: int | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> TrendReport:
    """Branches with the largest revenue decrease from base_year to compare_year.

    Args:
        records: Transaction records.
        base_year: Base period (default: config.base_year).
        compare_year: Comparison period (default: config.compare_year).
        limit: Maximum number of branches (default: config.trend_limit).
        config: Analytics configuration.

    Returns:
        TrendReport with ``value_a`` as last-year revenue, ``value_b`` as
        current-year revenue and ``percent_change`` as the decrease ratio.
    """
    base_year = config.base_year if base_year is None else base_year
    compare_year = config.compare_year if compare_year is None else compare_year
    limit = config.trend_limit if limit is None else limit

    logger.info("Comparing branch revenue %d -> %d (limit=%d)", base_year, compare_year, limit)
    return compare_trend(
        records,
        "branch",
        in_year(base_year, config),
        in_year(compare_year, config),
        metric="total",
        direction=DECREASE,
        limit=limit,
        places=config.percent_places,
    )


def revenue_by_branch_year(
    records: Records,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> AggregateTable:
    """Revenue per branch and calendar year, the inputs of a year-over-year trend.

    Returns:
        Rows keyed by (branch, year) with ``revenue``. Records with an
        unparseable date are counted in ``excluded``.
    """
    return aggregate(
        records,
        group_by=["branch", year_dimension(config)],
        metrics={"revenue": ("total", "sum")},
    )
