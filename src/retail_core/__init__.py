"""Retail Core - analytics over retail sales transactions.

This package answers a fixed set of business questions over a flat table of
sales lines: branch and category performance, payment-method usage,
time-of-day demand shifts and year-over-year revenue trends.

Module Structure:
    retail_core.records: TransactionRecord and the in-memory RecordStore
    retail_core.aggregate: Grouped count/sum/min/max/mean (the shared primitive)
    retail_core.ranking: Competition ranking within partitions, top-k
    retail_core.temporal: Date/time parsing, weekday names, shifts
    retail_core.trend: Per-partition change between two periods
    retail_core.queries: The business questions built on the above
    retail_core.frames: pandas adapter for loaders and report layers

Quick Start:
    >>> import pandas as pd
    >>> from retail_core import RecordStore, queries
    >>> from retail_core.frames import records_from_frame, to_frame
    >>>
    >>> store = RecordStore(records_from_frame(pd.read_csv("walmart_clean.csv")))
    >>>
    >>> # Highest-rated category per branch
    >>> to_frame(queries.top_rated_category_per_branch(store))
    >>>
    >>> # Top 5 branches by revenue decrease 2022 -> 2023
    >>> report = queries.revenue_decrease(store, 2022, 2023, limit=5)
    >>> [(d.partition, d.percent_change) for d in report]

The core never reads files or touches storage; ingestion and presentation
are left to the caller.
"""

__version__ = "0.1.0"

from retail_core.aggregate import (
    AggregateResult,
    AggregateTable,
    Dimension,
    Metric,
    aggregate,
    aggregate_shards,
)
from retail_core.config import AnalyticsConfig
from retail_core.exceptions import (
    ConfigError,
    DataQualityError,
    EmptyGroupError,
    InvalidDateError,
    RetailCoreError,
    UndefinedTrendError,
)
from retail_core.ranking import RankedResult, RankedTable, rank_within_partition, top_k
from retail_core.records import RecordStore, TransactionRecord
from retail_core.trend import TrendDelta, TrendReport, compare_trend

__all__ = [
    "AggregateResult",
    "AggregateTable",
    "AnalyticsConfig",
    "ConfigError",
    "DataQualityError",
    "Dimension",
    "EmptyGroupError",
    "InvalidDateError",
    "Metric",
    "RankedResult",
    "RankedTable",
    "RecordStore",
    "RetailCoreError",
    "TransactionRecord",
    "TrendDelta",
    "TrendReport",
    "UndefinedTrendError",
    "__version__",
    "aggregate",
    "aggregate_shards",
    "compare_trend",
    "rank_within_partition",
    "top_k",
]
