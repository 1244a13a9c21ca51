"""pandas adapter for the ingestion and presentation collaborators.

The analytics core works on TransactionRecord values. Loaders upstream tend
to hand over a typed DataFrame and report layers downstream want one back;
this module converts in both directions without reading or writing files.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import fields
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

import pandas as pd

from retail_core.aggregate import AggregateResult
from retail_core.exceptions import DataQualityError
from retail_core.ranking import RankedResult, RankedTable
from retail_core.records import TransactionRecord
from retail_core.trend import TrendDelta, TrendReport

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "branch",
    "city",
    "category",
    "unit_price",
    "quantity",
    "total",
    "payment_method",
    "rating",
    "profit_margin",
    "transaction_date",
    "transaction_time",
]


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
    return Decimal(str(value))


def _to_date(value: Any) -> date | str:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, (date, str)):
        return value
    return str(value)


def _to_time(value: Any) -> time | str:
    if isinstance(value, pd.Timestamp):
        return value.time()
    if isinstance(value, (time, str)):
        return value
    if isinstance(value, pd.Timedelta):
        return (datetime.min + value.to_pytimedelta()).time()
    return str(value)


def records_from_frame(
    df: pd.DataFrame,
    column_map: Mapping[str, str] | None = None,
) -> list[TransactionRecord]:
    """Convert a typed transactions DataFrame into TransactionRecord values.

    Args:
        df: DataFrame with one row per sales line. Column types are expected
            to be already coerced by the ingestion step.
        column_map: Optional mapping of source column name -> record field
            name, e.g. {"Branch": "branch", "date": "transaction_date"}.

    Returns:
        List of TransactionRecord in frame order.

    Raises:
        DataQualityError: If required columns are missing or hold nulls.

    Examples:
        >>> df = pd.read_csv("walmart_clean.csv")
        >>> records = records_from_frame(df, {"date": "transaction_date", "time": "transaction_time"})

    """
    if column_map:
        df = df.rename(columns=dict(column_map))

    missing_cols = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_cols:
        raise DataQualityError(
            f"Missing required columns in transactions frame: {missing_cols}. Required: {REQUIRED_COLUMNS}"
        )

    nulls = df[REQUIRED_COLUMNS].isna()
    null_cols = [col for col in REQUIRED_COLUMNS if nulls[col].any()]
    if null_cols:
        null_rows = int(nulls.any(axis=1).sum())
        raise DataQualityError(
            f"Null values in required columns of transactions frame: {null_cols} "
            f"({null_rows} of {len(df)} row(s))"
        )

    has_invoice = "invoice_id" in df.columns
    records = []
    for row in df.to_dict(orient="records"):
        invoice = row.get("invoice_id") if has_invoice else None
        records.append(
            TransactionRecord(
                branch=str(row["branch"]),
                city=str(row["city"]),
                category=str(row["category"]),
                unit_price=_to_decimal(row["unit_price"]),
                quantity=int(row["quantity"]),
                total=_to_decimal(row["total"]),
                payment_method=str(row["payment_method"]),
                rating=_to_decimal(row["rating"]),
                profit_margin=_to_decimal(row["profit_margin"]),
                transaction_date=_to_date(row["transaction_date"]),
                transaction_time=_to_time(row["transaction_time"]),
                invoice_id=None if invoice is None or pd.isna(invoice) else int(invoice),
            )
        )

    logger.info("Converted %d frame row(s) into transaction records", len(records))
    return records


def to_frame(rows: Iterable[AggregateResult | RankedResult | TrendDelta]) -> pd.DataFrame:
    """Render result rows as a DataFrame.

    Accepts an AggregateTable, a RankedTable, a TrendReport or any iterable of
    their rows. Decimal values are kept as-is (object columns) so no
    precision is lost before presentation. An empty table still yields its
    columns so report layers can select them.
    """
    data = [row.as_dict() for row in rows]
    if data:
        return pd.DataFrame(data)

    if isinstance(rows, TrendReport):
        columns = [f.name for f in fields(TrendDelta)]
    else:
        columns = [*getattr(rows, "dimensions", ()), *getattr(rows, "metric_names", ())]
        if isinstance(rows, RankedTable):
            columns.append("rank")
    return pd.DataFrame(columns=columns)
