"""Temporal bucketer: calendar and time-of-day labels for transactions.

Raw transaction dates arrive as day/month/year strings (or already-typed
dates) and raw times as HH:MM[:SS] strings. This module parses them strictly
and derives the weekday name, the shift and the year, exposed as Dimensions
so they plug straight into aggregate().

Shift boundaries:
    hour < 12          -> Morning
    12 <= hour <= 17   -> Afternoon
    otherwise          -> Evening
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, time

from retail_core.aggregate import Dimension
from retail_core.config import DEFAULT_CONFIG, AnalyticsConfig
from retail_core.exceptions import InvalidDateError
from retail_core.records import RecordPredicate, TransactionRecord

DAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday",
    "Saturday", "Sunday",
]

MORNING = "Morning"
AFTERNOON = "Afternoon"
EVENING = "Evening"
SHIFTS = (MORNING, AFTERNOON, EVENING)

AFTERNOON_START_HOUR = 12
EVENING_START_HOUR = 18


def parse_date(value: date | str, fmt: str = DEFAULT_CONFIG.date_format) -> date:
    """Parse a transaction date.

    Args:
        value: A date/datetime, or a string in the fixed day/month/year format.
        fmt: strptime format for string input (default "%d/%m/%Y").

    Returns:
        Parsed date object.

    Raises:
        InvalidDateError: If the value is not a date and does not match fmt.

    Examples:
        >>> parse_date("05/01/2023")
        datetime.date(2023, 1, 5)

    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(value)
    try:
        return datetime.strptime(value.strip(), fmt).date()
    except ValueError as e:
        raise InvalidDateError(value, f"Invalid date {value!r}: expected format {fmt}") from e


def parse_time(
    value: time | str,
    formats: Sequence[str] = DEFAULT_CONFIG.time_formats,
) -> time:
    """Parse a transaction time of day.

    Args:
        value: A time/datetime, or a string such as "13:08:00" or "13:08".
        formats: strptime formats tried in order for string input.

    Returns:
        Parsed time object.

    Raises:
        InvalidDateError: If no format matches.

    """
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt in formats:
            try:
                return datetime.strptime(text, fmt).time()
            except ValueError:
                continue
    raise InvalidDateError(value, f"Invalid time {value!r}: expected one of {list(formats)}")


def day_name(d: date) -> str:
    """Return the English weekday name of a date, e.g. 'Thursday'."""
    return DAY_NAMES[d.weekday()]


def shift(t: time | int) -> str:
    """Classify a time of day (or an hour) into Morning, Afternoon or Evening.

    Examples:
        >>> shift(time(11, 59))
        'Morning'
        >>> shift(12)
        'Afternoon'
        >>> shift(time(18, 0))
        'Evening'

    """
    hour = t if isinstance(t, int) else t.hour
    if hour < AFTERNOON_START_HOUR:
        return MORNING
    if AFTERNOON_START_HOUR <= hour < EVENING_START_HOUR:
        return AFTERNOON
    return EVENING


def record_date(record: TransactionRecord, config: AnalyticsConfig = DEFAULT_CONFIG) -> date:
    return parse_date(record.transaction_date, config.date_format)


def record_time(record: TransactionRecord, config: AnalyticsConfig = DEFAULT_CONFIG) -> time:
    return parse_time(record.transaction_time, config.time_formats)


def day_name_dimension(config: AnalyticsConfig = DEFAULT_CONFIG) -> Dimension:
    """Weekday name of the transaction date, as an aggregation dimension."""
    return Dimension("day_name", lambda r: day_name(record_date(r, config)))


def shift_dimension(config: AnalyticsConfig = DEFAULT_CONFIG) -> Dimension:
    """Shift of the transaction time, as an aggregation dimension."""
    return Dimension("shift", lambda r: shift(record_time(r, config)))


def year_dimension(config: AnalyticsConfig = DEFAULT_CONFIG) -> Dimension:
    return Dimension("year", lambda r: record_date(r, config).year)


DAY_NAME = day_name_dimension()
SHIFT = shift_dimension()
YEAR = year_dimension()


def in_year(year: int, config: AnalyticsConfig = DEFAULT_CONFIG) -> RecordPredicate:
    """Return a predicate selecting records dated in the given calendar year.

    The predicate raises InvalidDateError for malformed dates so that callers
    such as aggregate() can exclude and count the record.
    """

    def predicate(record: TransactionRecord) -> bool:
        return record_date(record, config).year == year

    predicate.__name__ = f"in_year_{year}"
    return predicate
