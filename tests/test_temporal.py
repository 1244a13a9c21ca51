"""Tests for date/time parsing, weekday names and shift classification."""

from datetime import date, datetime, time

import pytest

from retail_core.config import AnalyticsConfig
from retail_core.exceptions import DataQualityError, InvalidDateError
from retail_core.temporal import (
    AFTERNOON,
    DAY_NAME,
    EVENING,
    MORNING,
    SHIFT,
    YEAR,
    day_name,
    day_name_dimension,
    in_year,
    parse_date,
    parse_time,
    shift,
)
from tests.test_utils import make_record


class TestShift:
    """Shift boundaries: <12 Morning, 12-17 Afternoon, otherwise Evening."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (time(0, 0), MORNING),
            (time(11, 0), MORNING),
            (time(11, 59, 59), MORNING),
            (time(12, 0), AFTERNOON),
            (time(17, 0), AFTERNOON),
            (time(17, 59, 59), AFTERNOON),
            (time(18, 0), EVENING),
            (time(23, 59), EVENING),
        ],
    )
    def test_boundaries(self, value: time, expected: str) -> None:
        assert shift(value) == expected

    def test_accepts_hour(self) -> None:
        assert shift(11) == MORNING
        assert shift(12) == AFTERNOON
        assert shift(18) == EVENING

    def test_out_of_range_hour_is_evening(self) -> None:
        assert shift(24) == EVENING


class TestParseDate:
    def test_day_month_year(self) -> None:
        assert parse_date("05/01/2023") == date(2023, 1, 5)

    def test_surrounding_whitespace(self) -> None:
        assert parse_date(" 05/01/2023 ") == date(2023, 1, 5)

    def test_date_passthrough(self) -> None:
        assert parse_date(date(2022, 12, 31)) == date(2022, 12, 31)

    def test_datetime_is_truncated(self) -> None:
        assert parse_date(datetime(2022, 12, 31, 18, 30)) == date(2022, 12, 31)

    @pytest.mark.parametrize("value", ["2023-01-05", "31/02/2023", "13/13/2023", "", "yesterday", None, 20230105])
    def test_malformed_raises(self, value) -> None:
        with pytest.raises(InvalidDateError):
            parse_date(value)

    def test_error_carries_value(self) -> None:
        with pytest.raises(InvalidDateError) as exc_info:
            parse_date("2023-01-05")

        assert exc_info.value.value == "2023-01-05"
        assert isinstance(exc_info.value, DataQualityError)

    def test_no_month_day_inference(self) -> None:
        """01/05/2023 is the first of May, never January 5th."""
        assert parse_date("01/05/2023") == date(2023, 5, 1)

    def test_custom_format(self) -> None:
        assert parse_date("2023-01-05", "%Y-%m-%d") == date(2023, 1, 5)


class TestParseTime:
    def test_seconds(self) -> None:
        assert parse_time("13:08:00") == time(13, 8)

    def test_minutes_only(self) -> None:
        assert parse_time("09:30") == time(9, 30)

    def test_time_passthrough(self) -> None:
        assert parse_time(time(7, 15)) == time(7, 15)

    @pytest.mark.parametrize("value", ["25:00:00", "noon", "", None])
    def test_malformed_raises(self, value) -> None:
        with pytest.raises(InvalidDateError, match="Invalid"):
            parse_time(value)


def test_day_name() -> None:
    assert day_name(date(2023, 1, 5)) == "Thursday"
    assert day_name(date(2023, 1, 8)) == "Sunday"
    assert day_name(date(2023, 1, 9)) == "Monday"


def test_dimensions_derive_from_raw_fields() -> None:
    record = make_record(transaction_date="07/01/2022", transaction_time="18:00:00")

    assert DAY_NAME.name == "day_name"
    assert DAY_NAME.selector(record) == "Friday"
    assert SHIFT.selector(record) == EVENING
    assert YEAR.selector(record) == 2022


def test_dimension_raises_on_bad_date() -> None:
    record = make_record(transaction_date="2022/01/07")

    with pytest.raises(InvalidDateError):
        DAY_NAME.selector(record)


def test_dimension_honours_config_format() -> None:
    config = AnalyticsConfig(date_format="%Y-%m-%d")
    record = make_record(transaction_date="2023-01-05")

    assert day_name_dimension(config).selector(record) == "Thursday"


def test_in_year() -> None:
    predicate = in_year(2023)

    assert predicate(make_record(transaction_date="31/12/2023")) is True
    assert predicate(make_record(transaction_date="01/01/2022")) is False
    with pytest.raises(InvalidDateError):
        predicate(make_record(transaction_date="not a date"))
