"""Unit tests for date parsing and encoding."""

from datetime import date, datetime, timezone

import pytest

from godata_cases.config import DateOrder
from godata_cases.dates import (
    DateWindow,
    date_window,
    encode_platform_date,
    parse_platform_datetime,
    parse_source_date,
)
from godata_cases.exceptions import ConfigurationError


class TestParseSourceDate:
    """Tests for parse_source_date."""

    def test_iso_string(self) -> None:
        assert parse_source_date("2024-03-01") == date(2024, 3, 1)

    def test_time_part_ignored(self) -> None:
        assert parse_source_date("2024-03-01T10:15:00") == date(2024, 3, 1)
        assert parse_source_date("2024-03-01 10:15:00") == date(2024, 3, 1)

    def test_day_month_year(self) -> None:
        assert parse_source_date("01/03/2024", DateOrder.DMY) == date(2024, 3, 1)

    def test_month_day_year(self) -> None:
        assert parse_source_date("03/01/2024", DateOrder.MDY) == date(2024, 3, 1)

    def test_date_and_datetime_objects(self) -> None:
        assert parse_source_date(date(2024, 3, 1)) == date(2024, 3, 1)
        assert parse_source_date(datetime(2024, 3, 1, 12)) == date(2024, 3, 1)

    def test_empty_values(self) -> None:
        """None and blank strings are missing, not errors."""
        assert parse_source_date(None) is None
        assert parse_source_date("   ") is None

    def test_unparseable_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Could not parse date"):
            parse_source_date("not a date")


class TestPlatformDates:
    """Tests for encode_platform_date and parse_platform_datetime."""

    def test_encode(self) -> None:
        """Dates go out as midnight UTC with milliseconds."""
        assert encode_platform_date(date(2024, 3, 1)) == "2024-03-01T00:00:00.000Z"

    def test_parse_zulu(self) -> None:
        parsed = parse_platform_datetime("2024-03-01T00:00:00.000Z")
        assert parsed == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert parsed.tzinfo is not None

    def test_parse_naive_assumed_utc(self) -> None:
        assert parse_platform_datetime("2024-03-01T06:00:00").tzinfo == timezone.utc

    def test_parse_empty(self) -> None:
        assert parse_platform_datetime(None) is None
        assert parse_platform_datetime("") is None

    def test_parse_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_platform_datetime("yesterday")


class TestDateWindow:
    """Tests for date_window."""

    def test_window_extends_back_by_epiwindow(self) -> None:
        window = date_window([date(2024, 3, 10), date(2024, 3, 12), None], epiwindow=30)
        assert window == DateWindow(start=date(2024, 2, 9), end=date(2024, 3, 12))

    def test_contains_is_inclusive(self) -> None:
        window = DateWindow(start=date(2024, 3, 1), end=date(2024, 3, 2))
        assert window.contains(date(2024, 3, 1))
        assert window.contains(date(2024, 3, 2))
        assert not window.contains(date(2024, 3, 3))

    def test_no_dates_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="No reference dates"):
            date_window([None, None])
