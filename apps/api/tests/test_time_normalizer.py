"""
Unit Tests for Time Filter Normalization
========================================

Offset convention: local time + offset minutes = UTC (UTC-5 -> 300).
"""

import datetime as dt

import pytest

from extraction.filters import TimeFilter
from extraction.time_normalizer import (
    convert_minutes_to_utc,
    describe_time_filter,
    format_minutes,
    normalize_time_filter,
)

UTC = dt.timezone.utc


class TestConvertMinutes:

    @pytest.mark.parametrize("local,offset,expected", [
        (1140, 0, (1140, 0)),
        (1380, 300, (240, 1)),      # 11pm UTC-5 -> 4am next day
        (60, -120, (1380, -1)),     # 1am UTC+2 -> 11pm previous day
        (600, -330, (270, 0)),      # half-hour offsets
    ])
    def test_wraps_with_day_carry(self, local, offset, expected):
        assert convert_minutes_to_utc(local, offset) == expected


class TestNormalize:

    def test_after_eleven_pm_moves_to_next_utc_day(self):
        local = TimeFilter(date=dt.date(2026, 3, 3), after_minutes=1380)
        utc = normalize_time_filter(local, 300)

        assert utc.is_utc is True
        assert utc.after_minutes == 240
        assert utc.date == dt.date(2026, 3, 4)
        assert utc.utc_start == dt.datetime(2026, 3, 4, tzinfo=UTC)
        assert utc.utc_end == dt.datetime(2026, 3, 5, tzinfo=UTC)

    def test_negative_carry_moves_date_back(self):
        local = TimeFilter(date=dt.date(2026, 3, 3), before_minutes=60)
        utc = normalize_time_filter(local, -120)
        assert utc.before_minutes == 1380
        assert utc.date == dt.date(2026, 3, 2)

    def test_lone_date_becomes_local_day_window(self):
        utc = normalize_time_filter(TimeFilter(date=dt.date(2026, 3, 3)), 300)
        assert utc.date is None
        assert utc.utc_start == dt.datetime(2026, 3, 3, 5, 0, tzinfo=UTC)
        assert utc.utc_end == dt.datetime(2026, 3, 4, 5, 0, tzinfo=UTC)

    def test_range_becomes_inclusive_window(self):
        local = TimeFilter(range_start=dt.date(2026, 3, 1), range_end=dt.date(2026, 3, 3))
        utc = normalize_time_filter(local, -120)
        assert utc.range_start is None and utc.range_end is None
        assert utc.utc_start == dt.datetime(2026, 2, 28, 22, 0, tzinfo=UTC)
        assert utc.utc_end == dt.datetime(2026, 3, 3, 22, 0, tzinfo=UTC)

    def test_time_only_shifts_minutes(self):
        utc = normalize_time_filter(TimeFilter(before_minutes=1140), -60)
        assert utc.before_minutes == 1080
        assert utc.date is None
        assert utc.utc_start is None

    def test_missing_offset_passes_through(self):
        local = TimeFilter(after_minutes=1140)
        assert normalize_time_filter(local, None) is local

    def test_empty_filter_stays_empty(self):
        utc = normalize_time_filter(TimeFilter(), 300)
        assert utc.is_empty
        assert utc.is_utc is True

    @pytest.mark.parametrize("local", [
        TimeFilter(date=dt.date(2026, 3, 3), after_minutes=1380),
        TimeFilter(date=dt.date(2026, 3, 3)),
        TimeFilter(range_start=dt.date(2026, 3, 1), range_end=dt.date(2026, 3, 3)),
        TimeFilter(before_minutes=30),
    ])
    def test_idempotent(self, local):
        once = normalize_time_filter(local, 300)
        assert normalize_time_filter(once, 300) == once


class TestDescribe:

    def test_format_minutes(self):
        assert format_minutes(1140) == "7pm"
        assert format_minutes(1170) == "7:30pm"
        assert format_minutes(0) == "12am"
        assert format_minutes(720) == "12pm"

    def test_date_and_time(self):
        local = TimeFilter(date=dt.date(2026, 3, 3), after_minutes=1140)
        assert describe_time_filter(local) == "played after 7pm on March 3, 2026"

    def test_time_only(self):
        assert describe_time_filter(TimeFilter(before_minutes=1140)) == "played before 7pm"

    def test_nothing(self):
        assert describe_time_filter(TimeFilter()) is None
