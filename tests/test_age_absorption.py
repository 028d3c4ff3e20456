"""Tests for specimen age, testing-date checks and water absorption."""
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from utils.analysis.age_calculations import (
    to_date, calculate_age, format_age, check_testing_date, format_certificate_date,
)
from utils.analysis.absorption_calculations import water_absorption, average_absorption


class TestToDate:
    def test_date_and_datetime(self):
        assert to_date(date(2024, 1, 1)) == date(2024, 1, 1)
        assert to_date(datetime(2024, 1, 1, 15, 30)) == date(2024, 1, 1)

    def test_iso_string(self):
        assert to_date('2024-03-05') == date(2024, 3, 5)
        assert to_date('2024-03-05T10:00:00Z') == date(2024, 3, 5)

    def test_timestamp_like(self):
        assert to_date({'seconds': 0}) == date(1970, 1, 1)
        assert to_date(SimpleNamespace(seconds=86400)) == date(1970, 1, 2)

    def test_invalid(self):
        assert to_date(None) is None
        assert to_date('') is None
        assert to_date('not a date') is None
        assert to_date({'nanos': 5}) is None


class TestCalculateAge:
    def test_days(self):
        assert calculate_age(date(2024, 1, 1), date(2024, 1, 8)) == 7
        assert calculate_age('2024-01-01', '2024-01-15') == 14
        assert calculate_age(date(2024, 1, 1), date(2024, 1, 28)) == 27

    def test_capped_from_28(self):
        assert calculate_age('2024-01-01', '2024-01-29') == '>28'
        assert calculate_age(date(2024, 1, 1), date(2024, 1, 30)) == '>28'

    def test_invalid_dates(self):
        assert calculate_age(None, date(2024, 1, 8)) == ''
        assert calculate_age('garbage', '2024-01-08') == ''

    def test_format_age(self):
        assert format_age('') == '-'
        assert format_age(None) == '-'
        assert format_age('>28') == '>28'
        assert format_age(7) == '7'


class TestTestingDateCheck:
    def test_on_schedule(self):
        check = check_testing_date(date(2024, 1, 29), today=date(2024, 1, 29))
        assert check.can_test
        assert not check.is_before
        assert not check.is_after

    def test_before_schedule(self):
        check = check_testing_date(date(2024, 1, 29), today=date(2024, 1, 20))
        assert not check.can_test
        assert check.is_before

    def test_after_schedule(self):
        check = check_testing_date(date(2024, 1, 29), today=date(2024, 2, 5))
        assert check.can_test
        assert check.is_after

    def test_missing_schedule(self):
        assert check_testing_date(None, today=date(2024, 1, 1)).can_test

    def test_certificate_date(self):
        assert format_certificate_date(date(2024, 1, 29)) == '29/01/2024'
        assert format_certificate_date(None) == 'N/A'


class TestWaterAbsorption:
    def test_absorption(self):
        difference, absorption = water_absorption(2.0, 2.1)
        assert difference == pytest.approx(0.1)
        assert absorption == pytest.approx(5.0)

    def test_zero_dry_weight(self):
        difference, absorption = water_absorption(0, 0.5)
        assert difference == pytest.approx(0.5)
        assert absorption == 0.0

    def test_missing_weight(self):
        assert water_absorption(None, 2.1) == (None, None)

    def test_average(self):
        assert average_absorption([5.0, 6.0, None]) == pytest.approx(5.5)
        assert average_absorption([]) is None
