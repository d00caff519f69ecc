"""
test_time_utils.py
==================

Clock parsing, duration arithmetic and calendar helpers.

Run: python -m pytest tests/test_time_utils.py -v
"""

import pytest
from datetime import date, datetime

from core.time_utils import (
    FTLInputError, calculate_duration_hours, clock_on_date, decimal_to_time,
    month_dates, parse_month, parse_time_to_minutes, period_end_datetime,
    time_to_decimal, window_dates,
)


class TestParseTime:

    def test_valid_times(self):
        assert parse_time_to_minutes('00:00') == 0
        assert parse_time_to_minutes('06:59') == 419
        assert parse_time_to_minutes('7:05') == 425
        assert parse_time_to_minutes('24:00') == 1440

    def test_missing_is_none_not_midnight(self):
        assert parse_time_to_minutes(None) is None
        assert parse_time_to_minutes('') is None

    def test_malformed_is_none(self):
        assert parse_time_to_minutes('0800') is None
        assert parse_time_to_minutes('ab:cd') is None
        assert parse_time_to_minutes('25:00') is None
        assert parse_time_to_minutes('24:30') is None
        assert parse_time_to_minutes('12:60') is None


class TestDecimalConversion:

    def test_time_to_decimal(self):
        assert time_to_decimal('07:30') == 7.5
        assert time_to_decimal('1.25') == 1.25
        assert time_to_decimal('') == 0.0
        assert time_to_decimal(None) == 0.0
        assert time_to_decimal('x:y') == 0.0

    def test_non_finite_numbers_are_invalid(self):
        assert time_to_decimal('nan') == 0.0
        assert time_to_decimal('inf') == 0.0
        assert time_to_decimal('-inf') == 0.0
        assert time_to_decimal('1e400') == 0.0

    def test_decimal_to_time(self):
        assert decimal_to_time(7.5) == '07:30'
        assert decimal_to_time(13.25) == '13:15'
        assert decimal_to_time(7.5, compact=True) == '7:30'

    def test_zero_renders_blank_unless_allowed(self):
        assert decimal_to_time(0) == ''
        assert decimal_to_time(None) == ''
        assert decimal_to_time(0, allow_zero=True) == '00:00'

    def test_rounds_to_nearest_minute(self):
        assert decimal_to_time(1 / 3) == '00:20'
        assert decimal_to_time(9.999) == '10:00'

    def test_round_trip_every_minute_of_the_day(self):
        for total in range(24 * 60):
            hours = total / 60
            assert time_to_decimal(decimal_to_time(hours)) == pytest.approx(hours)
            if total:
                clock = f"{total // 60:02d}:{total % 60:02d}"
                assert decimal_to_time(time_to_decimal(clock)) == clock


class TestDuration:

    def test_same_day(self):
        assert calculate_duration_hours('08:00', '17:30') == 9.5

    def test_wraps_past_midnight(self):
        assert calculate_duration_hours('22:00', '06:00') == 8.0
        assert calculate_duration_hours('23:30', '00:15') == 0.75

    def test_missing_or_malformed_is_zero(self):
        assert calculate_duration_hours('08:00', None) == 0.0
        assert calculate_duration_hours(None, '10:00') == 0.0
        assert calculate_duration_hours('8am', '10:00') == 0.0

    def test_never_negative(self):
        for start, end in [('00:00', '23:59'), ('23:59', '00:00'), ('12:00', '12:00')]:
            assert calculate_duration_hours(start, end) >= 0


class TestDatetimeHelpers:

    def test_clock_on_date(self):
        assert clock_on_date(date(2024, 3, 5), '06:45') == datetime(2024, 3, 5, 6, 45)
        assert clock_on_date(date(2024, 3, 5), None) is None

    def test_overnight_end_rolls_to_next_day(self):
        assert period_end_datetime(date(2024, 3, 5), '22:00', '04:00') == datetime(2024, 3, 6, 4, 0)
        assert period_end_datetime(date(2024, 3, 5), '08:00', '18:00') == datetime(2024, 3, 5, 18, 0)

    def test_end_without_start_stays_on_day(self):
        assert period_end_datetime(date(2024, 3, 5), None, '04:00') == datetime(2024, 3, 5, 4, 0)


class TestCalendar:

    def test_parse_month(self):
        assert parse_month('2024-02') == (2024, 2)

    @pytest.mark.parametrize('bad', ['2024', '2024-13', 'March', '2024-02-01'])
    def test_parse_month_rejects_bad_format(self, bad):
        with pytest.raises(FTLInputError):
            parse_month(bad)

    def test_month_dates_leap_february(self):
        days = month_dates('2024-02')
        assert len(days) == 29
        assert days[0] == date(2024, 2, 1)
        assert days[-1] == date(2024, 2, 29)

    def test_window_dates_newest_first(self):
        window = window_dates(date(2024, 3, 2), 3)
        assert window == [date(2024, 3, 2), date(2024, 3, 1), date(2024, 2, 29)]
