"""
test_rolling_totals.py
======================

Trailing-window flight/duty/FDP sums and cumulative caps.

Run: python -m pytest tests/test_rolling_totals.py -v
"""

from datetime import date, timedelta

from models.data_models import AircraftCategory, DutyRecord, RollingMetrics
from core.rolling_totals import (
    RollingTotalsAggregator, check_cumulative_limits, record_flight_hours,
)

HELI = AircraftCategory.HELICOPTER
FIXED = AircraftCategory.FIXED_WING
TARGET = date(2024, 3, 31)


def make_day(offset, **fields):
    """Record `offset` days before TARGET"""
    return DutyRecord(date=TARGET - timedelta(days=offset), **fields)


class TestFlightHours:

    def test_prefers_per_aircraft_hours(self):
        record = make_day(0, flight_on='08:00', flight_off='10:00',
                          flight_hours_by_aircraft={'AW139': 1.5, 'B412': 1.0})
        assert record_flight_hours(record) == 2.5

    def test_falls_back_to_on_off_pair(self):
        assert record_flight_hours(make_day(0, flight_on='08:00', flight_off='10:30')) == 2.5

    def test_nothing_recorded(self):
        assert record_flight_hours(make_day(0)) == 0.0


class TestWindows:

    def setup_method(self):
        self.aggregator = RollingTotalsAggregator()

    def test_window_includes_target_and_excludes_older(self):
        records = [
            make_day(0, duty_start='08:00', duty_end='16:00'),
            make_day(6, duty_start='08:00', duty_end='16:00'),
            make_day(7, duty_start='08:00', duty_end='16:00'),
        ]
        assert self.aggregator.sum_window(records, TARGET, 7, 'duty') == 16.0
        assert self.aggregator.sum_window(records, TARGET, 28, 'duty') == 24.0

    def test_standby_counts_half(self):
        records = [
            make_day(0, duty_start='08:00', duty_end='16:00'),
            make_day(1, standby_on='06:00', standby_off='18:00'),
        ]
        metrics = self.aggregator.calculate(records, TARGET)
        assert metrics.duty_time_7d == 14.0

    def test_future_records_ignored(self):
        records = [DutyRecord(date=TARGET + timedelta(days=1), duty_start='08:00', duty_end='16:00')]
        assert self.aggregator.calculate(records, TARGET).duty_time_7d == 0.0

    def test_every_metric(self):
        records = [
            make_day(offset, duty_start='08:00', duty_end='16:00', fdp_start='08:30', fdp_end='15:30',
                     flight_hours_by_aircraft={'AW139': 2.0})
            for offset in (0, 2, 10, 20, 60, 100, 300)
        ]
        metrics = self.aggregator.calculate(records, TARGET)
        assert metrics.flight_time_3d == 4.0
        assert metrics.flight_time_7d == 4.0
        assert metrics.flight_time_28d == 8.0
        assert metrics.flight_time_84d == 10.0
        assert metrics.flight_time_90d == 10.0
        assert metrics.flight_time_365d == 14.0
        assert metrics.duty_time_14d == 24.0
        assert metrics.fdp_time_14d == 21.0

    def test_three_day_flight_window_slides(self):
        start = date(2024, 3, 1)
        records = [
            DutyRecord(date=start + timedelta(days=n), flight_hours_by_aircraft={'AW139': hours})
            for n, hours in enumerate((4.0, 4.0, 4.0, 1.0))
        ]
        # Day 3 holds days 1-3; day 4 holds days 2-4 only
        assert self.aggregator.calculate(records, date(2024, 3, 3)).flight_time_3d == 12.0
        assert self.aggregator.calculate(records, date(2024, 3, 4)).flight_time_3d == 9.0

    def test_never_negative(self):
        metrics = self.aggregator.calculate([make_day(0)], TARGET)
        assert all(value >= 0 for value in metrics.to_dict().values())


class TestCumulativeLimits:

    def test_helicopter_caps(self):
        metrics = RollingMetrics(flight_time_3d=18.5, duty_time_7d=61.0)
        assert check_cumulative_limits(metrics, HELI) == [
            "Flight time of 18.5h in 3 days exceeds the 18h limit.",
            "Duty time of 61.0h in 7 days exceeds the 60h limit.",
        ]

    def test_fixed_wing_caps(self):
        metrics = RollingMetrics(flight_time_3d=18.5, duty_time_14d=96.0)
        assert check_cumulative_limits(metrics, FIXED) == [
            "Duty time of 96.0h in 14 days exceeds the 95h limit.",
        ]

    def test_at_limit_is_not_exceeded(self):
        assert check_cumulative_limits(RollingMetrics(duty_time_7d=60.0), HELI) == []

    def test_unknown_category(self):
        assert check_cumulative_limits(RollingMetrics(duty_time_7d=500.0), None) == []
