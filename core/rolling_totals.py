"""
Rolling Totals
==============

Trailing N-day sums of flight, duty and FDP hours ending on (and
including) a target date, over the union of supplied history and the
month being recalculated. Standby counts at 50% toward duty totals.

Totals are compared against the cumulative caps of Operations Manual
section 5.
"""

from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from models.data_models import AircraftCategory, DutyRecord, RollingMetrics
from core.parameters import EngineConfig, FTLFramework
from core.standby import StandbyCalculator
from core.time_utils import calculate_duration_hours, window_dates


def record_flight_hours(record: DutyRecord) -> float:
    """Per-aircraft hours when recorded, otherwise the single on/off pair"""
    total = sum(h or 0.0 for h in record.flight_hours_by_aircraft.values())
    if total == 0 and (record.flight_on or record.flight_off):
        total = calculate_duration_hours(record.flight_on, record.flight_off)
    return total


def record_fdp_hours(record: DutyRecord) -> float:
    return calculate_duration_hours(record.fdp_start, record.fdp_end)


def record_duty_hours(record: DutyRecord, standby: StandbyCalculator = None) -> float:
    """Duty hours plus the credited share of any standby"""
    standby = standby or StandbyCalculator()
    return calculate_duration_hours(record.duty_start, record.duty_end) + standby.credited_duty_hours(record)


class RollingTotalsAggregator:
    """Windowed sums over a pilot's chronological records"""

    def __init__(self, framework: FTLFramework = None):
        self.framework = framework or FTLFramework()

    def _metric(self, kind: str) -> Callable[[DutyRecord], float]:
        if kind == 'flight':
            return record_flight_hours
        if kind == 'fdp':
            return record_fdp_hours
        if kind == 'duty':
            standby = StandbyCalculator(self.framework)
            return lambda record: record_duty_hours(record, standby)
        raise ValueError(f"Unknown rolling metric '{kind}'")

    def sum_window(self, records: Sequence[DutyRecord], target: date, days: int, kind: str) -> float:
        """Sum of `kind` hours over [target - days + 1, target]"""
        by_date: Dict[date, DutyRecord] = {r.date: r for r in records}
        return self._sum_indexed(by_date, target, days, self._metric(kind))

    @staticmethod
    def _sum_indexed(by_date: Dict[date, DutyRecord], target: date, days: int, metric) -> float:
        total = 0.0
        for day in window_dates(target, days):
            record = by_date.get(day)
            if record is not None:
                total += metric(record)
        return max(0.0, total)

    def calculate(self, records: Sequence[DutyRecord], target: date) -> RollingMetrics:
        by_date: Dict[date, DutyRecord] = {r.date: r for r in records if r.date <= target}
        flight = self._metric('flight')
        duty = self._metric('duty')
        fdp = self._metric('fdp')
        return RollingMetrics(
            duty_time_7d=self._sum_indexed(by_date, target, 7, duty),
            duty_time_14d=self._sum_indexed(by_date, target, 14, duty),
            duty_time_28d=self._sum_indexed(by_date, target, 28, duty),
            flight_time_3d=self._sum_indexed(by_date, target, 3, flight),
            flight_time_7d=self._sum_indexed(by_date, target, 7, flight),
            flight_time_28d=self._sum_indexed(by_date, target, 28, flight),
            flight_time_84d=self._sum_indexed(by_date, target, 84, flight),
            flight_time_90d=self._sum_indexed(by_date, target, 90, flight),
            flight_time_365d=self._sum_indexed(by_date, target, 365, flight),
            fdp_time_14d=self._sum_indexed(by_date, target, 14, fdp),
        )


def check_cumulative_limits(
    metrics: RollingMetrics,
    category: Optional[AircraftCategory],
    config: EngineConfig = None,
) -> List[str]:
    """Every cumulative cap exceeded by the day's rolling totals"""
    if category is None:
        return []
    config = config or EngineConfig.default_config()
    violations = []
    for limit in config.cumulative_limits.get(category, ()):
        value = getattr(metrics, limit.metric)
        if value > limit.limit_hours:
            violations.append(limit.describe(value))
    return violations
