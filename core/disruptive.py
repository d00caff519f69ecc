"""
Disruptive Duties (Helicopter Only)
===================================

A duty is disruptive when it touches the Window of Circadian Low
(01:00-06:59 local). Limits (Operations Manual 3.3):
- not more than 3 consecutive disruptive duties
- not more than 4 disruptive duties in any 7 consecutive days
- a run is only broken by 34 consecutive hours free of disruptive duty
  (a normal duty inside those 34 hours does not reset it)
"""

from datetime import date
from typing import Dict, Optional, Sequence

from models.data_models import AircraftCategory, DisruptiveDutyDetails, DutyRecord
from core.parameters import FTLFramework
from core.time_utils import (
    clock_on_date, hours_between, parse_time_to_minutes, period_end_datetime, window_dates,
)


def is_duty_disruptive(record: Optional[DutyRecord], framework: FTLFramework = None) -> bool:
    """Start in WOCL, end in WOCL, or spanning it. Needs both duty bounds."""
    if record is None or not record.duty_start or not record.duty_end:
        return False
    fw = framework or FTLFramework()
    on = parse_time_to_minutes(record.duty_start)
    off = parse_time_to_minutes(record.duty_end)
    if on is None or off is None:
        return False

    if off < on:
        # Overnight: reaches 01:00 unless it is released before then
        return off >= fw.wocl_start_minute

    starts_in_wocl = fw.wocl_start_minute <= on <= fw.wocl_end_minute
    ends_in_wocl = fw.wocl_start_minute <= off <= fw.wocl_end_minute
    spans_wocl = on < fw.wocl_start_minute and off > fw.wocl_end_minute
    return starts_in_wocl or ends_in_wocl or spans_wocl


class DisruptiveDutyTracker:
    """Consecutive / 7-day disruptive duty caps over the combined history"""

    def __init__(self, framework: FTLFramework = None):
        self.framework = framework or FTLFramework()

    def _is_disruptive(self, record: Optional[DutyRecord]) -> bool:
        return is_duty_disruptive(record, self.framework)

    def consecutive_run(self, disruptive: Sequence[DutyRecord]) -> int:
        """
        Length of the run ending with the last duty in `disruptive`
        (ascending, all disruptive). Two duties share a run unless 34h
        separate the end of one from the start of the next.
        """
        if not disruptive:
            return 0
        count = 1
        current = disruptive[-1]
        for previous in reversed(disruptive[:-1]):
            previous_end = period_end_datetime(previous.date, previous.duty_start, previous.duty_end)
            current_start = clock_on_date(current.date, current.duty_start)
            if previous_end is None or current_start is None:
                break
            if hours_between(previous_end, current_start) >= self.framework.disruptive_reset_hours:
                break
            count += 1
            current = previous
        return count

    def validate(
        self,
        records: Sequence[DutyRecord],
        target: date,
        category: Optional[AircraftCategory],
    ) -> Optional[str]:
        """First breached rule for the target date, or None"""
        if category != AircraftCategory.HELICOPTER:
            return None

        by_date: Dict[date, DutyRecord] = {r.date: r for r in records if r.date <= target}
        if not self._is_disruptive(by_date.get(target)):
            return None

        disruptive = [by_date[d] for d in sorted(by_date) if self._is_disruptive(by_date[d])]
        consecutive = self.consecutive_run(disruptive)
        if consecutive > self.framework.max_consecutive_disruptive_duties:
            return (
                f"Exceeds {self.framework.max_consecutive_disruptive_duties} consecutive "
                f"disruptive duties (Day {consecutive})."
            )

        in_window = sum(1 for d in window_dates(target, 7) if self._is_disruptive(by_date.get(d)))
        if in_window > self.framework.max_disruptive_duties_per_7_days:
            return (
                f"Exceeds {self.framework.max_disruptive_duties_per_7_days} disruptive "
                f"duties in 7 days (has {in_window})."
            )
        return None

    def evaluate(
        self,
        records: Sequence[DutyRecord],
        current: DutyRecord,
        category: Optional[AircraftCategory],
    ) -> DisruptiveDutyDetails:
        return DisruptiveDutyDetails(
            is_disruptive=self._is_disruptive(current),
            disruptive_violation=self.validate(records, current.date, category),
        )
