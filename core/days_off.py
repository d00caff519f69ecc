"""
Days Off & Duty Cycle Validation
================================

Operations Manual Part A, section 4:

General (both categories)
- max 7 consecutive duty days between days off

Helicopter
- single day off >= 36h including two local nights
- after 7 consecutive duty days, 2 consecutive days off (a lone day off
  does not satisfy this)
- any 14 days: >= 3 days off including a block of 2 consecutive
- any 28 days: >= 7 days off
- any 12 weeks: average >= 8 days off per 4 weeks

Fixed wing
- single day off >= 34h including two local nights
- any 14 days: a block of 2 consecutive days off
- any 28 days: >= 7 days off
- any 12 weeks: average >= 8 days off per 4 weeks

The validator only looks backward from the evaluated date. The length of
an off block is therefore judged on the first duty day after it, when
both the previous duty end and the new duty start are known. Dates with
no record count as days off.
"""

from datetime import date, datetime, time, timedelta
from typing import Dict, Optional, Sequence, Tuple

from models.data_models import AircraftCategory, DaysOffValidationDetails, DutyRecord
from core.parameters import FTLFramework
from core.rest import shift_end_datetime
from core.time_utils import clock_on_date, hours_between, window_dates


def is_off_day(record: Optional[DutyRecord]) -> bool:
    """No record, explicit "DAY OFF", or no duty/standby start"""
    return record is None or record.is_day_off


def count_local_nights(start: datetime, end: datetime, framework: FTLFramework = None) -> int:
    """
    Local nights (22:00-08:00) inside [start, end]. A night counts when
    at least 8 of its hours fall inside the period.
    """
    fw = framework or FTLFramework()
    if end <= start:
        return 0
    night_length = timedelta(hours=24 - fw.local_night_start_hour + fw.local_night_end_hour)
    night_start = datetime.combine(start.date() - timedelta(days=1), time(fw.local_night_start_hour))
    count = 0
    while night_start < end:
        night_end = night_start + night_length
        overlap = hours_between(max(start, night_start), min(end, night_end))
        if overlap >= fw.local_night_min_hours:
            count += 1
        night_start += timedelta(days=1)
    return count


class DaysOffValidator:
    """Evaluates the days-off rules for the window ending on a date"""

    def __init__(self, framework: FTLFramework = None):
        self.framework = framework or FTLFramework()

    # ------------------------------------------------------------------
    # Window helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _off(by_date: Dict[date, DutyRecord], day: date) -> bool:
        return is_off_day(by_date.get(day))

    def _duty_run_ending(self, by_date: Dict[date, DutyRecord], day: date) -> int:
        """Consecutive duty days ending on `day` (capped one past the limit)"""
        run = 0
        for check in window_dates(day, self.framework.max_consecutive_duty_days + 1):
            if self._off(by_date, check):
                break
            run += 1
        return run

    def _off_block_before(
        self, by_date: Dict[date, DutyRecord], target: date
    ) -> Tuple[int, Optional[DutyRecord]]:
        """
        When `target` is the first duty day after an off block: the block
        length and the duty record that preceded it (None when the block
        reaches back past the known history).
        """
        if self._off(by_date, target) or not self._off(by_date, target - timedelta(days=1)):
            return 0, None
        earliest = min(by_date)
        block = 0
        day = target - timedelta(days=1)
        while day >= earliest and self._off(by_date, day):
            block += 1
            day -= timedelta(days=1)
        if day < earliest:
            return block, None
        return block, by_date[day]

    def _days_off_in(self, by_date: Dict[date, DutyRecord], target: date, days: int) -> int:
        return sum(1 for d in window_dates(target, days) if self._off(by_date, d))

    def _has_two_day_block(self, by_date: Dict[date, DutyRecord], target: date, days: int) -> bool:
        window = window_dates(target, days)
        return any(
            self._off(by_date, later) and self._off(by_date, earlier)
            for later, earlier in zip(window, window[1:])
        )

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _check_consecutive_duty(self, by_date, target, category) -> Optional[str]:
        if self._off(by_date, target):
            return None
        run = self._duty_run_ending(by_date, target)
        if run > self.framework.max_consecutive_duty_days:
            return f"Exceeds {self.framework.max_consecutive_duty_days} consecutive duty days (Day {run})."
        return None

    def _check_single_day_off(self, by_date, target, category) -> Optional[str]:
        block, previous = self._off_block_before(by_date, target)
        if block == 0 or previous is None:
            return None
        previous_end = shift_end_datetime(previous)
        current_start = clock_on_date(target, by_date[target].shift_start)
        if previous_end is None or current_start is None:
            return None

        elapsed = hours_between(previous_end, current_start)
        nights = count_local_nights(previous_end, current_start, self.framework)
        required = self.framework.single_day_off_hours(category)
        required_nights = self.framework.required_local_nights
        if elapsed < required or nights < required_nights:
            return (
                f"Day off of {elapsed:.1f}h with {nights} local night(s) is shorter than the "
                f"required {required:g}h including {required_nights} local nights."
            )
        return None

    def _check_two_days_after_seven(self, by_date, target, category) -> Optional[str]:
        block, previous = self._off_block_before(by_date, target)
        if block != 1 or previous is None:
            return None
        if self._duty_run_ending(by_date, previous.date) >= self.framework.max_consecutive_duty_days:
            return f"Requires 2 consecutive days off after {self.framework.max_consecutive_duty_days} duty days."
        return None

    def _check_fourteen_day_quota(self, by_date, target, category) -> Optional[str]:
        days_off = self._days_off_in(by_date, target, 14)
        if days_off < self.framework.min_days_off_14_days:
            return (
                f"Fewer than {self.framework.min_days_off_14_days} days off in last "
                f"14 days (has {days_off})."
            )
        return self._check_two_day_block(by_date, target, category)

    def _check_two_day_block(self, by_date, target, category) -> Optional[str]:
        if not self._has_two_day_block(by_date, target, 14):
            return "No 2-day consecutive off block in last 14 days."
        return None

    def _check_twenty_eight_day_quota(self, by_date, target, category) -> Optional[str]:
        days_off = self._days_off_in(by_date, target, 28)
        if days_off < self.framework.min_days_off_28_days:
            return (
                f"Fewer than {self.framework.min_days_off_28_days} days off in last "
                f"28 days (has {days_off})."
            )
        return None

    def _check_twelve_week_average(self, by_date, target, category) -> Optional[str]:
        average = self._days_off_in(by_date, target, 84) / 3
        required = self.framework.min_days_off_per_4_weeks_avg
        if average < required:
            return (
                f"Average of {average:.1f} days off per 4 weeks over the last 12 weeks "
                f"is below the required {required:g}."
            )
        return None

    def _rules(self, category: Optional[AircraftCategory]):
        rules = [self._check_consecutive_duty]
        if category == AircraftCategory.HELICOPTER:
            rules += [
                self._check_single_day_off,
                self._check_two_days_after_seven,
                self._check_fourteen_day_quota,
                self._check_twenty_eight_day_quota,
                self._check_twelve_week_average,
            ]
        elif category == AircraftCategory.FIXED_WING:
            rules += [
                self._check_single_day_off,
                self._check_two_day_block,
                self._check_twenty_eight_day_quota,
                self._check_twelve_week_average,
            ]
        return rules

    def validate(
        self,
        records: Sequence[DutyRecord],
        target: date,
        category: Optional[AircraftCategory],
    ) -> DaysOffValidationDetails:
        """First failing rule, in the order listed in the module docstring"""
        by_date: Dict[date, DutyRecord] = {r.date: r for r in records if r.date <= target}
        if not by_date:
            return DaysOffValidationDetails()
        for rule in self._rules(category):
            violation = rule(by_date, target, category)
            if violation:
                return DaysOffValidationDetails(violation=violation)
        return DaysOffValidationDetails()
