"""
Rest Period Validation
======================

Rest since the end of the previous duty or standby, checked against the
dynamic minimum max(12h, length of the preceding duty) (Operations
Manual 4.1).
"""

from datetime import date, datetime, time
from typing import Optional, Sequence

from models.data_models import DutyRecord, RestPeriodDetails
from core.parameters import FTLFramework
from core.time_utils import (
    calculate_duration_hours, clock_on_date, hours_between, period_end_datetime,
)


def find_previous_record_with_end(records: Sequence[DutyRecord], before: date) -> Optional[DutyRecord]:
    """Most recent record dated strictly before `before` with a duty or standby end"""
    for record in reversed(records):
        if record.date >= before:
            continue
        if record.duty_end or record.standby_off:
            return record
    return None


def shift_end_datetime(record: DutyRecord) -> Optional[datetime]:
    """Absolute end of the record's duty (or standby), overnight-aware"""
    if record.duty_end:
        return period_end_datetime(record.date, record.duty_start, record.duty_end)
    return period_end_datetime(record.date, record.standby_on, record.standby_off)


def shift_length_hours(record: DutyRecord) -> float:
    if record.duty_end:
        return calculate_duration_hours(record.duty_start, record.duty_end)
    return calculate_duration_hours(record.standby_on, record.standby_off)


class RestPeriodValidator:
    """Rest between consecutive duties"""

    def __init__(self, framework: FTLFramework = None):
        self.framework = framework or FTLFramework()

    def required_rest(self, previous: DutyRecord) -> float:
        return max(self.framework.minimum_rest_hours, shift_length_hours(previous))

    def calculate(self, current: DutyRecord, previous: Optional[DutyRecord]) -> RestPeriodDetails:
        """
        Rest ending at the current day's duty start (standby start when no
        duty is logged). A day with neither measures rest up to 00:00 and
        is never flagged.
        """
        if previous is None:
            return RestPeriodDetails(has_history=False)
        previous_end = shift_end_datetime(previous)
        if previous_end is None:
            return RestPeriodDetails(has_history=False)

        required = self.required_rest(previous)
        current_start = clock_on_date(current.date, current.shift_start)
        is_shift_starting = current_start is not None
        if current_start is None:
            current_start = datetime.combine(current.date, time(0, 0))

        rest_hours = hours_between(previous_end, current_start)
        if rest_hours < 0:
            return RestPeriodDetails(has_history=True, rest_period=0.0, required_rest=required)

        violation = None
        if is_shift_starting and rest_hours < required:
            violation = (
                f"Rest period of {rest_hours:.1f}h is less than the required "
                f"{required:.1f}h minimum."
            )
        return RestPeriodDetails(
            has_history=True,
            rest_period=rest_hours,
            required_rest=required,
            rest_violation=violation,
        )
