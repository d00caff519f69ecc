"""
Home Standby
============

Standby duration and cap, call-out detection, and the share of standby
credited to cumulative duty totals (Operations Manual 3.4).
"""

from typing import Optional

from models.data_models import DutyRecord, StandbyDetails
from core.parameters import FTLFramework
from core.time_utils import calculate_duration_hours, parse_time_to_minutes


def is_call_out(record: DutyRecord) -> bool:
    """
    Standby followed by a flight duty on the same day.

    The standby must begin at or before report time; a standby logged
    after the duty is a separate period, not a call-out.
    """
    standby_start = parse_time_to_minutes(record.standby_on)
    report = parse_time_to_minutes(record.fdp_start or record.duty_start)
    if standby_start is None or report is None:
        return False
    return standby_start <= report


def fdp_reference_start(record: DutyRecord) -> Optional[str]:
    """
    Clock time used to select the FDP bracket.

    On a call-out the standby start is the reference, although the FDP
    itself is still measured from report time.
    """
    if is_call_out(record):
        return record.standby_on
    return record.fdp_start or record.duty_start or record.standby_on


class StandbyCalculator:
    """Standby duration, cap check and cumulative-duty credit"""

    def __init__(self, framework: FTLFramework = None):
        self.framework = framework or FTLFramework()

    def credited_duty_hours(self, record: DutyRecord) -> float:
        duration = calculate_duration_hours(record.standby_on, record.standby_off)
        return duration * self.framework.standby_duty_credit

    def calculate(self, record: DutyRecord) -> StandbyDetails:
        duration = calculate_duration_hours(record.standby_on, record.standby_off)
        if duration == 0:
            return StandbyDetails(standby_start=record.standby_on, called_out=is_call_out(record))

        cap = self.framework.max_standby_hours
        violation = None
        if duration > cap:
            violation = f"Standby period of {duration:.1f}h exceeds the maximum {cap:g}h."

        return StandbyDetails(
            standby_duration=duration,
            standby_violation=violation,
            standby_start=record.standby_on,
            called_out=is_call_out(record),
            credited_duty_hours=self.credited_duty_hours(record),
        )
