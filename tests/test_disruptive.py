"""
test_disruptive.py
==================

WOCL classification and the helicopter disruptive-duty caps.

Run: python -m pytest tests/test_disruptive.py -v
"""

import pytest
from datetime import date, timedelta

from models.data_models import AircraftCategory, DutyRecord
from core.disruptive import DisruptiveDutyTracker, is_duty_disruptive

HELI = AircraftCategory.HELICOPTER
FIXED = AircraftCategory.FIXED_WING
START = date(2024, 3, 1)


# ============================================================================
# HELPERS
# ============================================================================

def make_duty(offset, start, end):
    return DutyRecord(date=START + timedelta(days=offset), duty_start=start, duty_end=end)


def early_duties(offsets):
    """Disruptive 05:00-13:00 duties on the given day offsets"""
    return [make_duty(i, '05:00', '13:00') for i in offsets]


class TestWoclClassification:

    @pytest.mark.parametrize('start, end, expected', [
        ('05:00', '13:00', True),    # starts in WOCL
        ('18:00', '02:00', True),    # overnight, ends in WOCL
        ('20:00', '00:30', False),   # overnight, released before 01:00
        ('00:30', '08:00', True),    # spans WOCL
        ('07:00', '17:00', False),
        ('06:59', '15:00', True),
        ('00:00', '00:59', False),
        ('00:30', '01:00', True),    # ends on WOCL start
    ])
    def test_classification(self, start, end, expected):
        assert is_duty_disruptive(DutyRecord(date=START, duty_start=start, duty_end=end)) is expected

    def test_needs_both_bounds(self):
        assert not is_duty_disruptive(DutyRecord(date=START, duty_start='05:00'))
        assert not is_duty_disruptive(None)


class TestConsecutiveRule:

    def setup_method(self):
        self.tracker = DisruptiveDutyTracker()

    def test_three_in_a_row_is_allowed(self):
        records = early_duties([0, 1, 2])
        assert self.tracker.validate(records, records[-1].date, HELI) is None

    def test_fourth_in_a_row_is_flagged(self):
        records = early_duties([0, 1, 2, 3])
        assert self.tracker.validate(records, records[-1].date, HELI) == \
            "Exceeds 3 consecutive disruptive duties (Day 4)."

    def test_normal_duty_in_between_does_not_reset(self):
        # Night duty on day 2 ends 02:00, day duty on day 3, 05:00 start on day 4: 27h apart
        records = (
            early_duties([0, 1])
            + [make_duty(2, '18:00', '02:00'), make_duty(3, '14:00', '20:00')]
            + early_duties([4])
        )
        assert self.tracker.consecutive_run([r for r in records if is_duty_disruptive(r)]) == 4
        assert self.tracker.validate(records, records[-1].date, HELI) == \
            "Exceeds 3 consecutive disruptive duties (Day 4)."

    def test_34_hours_free_resets_run(self):
        # Day 2 ends 13:00, day 4 starts 05:00 -> 40h gap
        records = early_duties([0, 1, 2, 4])
        assert self.tracker.validate(records, records[-1].date, HELI) is None

    def test_fixed_wing_is_exempt(self):
        records = early_duties([0, 1, 2, 3, 4])
        assert self.tracker.validate(records, records[-1].date, FIXED) is None

    def test_only_checked_on_disruptive_days(self):
        records = early_duties([0, 1, 2, 3]) + [make_duty(4, '08:00', '16:00')]
        assert self.tracker.validate(records, records[-1].date, HELI) is None


class TestSevenDayRule:

    def test_fifth_in_seven_days_is_flagged(self):
        # Runs of 3 and 2 separated by a 40h gap
        tracker = DisruptiveDutyTracker()
        records = early_duties([0, 1, 2, 4, 5])
        assert tracker.validate(records, records[-1].date, HELI) == \
            "Exceeds 4 disruptive duties in 7 days (has 5)."

    def test_evaluate_reports_classification(self):
        tracker = DisruptiveDutyTracker()
        records = early_duties([0])
        details = tracker.evaluate(records, records[0], HELI)
        assert details.is_disruptive
        assert details.disruptive_violation is None
