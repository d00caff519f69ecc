"""
test_standby.py - Home standby duration, cap, call-out and duty credit

Run: python -m pytest tests/test_standby.py -v
"""

from datetime import date

from models.data_models import DutyRecord
from core.standby import StandbyCalculator, fdp_reference_start, is_call_out
from core.rolling_totals import record_duty_hours


def make_record(**fields):
    return DutyRecord(date=date(2024, 3, 10), **fields)


class TestStandby:

    def setup_method(self):
        self.calc = StandbyCalculator()

    def test_within_cap(self):
        details = self.calc.calculate(make_record(standby_on='06:00', standby_off='18:00'))
        assert details.standby_duration == 12.0
        assert details.standby_violation is None
        assert details.credited_duty_hours == 6.0

    def test_over_cap(self):
        details = self.calc.calculate(make_record(standby_on='06:00', standby_off='19:30'))
        assert details.standby_duration == 13.5
        assert details.standby_violation == "Standby period of 13.5h exceeds the maximum 12h."

    def test_overnight_standby(self):
        details = self.calc.calculate(make_record(standby_on='20:00', standby_off='04:00'))
        assert details.standby_duration == 8.0

    def test_no_standby(self):
        details = self.calc.calculate(make_record(duty_start='08:00', duty_end='16:00'))
        assert details.standby_duration == 0.0
        assert details.standby_violation is None
        assert not details.called_out

    def test_half_credit_toward_duty_totals(self):
        record = make_record(standby_on='06:00', standby_off='18:00', duty_start='18:00', duty_end='20:00')
        assert self.calc.credited_duty_hours(record) == 6.0
        assert record_duty_hours(record) == 8.0
        assert record_duty_hours(record, self.calc) == 8.0


class TestCallOut:

    def test_standby_then_duty_is_call_out(self):
        record = make_record(standby_on='05:00', standby_off='09:00', duty_start='09:00', duty_end='15:00')
        assert is_call_out(record)
        assert fdp_reference_start(record) == '05:00'
        assert StandbyCalculator().calculate(record).called_out

    def test_plain_duty_uses_fdp_start(self):
        record = make_record(duty_start='07:00', duty_end='15:00', fdp_start='07:30', fdp_end='14:30')
        assert not is_call_out(record)
        assert fdp_reference_start(record) == '07:30'

    def test_standby_only_day_references_standby(self):
        record = make_record(standby_on='06:00', standby_off='18:00')
        assert not is_call_out(record)
        assert fdp_reference_start(record) == '06:00'

    def test_standby_after_duty_is_not_call_out(self):
        record = make_record(duty_start='08:00', duty_end='18:00', fdp_start='08:00', fdp_end='17:00',
                             standby_on='22:00', standby_off='23:00')
        assert not is_call_out(record)
        assert fdp_reference_start(record) == '08:00'
        assert not StandbyCalculator().calculate(record).called_out

    def test_standby_starting_at_report_time_is_call_out(self):
        record = make_record(standby_on='08:00', standby_off='10:00', duty_start='08:00', duty_end='16:00')
        assert is_call_out(record)

    def test_unparseable_standby_is_not_call_out(self):
        record = make_record(standby_on='0500', duty_start='08:00', duty_end='16:00')
        assert not is_call_out(record)
