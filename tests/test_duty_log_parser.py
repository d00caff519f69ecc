"""
test_duty_log_parser.py
=======================

CSV/JSON duty-log loading and the in-memory duty log store.

Run: python -m pytest tests/test_duty_log_parser.py -v
"""

import json
import pytest
from datetime import date

from models.data_models import DutyRecord
from parsers.duty_log_parser import (
    CSVDutyLogParser, DutyLogParseError, DutyLogStore, JSONDutyLogParser,
)


# ============================================================================
# HELPERS
# ============================================================================

CSV_CAMEL = """date,dutyStart,dutyEnd,fdpStart,fdpEnd,sectors,isTwoPilotOperation,isSplitDuty,flightHoursByAircraft,remarks
2024-03-02,08:00,16:00,08:30,15:30,2,yes,false,"{""AW139"": 2.5}",
2024-03-01,,,,,,,,,DAY OFF
"""

CSV_SNAKE = """date,duty_start,duty_end,standby_on,standby_off,sectors
2024-03-05,09:00,17:00,,,
2024-03-06,,,06:00,18:00,0
"""


def write_csv(tmp_path, content, name='log.csv'):
    path = tmp_path / name
    path.write_text(content)
    return str(path)


# ============================================================================
# CSV
# ============================================================================

class TestCSVParser:

    def test_camel_case_headers(self, tmp_path):
        records = CSVDutyLogParser().parse_csv(write_csv(tmp_path, CSV_CAMEL), 'P7')
        assert [r.date for r in records] == [date(2024, 3, 1), date(2024, 3, 2)]
        day_off, duty = records
        assert day_off.remarks == 'DAY OFF'
        assert day_off.is_day_off
        assert duty.duty_start == '08:00'
        assert duty.sectors == 2
        assert duty.is_two_pilot_operation is True
        assert duty.is_split_duty is False
        assert duty.flight_hours_by_aircraft == {'AW139': 2.5}
        assert duty.staff_id == 'P7'

    def test_snake_case_headers_and_empty_cells(self, tmp_path):
        records = CSVDutyLogParser().parse_csv(write_csv(tmp_path, CSV_SNAKE))
        assert records[0].standby_on is None
        assert records[0].sectors is None
        assert records[1].standby_on == '06:00'
        assert records[1].sectors == 0

    def test_missing_date_column(self, tmp_path):
        with pytest.raises(DutyLogParseError):
            CSVDutyLogParser().parse_csv(write_csv(tmp_path, "dutyStart,dutyEnd\n08:00,16:00\n"))

    def test_unparseable_date(self, tmp_path):
        with pytest.raises(DutyLogParseError):
            CSVDutyLogParser().parse_csv(write_csv(tmp_path, "date,dutyStart\n03/02/2024,08:00\n"))

    def test_malformed_flight_hours_ignored(self, tmp_path):
        content = 'date,flightHoursByAircraft\n2024-03-02,"not json"\n'
        records = CSVDutyLogParser().parse_csv(write_csv(tmp_path, content))
        assert records[0].flight_hours_by_aircraft == {}


# ============================================================================
# JSON
# ============================================================================

class TestJSONParser:

    def test_backend_documents(self):
        payload = [
            {'id': 'r2', 'date': '2024-03-02', 'dutyStart': '08:00', 'dutyEnd': '16:00', 'sectors': '3'},
            {'id': 'r1', 'date': '2024-03-01', 'remarks': 'DAY OFF'},
        ]
        records = JSONDutyLogParser().parse(payload, 'P7')
        assert [r.record_id for r in records] == ['r1', 'r2']
        assert records[1].sectors == 3
        assert records[1].staff_id == 'P7'

    def test_json_text_and_records_envelope(self):
        text = json.dumps({'records': [{'date': '2024-03-02', 'duty_start': '08:00'}]})
        assert JSONDutyLogParser().parse(text)[0].duty_start == '08:00'

    def test_utc_timestamp_converted_to_home_date(self):
        parser = JSONDutyLogParser('Asia/Qatar')
        # 22:30Z is 01:30 the next day in Doha (UTC+3)
        assert parser.local_date('2024-03-01T22:30:00Z') == date(2024, 3, 2)
        assert parser.local_date('2024-03-01T10:00:00+00:00') == date(2024, 3, 1)

    def test_naive_timestamp_keeps_its_date(self):
        assert JSONDutyLogParser('Asia/Qatar').local_date('2024-03-01T23:00:00') == date(2024, 3, 1)

    def test_missing_or_bad_date(self):
        with pytest.raises(DutyLogParseError):
            JSONDutyLogParser().parse([{'dutyStart': '08:00'}])
        with pytest.raises(DutyLogParseError):
            JSONDutyLogParser().parse([{'date': '2024-13-45'}])
        with pytest.raises(DutyLogParseError):
            JSONDutyLogParser().parse('{not json')

    def test_round_trip_through_backend_shape(self):
        record = DutyRecord(date=date(2024, 3, 2), duty_start='08:00', sectors=2,
                            flight_hours_by_aircraft={'AW139': 1.5}, staff_id='P7')
        assert JSONDutyLogParser().parse([record.to_dict()]) == [record]


# ============================================================================
# STORE
# ============================================================================

class TestDutyLogStore:

    def setup_method(self):
        self.store = DutyLogStore()
        self.store.add_records('P7', [
            DutyRecord(date=date(2024, 2, 28), duty_start='08:00', duty_end='16:00'),
            DutyRecord(date=date(2024, 3, 1), duty_start='08:00', duty_end='16:00'),
            DutyRecord(date=date(2024, 1, 15), duty_start='08:00', duty_end='16:00'),
            DutyRecord(date=date(2024, 4, 1), duty_start='08:00', duty_end='16:00'),
        ])

    def test_history_before_month(self):
        history = self.store.history_before('P7', '2024-03')
        assert [r.date for r in history] == [date(2024, 1, 15), date(2024, 2, 28)]
        assert all(r.staff_id == 'P7' for r in history)

    def test_month_records(self):
        assert [r.date for r in self.store.month_records('P7', '2024-03')] == [date(2024, 3, 1)]

    def test_unknown_staff(self):
        assert not self.store.has_staff('P8')
        assert self.store.records_for('P8') == []

    def test_later_write_replaces_date(self):
        self.store.add_records('P7', [DutyRecord(date=date(2024, 3, 1), remarks='DAY OFF')])
        assert self.store.month_records('P7', '2024-03')[0].remarks == 'DAY OFF'
