# duty_log_parser.py - CSV/JSON Duty Log Parser

"""
Duty Log Parser - Load pilot duty-log entries from exports and backend documents

Supports:
- CSV exports of the duty grid (camelCase or snake_case headers)
- JSON documents from the hosted backend (ISO dates, optional UTC offsets)
- In-memory store serving month slices and prior history per pilot

Parser outputs standardized DutyRecord objects for the compliance engine.
"""

import json
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
import pytz

from models.data_models import DutyRecord, field_name
from core.time_utils import month_dates

logger = logging.getLogger(__name__)


class DutyLogParseError(ValueError):
    """Duty log without a usable date column/key"""


# ============================================================================
# CSV PARSER
# ============================================================================

class CSVDutyLogParser:
    """Parse CSV exports of the duty log"""

    def parse_csv(self, csv_path: str, staff_id: Optional[str] = None) -> List[DutyRecord]:
        """Parse CSV duty log; empty cells are treated as not recorded"""
        logger.info(f"Parsing CSV duty log: {csv_path}")
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
        return self.parse_frame(df, staff_id)

    def parse_frame(self, df: pd.DataFrame, staff_id: Optional[str] = None) -> List[DutyRecord]:
        columns = {column: field_name(str(column).strip()) for column in df.columns}
        if 'date' not in columns.values():
            raise DutyLogParseError("Duty log has no 'date' column")

        records = []
        for index, row in df.iterrows():
            records.append(self._parse_row(index, row, columns, staff_id))

        records.sort(key=lambda r: r.date)
        logger.info(f"Parsed {len(records)} duty log entries")
        return records

    def _parse_row(self, index, row: pd.Series, columns: Dict[Any, Optional[str]],
                   staff_id: Optional[str]) -> DutyRecord:
        data: Dict[str, Any] = {}
        for column, name in columns.items():
            if name is None:
                continue
            value = row[column]
            if isinstance(value, str):
                value = value.strip()
            if value == '' or pd.isna(value):
                continue
            data[name] = value

        if 'flight_hours_by_aircraft' in data:
            data['flight_hours_by_aircraft'] = self._parse_flight_hours(
                index, data['flight_hours_by_aircraft']
            )
        if staff_id and not data.get('staff_id'):
            data['staff_id'] = staff_id

        try:
            return DutyRecord.from_dict(data)
        except ValueError as e:
            raise DutyLogParseError(f"Row {index + 1}: unusable date ({e})")

    @staticmethod
    def _parse_flight_hours(index, text: str) -> Dict[str, float]:
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"Row {index + 1}: ignoring malformed flightHoursByAircraft '{text}'")
            return {}
        if not isinstance(value, dict):
            logger.warning(f"Row {index + 1}: flightHoursByAircraft is not an object")
            return {}
        return value


# ============================================================================
# JSON PARSER
# ============================================================================

class JSONDutyLogParser:
    """
    Convert backend documents to DutyRecords.

    Backend dates may arrive as full ISO timestamps; those carrying a UTC
    offset are converted to the operator's home-base calendar date.
    """

    def __init__(self, home_timezone: str = 'UTC'):
        self.home_timezone = home_timezone
        self.home_tz = pytz.timezone(home_timezone)

    def local_date(self, value: Any) -> date:
        if isinstance(value, datetime):
            moment = value
        elif isinstance(value, date):
            return value
        else:
            text = str(value).strip()
            if len(text) <= 10:
                try:
                    return date.fromisoformat(text)
                except ValueError:
                    raise DutyLogParseError(f"Unparseable duty date '{value}'")
            try:
                moment = datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                raise DutyLogParseError(f"Unparseable duty date '{value}'")

        if moment.tzinfo is None:
            return moment.date()
        return moment.astimezone(self.home_tz).date()

    def parse_document(self, document: Dict[str, Any], staff_id: Optional[str] = None) -> DutyRecord:
        if document.get('date') in (None, ''):
            raise DutyLogParseError("Duty log document has no 'date'")
        data = dict(document)
        data['date'] = self.local_date(document['date'])
        if staff_id and not (data.get('staffId') or data.get('staff_id')):
            data['staff_id'] = staff_id
        return DutyRecord.from_dict(data)

    def parse(self, payload: Any, staff_id: Optional[str] = None) -> List[DutyRecord]:
        """
        Accepts a list of documents, a JSON string of one, or an object
        with a "records" list.
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise DutyLogParseError(f"Duty log is not valid JSON: {e}")
        if isinstance(payload, dict):
            payload = payload.get('records', [])

        records = [self.parse_document(document, staff_id) for document in payload]
        records.sort(key=lambda r: r.date)
        logger.debug(f"Parsed {len(records)} backend duty documents")
        return records


# ============================================================================
# DUTY LOG STORE
# ============================================================================

class DutyLogStore:
    """
    In-memory duty log keyed by staff id, one record per date.

    Later writes for the same date replace earlier ones.
    """

    def __init__(self):
        self._records: Dict[str, Dict[date, DutyRecord]] = defaultdict(dict)

    def add_records(self, staff_id: str, records: Iterable[DutyRecord]) -> int:
        count = 0
        for record in records:
            self._records[staff_id][record.date] = record.with_changes(staff_id=staff_id)
            count += 1
        return count

    def has_staff(self, staff_id: str) -> bool:
        return staff_id in self._records

    def records_for(self, staff_id: str) -> List[DutyRecord]:
        return [self._records[staff_id][d] for d in sorted(self._records.get(staff_id, {}))]

    def history_before(self, staff_id: str, month: str) -> List[DutyRecord]:
        """Every record strictly before the first day of `month`, ascending"""
        first_day = month_dates(month)[0]
        return [r for r in self.records_for(staff_id) if r.date < first_day]

    def month_records(self, staff_id: str, month: str) -> List[DutyRecord]:
        days = set(month_dates(month))
        return [r for r in self.records_for(staff_id) if r.date in days]

    def clear(self) -> None:
        self._records.clear()
