"""
data_models.py - Core Data Structures
======================================

Data models for pilot duty logs and their per-day FTL compliance results.

Raw input:
- DutyRecord: one pilot's duty log entry for one calendar date
- PilotAttributes: aircraft category flags from the staff profile

Derived (immutable, rebuilt on every recalculation):
- RestPeriodDetails, FdpDetails, DisruptiveDutyDetails, StandbyDetails,
  DaysOffValidationDetails, RollingMetrics
- MonthlyDayRecord: raw record + every derived entity for that date
- MonthlySummary: month totals and end-of-month cumulative figures
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from enum import Enum
import logging

logger = logging.getLogger(__name__)


DAY_OFF_REMARK = "DAY OFF"


# ============================================================================
# ENUMS
# ============================================================================

class AircraftCategory(Enum):
    """Pilot category; selects the FDP and days-off rule tables"""
    HELICOPTER = "Helicopter"
    FIXED_WING = "Fixed Wing"

    @classmethod
    def from_value(cls, value: Any) -> Optional['AircraftCategory']:
        """
        Lenient lookup used on staff-profile data.

        Accepts the enum itself, its value, or the spellings found in
        exported profiles ("FixedWing", "Aeroplane", "rotor wing", ...).
        Unknown values resolve to None (limits become "not computable").
        """
        if value is None or isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace('_', ' ').replace('-', ' ')
        aliases = {
            'helicopter': cls.HELICOPTER,
            'rotor wing': cls.HELICOPTER,
            'rotorcraft': cls.HELICOPTER,
            'fixed wing': cls.FIXED_WING,
            'fixedwing': cls.FIXED_WING,
            'aeroplane': cls.FIXED_WING,
            'airplane': cls.FIXED_WING,
        }
        category = aliases.get(key)
        if category is None and key:
            logger.warning(f"Unknown aircraft category '{value}' - FDP limits will not be computed")
        return category


# ============================================================================
# RAW INPUT
# ============================================================================

# snake_case attribute -> camelCase key used by the hosted backend
_CAMEL_KEYS = {
    'record_id': 'id',
    'staff_id': 'staffId',
    'date': 'date',
    'duty_start': 'dutyStart',
    'duty_end': 'dutyEnd',
    'fdp_start': 'fdpStart',
    'fdp_end': 'fdpEnd',
    'break_start': 'breakStart',
    'break_end': 'breakEnd',
    'standby_on': 'standbyOn',
    'standby_off': 'standbyOff',
    'flight_on': 'flightOn',
    'flight_off': 'flightOff',
    'is_two_pilot_operation': 'isTwoPilotOperation',
    'is_split_duty': 'isSplitDuty',
    'sectors': 'sectors',
    'aircraft_type': 'aircraftType',
    'flight_hours_by_aircraft': 'flightHoursByAircraft',
    'remarks': 'remarks',
}
_SNAKE_KEYS = {camel: snake for snake, camel in _CAMEL_KEYS.items()}

TIME_FIELDS = (
    'duty_start', 'duty_end', 'fdp_start', 'fdp_end',
    'break_start', 'break_end', 'standby_on', 'standby_off',
    'flight_on', 'flight_off',
)


def field_name(key: str) -> Optional[str]:
    """Resolve a camelCase or snake_case key to a DutyRecord attribute name"""
    if key in _CAMEL_KEYS:
        return key
    return _SNAKE_KEYS.get(key)


def coerce_date(value: Any) -> date:
    """Accept date, datetime or 'YYYY-MM-DD' text"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_sectors(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        sectors = int(float(value))
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparseable sector count '{value}'")
        return None
    return max(0, sectors)


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', 'y', '1')
    return bool(value)


def _coerce_flight_hours(value: Any) -> Dict[str, float]:
    if not value:
        return {}
    hours = {}
    for aircraft_id, amount in dict(value).items():
        try:
            hours[str(aircraft_id)] = float(amount or 0)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring unparseable flight hours '{amount}' for aircraft {aircraft_id}")
    return hours


@dataclass(frozen=True)
class DutyRecord:
    """
    One duty-log entry (one staff member, one date).

    Clock fields are local 24h "HH:MM" strings or None. A record with only
    a date stands in for a blank day in the month grid.
    """
    date: date
    duty_start: Optional[str] = None
    duty_end: Optional[str] = None
    fdp_start: Optional[str] = None
    fdp_end: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    standby_on: Optional[str] = None
    standby_off: Optional[str] = None
    flight_on: Optional[str] = None    # Simple single on/off pair
    flight_off: Optional[str] = None
    is_two_pilot_operation: bool = False
    is_split_duty: bool = False
    sectors: Optional[int] = None
    aircraft_type: Optional[str] = None
    flight_hours_by_aircraft: Dict[str, float] = field(default_factory=dict)
    remarks: Optional[str] = None
    staff_id: Optional[str] = None
    record_id: Optional[str] = None

    @property
    def is_day_off(self) -> bool:
        """Explicit "DAY OFF" remark, or no duty and no standby start"""
        if self.remarks == DAY_OFF_REMARK:
            return True
        return not self.duty_start and not self.standby_on

    @property
    def shift_start(self) -> Optional[str]:
        """Start of the working day: duty start, else standby start"""
        return self.duty_start or self.standby_on

    @property
    def shift_end(self) -> Optional[str]:
        return self.duty_end or self.standby_off

    def with_changes(self, **changes) -> 'DutyRecord':
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DutyRecord':
        """Build from a backend document (camelCase or snake_case keys)"""
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = field_name(key)
            if name is not None:
                values[name] = value

        if 'date' not in values:
            raise ValueError("Duty record has no 'date'")

        kwargs: Dict[str, Any] = {'date': coerce_date(values['date'])}
        for name in TIME_FIELDS + ('aircraft_type', 'remarks', 'staff_id', 'record_id'):
            if name in values:
                kwargs[name] = _clean_text(values[name])
        if 'sectors' in values:
            kwargs['sectors'] = _coerce_sectors(values['sectors'])
        for name in ('is_two_pilot_operation', 'is_split_duty'):
            if name in values:
                kwargs[name] = _coerce_bool(values[name])
        if 'flight_hours_by_aircraft' in values:
            kwargs['flight_hours_by_aircraft'] = _coerce_flight_hours(values['flight_hours_by_aircraft'])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase document, as stored by the backend"""
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == 'date':
                value = value.isoformat()
            elif f.name == 'flight_hours_by_aircraft':
                value = dict(value)
            out[_CAMEL_KEYS[f.name]] = value
        return out


@dataclass(frozen=True)
class PilotAttributes:
    """Staff profile flags the engine needs"""
    staff_id: Optional[str] = None
    aircraft_categories: List[AircraftCategory] = field(default_factory=list)

    @property
    def aircraft_category(self) -> Optional[AircraftCategory]:
        """First category on the profile is the one the rules use"""
        return self.aircraft_categories[0] if self.aircraft_categories else None

    @classmethod
    def from_categories(cls, categories: Any, staff_id: Optional[str] = None) -> 'PilotAttributes':
        if categories is None:
            categories = []
        elif isinstance(categories, (str, AircraftCategory)):
            categories = [categories]
        resolved = [AircraftCategory.from_value(c) for c in categories]
        return cls(staff_id=staff_id, aircraft_categories=[c for c in resolved if c is not None])


# ============================================================================
# DERIVED PER-DAY ENTITIES
# ============================================================================

@dataclass(frozen=True)
class RestPeriodDetails:
    """
    Rest since the previous duty/standby end.

    has_history=False means no earlier record with an end time exists;
    this is "not computable", not a pass.
    """
    has_history: bool = False
    rest_period: float = 0.0
    required_rest: float = 0.0
    rest_violation: Optional[str] = None


@dataclass(frozen=True)
class FdpDetails:
    max_fdp: float = 0.0            # Base limit + split-duty extension
    max_flight_time: float = 0.0    # 0 = no daily cap published
    fdp_extension: float = 0.0
    break_duration: float = 0.0
    base_fdp: float = 0.0
    reference_start: Optional[str] = None  # Clock time used for bracket lookup


@dataclass(frozen=True)
class DisruptiveDutyDetails:
    is_disruptive: bool = False
    disruptive_violation: Optional[str] = None


@dataclass(frozen=True)
class StandbyDetails:
    standby_duration: float = 0.0
    standby_violation: Optional[str] = None
    standby_start: Optional[str] = None
    called_out: bool = False
    credited_duty_hours: float = 0.0  # Share counted toward cumulative duty


@dataclass(frozen=True)
class DaysOffValidationDetails:
    violation: Optional[str] = None


@dataclass(frozen=True)
class RollingMetrics:
    """Trailing-window sums ending on (and including) the day"""
    duty_time_7d: float = 0.0
    duty_time_14d: float = 0.0
    duty_time_28d: float = 0.0
    flight_time_3d: float = 0.0
    flight_time_7d: float = 0.0
    flight_time_28d: float = 0.0
    flight_time_84d: float = 0.0
    flight_time_90d: float = 0.0
    flight_time_365d: float = 0.0
    fdp_time_14d: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            'dutyTime7d': self.duty_time_7d,
            'dutyTime14d': self.duty_time_14d,
            'dutyTime28d': self.duty_time_28d,
            'flightTime3d': self.flight_time_3d,
            'flightTime7d': self.flight_time_7d,
            'flightTime28d': self.flight_time_28d,
            'flightTime84d': self.flight_time_84d,
            'flightTime90d': self.flight_time_90d,
            'flightTime365d': self.flight_time_365d,
            'fdpTime14d': self.fdp_time_14d,
        }


@dataclass(frozen=True)
class MonthlyDayRecord:
    """Composite result for one date of the displayed month"""
    record: DutyRecord
    is_day_off: bool
    flight_duration: float = 0.0
    actual_fdp: float = 0.0
    fdp: FdpDetails = field(default_factory=FdpDetails)
    rest: RestPeriodDetails = field(default_factory=RestPeriodDetails)
    standby: StandbyDetails = field(default_factory=StandbyDetails)
    disruptive: DisruptiveDutyDetails = field(default_factory=DisruptiveDutyDetails)
    days_off_validation: DaysOffValidationDetails = field(default_factory=DaysOffValidationDetails)
    metrics: RollingMetrics = field(default_factory=RollingMetrics)
    cumulative_violations: List[str] = field(default_factory=list)

    @property
    def date(self) -> date:
        return self.record.date

    @property
    def violation(self) -> Optional[str]:
        """The single merged violation shown in the duty grid"""
        return self.days_off_validation.violation

    def to_dict(self) -> Dict[str, Any]:
        """Flattened camelCase view for the grid/print/breakdown consumers"""
        out = self.record.to_dict()
        out.update({
            'isDayOff': self.is_day_off,
            'flightDuration': self.flight_duration,
            'actualFdp': self.actual_fdp,
            'maxFdp': self.fdp.max_fdp,
            'maxFlightTime': self.fdp.max_flight_time,
            'fdpExtension': self.fdp.fdp_extension,
            'breakDuration': self.fdp.break_duration,
            'metrics': self.metrics.to_dict(),
            'rest': {
                'hasHistory': self.rest.has_history,
                'restPeriod': self.rest.rest_period,
                'requiredRest': self.rest.required_rest,
                'restViolation': self.rest.rest_violation,
            },
            'standby': {
                'standbyDuration': self.standby.standby_duration,
                'standbyViolation': self.standby.standby_violation,
                'calledOut': self.standby.called_out,
            },
            'disruptive': {
                'isDisruptive': self.disruptive.is_disruptive,
                'disruptiveViolation': self.disruptive.disruptive_violation,
            },
            'daysOffValidation': {'violation': self.days_off_validation.violation},
            'cumulativeViolations': list(self.cumulative_violations),
        })
        return out


@dataclass(frozen=True)
class MonthlySummary:
    total_duty_hours: float = 0.0
    total_flight_hours: float = 0.0
    total_standby_hours: float = 0.0
    days_off: int = 0
    violation_days: int = 0
    end_of_month_metrics: Optional[RollingMetrics] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalDutyHours': self.total_duty_hours,
            'totalFlightHours': self.total_flight_hours,
            'totalStandbyHours': self.total_standby_hours,
            'daysOff': self.days_off,
            'violationDays': self.violation_days,
            'endOfMonthMetrics': self.end_of_month_metrics.to_dict() if self.end_of_month_metrics else None,
        }
