"""
Monthly Recalculation
=====================

Drives every FTL validator over one pilot's month, day by day in
ascending date order, on top of a read-only look-back of prior history.

The recalculation is a pure function of (raw month, history, pilot):
there is no persisted derived state, so any single-field edit re-runs
the whole month. A change to one day's duty end can alter rest,
disruptive runs, days-off status and rolling totals of every later day.
"""

from dataclasses import fields
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence
import logging
import math

from models.data_models import (
    AircraftCategory, DaysOffValidationDetails, DutyRecord, MonthlyDayRecord,
    MonthlySummary, PilotAttributes, DAY_OFF_REMARK, field_name,
)
from core.parameters import EngineConfig
from core.days_off import DaysOffValidator
from core.disruptive import DisruptiveDutyTracker
from core.fdp import calculate_fdp_details
from core.rest import RestPeriodValidator, find_previous_record_with_end
from core.rolling_totals import RollingTotalsAggregator, check_cumulative_limits, record_flight_hours
from core.standby import StandbyCalculator
from core.time_utils import (
    FTLInputError, calculate_duration_hours, decimal_to_time, month_dates,
)

logger = logging.getLogger(__name__)


def merge_violations(*candidates: Optional[str]) -> Optional[str]:
    """First non-empty message wins"""
    for candidate in candidates:
        if candidate:
            return candidate
    return None


class MonthlyRecalculator:
    """Recalculation orchestrator for one pilot-month"""

    def __init__(self, config: EngineConfig = None):
        self.config = config or EngineConfig.default_config()
        fw = self.config.framework
        self.rolling = RollingTotalsAggregator(fw)
        self.rest = RestPeriodValidator(fw)
        self.standby = StandbyCalculator(fw)
        self.days_off = DaysOffValidator(fw)
        self.disruptive = DisruptiveDutyTracker(fw)

    def recalculate_month(
        self,
        raw_month: Sequence[DutyRecord],
        history: Sequence[DutyRecord],
        pilot: PilotAttributes,
    ) -> List[MonthlyDayRecord]:
        """
        Args:
            raw_month: one record per calendar day (blank days as date-only records)
            history: the pilot's records before the month, treated as immutable
            pilot: supplies the aircraft category (first listed is used)

        Returns:
            MonthlyDayRecord per day, ascending by date
        """
        category = pilot.aircraft_category
        month = sorted(raw_month, key=lambda r: r.date)
        if not month:
            return []

        first_day = month[0].date
        combined = sorted((r for r in history if r.date < first_day), key=lambda r: r.date)
        if len(combined) != len(history):
            logger.warning(
                f"Dropped {len(history) - len(combined)} history record(s) dated on/after {first_day}"
            )

        results: List[MonthlyDayRecord] = []
        for raw in month:
            combined.append(raw)
            try:
                day = self.calculate_day(raw, combined, category)
            except Exception:
                logger.exception(f"[{raw.date}] Recalculation failed - emitting day as not computable")
                day = MonthlyDayRecord(record=raw, is_day_off=raw.is_day_off)
            combined[-1] = day.record
            results.append(day)

        logger.debug(f"Recalculated {len(results)} day(s) against {len(history)} history record(s)")
        return results

    def calculate_day(
        self,
        raw: DutyRecord,
        combined: Sequence[DutyRecord],
        category: Optional[AircraftCategory],
    ) -> MonthlyDayRecord:
        """
        Evaluate one day. `combined` ends with `raw` and holds every
        earlier record of the pass.
        """
        flight_hours = record_flight_hours(raw)
        actual_fdp = calculate_duration_hours(raw.fdp_start, raw.fdp_end)

        metrics = self.rolling.calculate(combined, raw.date)
        standby = self.standby.calculate(raw)
        reference_start = standby.standby_start if standby.called_out else None
        fdp = calculate_fdp_details(raw, category, self.config, reference_start)
        previous = find_previous_record_with_end(combined[:-1], raw.date)
        rest = self.rest.calculate(raw, previous)
        days_off = self.days_off.validate(combined, raw.date, category)
        disruptive = self.disruptive.evaluate(combined, raw, category)
        cumulative = check_cumulative_limits(metrics, category, self.config)

        fdp_violation = None
        if actual_fdp > 0 and fdp.max_fdp > 0 and actual_fdp > fdp.max_fdp:
            fdp_violation = f"Exceeded Max FDP of {decimal_to_time(fdp.max_fdp)}."
        flight_time_violation = None
        if flight_hours > 0 and fdp.max_flight_time > 0 and flight_hours > fdp.max_flight_time:
            flight_time_violation = f"Exceeded Max Flight Time of {fdp.max_flight_time:g}h."

        violation = merge_violations(
            rest.rest_violation,
            standby.standby_violation,
            disruptive.disruptive_violation,
            days_off.violation,
            fdp_violation,
            flight_time_violation,
            *cumulative,
        )
        if violation:
            logger.debug(f"[{raw.date}] {violation}")

        return MonthlyDayRecord(
            record=raw,
            is_day_off=raw.is_day_off,
            flight_duration=flight_hours,
            actual_fdp=actual_fdp,
            fdp=fdp,
            rest=rest,
            standby=standby,
            disruptive=disruptive,
            days_off_validation=DaysOffValidationDetails(violation=violation),
            metrics=metrics,
            cumulative_violations=cumulative,
        )


# ============================================================================
# RAW-MONTH OPERATIONS
# ============================================================================

_DAY_OFF_CLEARED = dict(
    duty_start=None, duty_end=None, fdp_start=None, fdp_end=None,
    break_start=None, break_end=None, flight_on=None, flight_off=None,
    standby_on=None, standby_off=None, aircraft_type=None, remarks=None,
    sectors=None, flight_hours_by_aircraft={},
    is_two_pilot_operation=False, is_split_duty=False,
)

_EDITABLE_FIELDS = {f.name for f in fields(DutyRecord)} - {'date', 'staff_id', 'record_id'}


def build_month_slots(month: str, records: Iterable[DutyRecord], staff_id: Optional[str] = None) -> List[DutyRecord]:
    """One record per calendar day; days without an entry become date-only records"""
    by_date = {r.date: r for r in records}
    return [by_date.get(day) or DutyRecord(date=day, staff_id=staff_id) for day in month_dates(month)]


def _slot_index(raw_month: Sequence[DutyRecord], day: date) -> int:
    for index, record in enumerate(raw_month):
        if record.date == day:
            return index
    raise FTLInputError(f"{day} is not part of the displayed month")


def _coerce_edit_value(name: str, value: Any) -> Any:
    if name == 'sectors':
        if value is None or str(value).strip() == '':
            return None
        try:
            return max(0, int(str(value).strip()))
        except ValueError:
            raise FTLInputError(f"Sectors must be a whole number, got '{value}'")
    if name in ('is_two_pilot_operation', 'is_split_duty'):
        if isinstance(value, str):
            return value.strip().lower() in ('true', 'yes', 'y', '1')
        return bool(value)
    if name == 'flight_hours_by_aircraft':
        try:
            hours = {str(k): float(v or 0) for k, v in dict(value or {}).items()}
        except (TypeError, ValueError):
            raise FTLInputError(f"Flight hours by aircraft must map aircraft to hours, got {value!r}")
        if not all(math.isfinite(h) for h in hours.values()):
            raise FTLInputError(f"Flight hours by aircraft must be finite, got {value!r}")
        return hours
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def apply_field_edit(raw_month: Sequence[DutyRecord], day: date, field: str, value: Any) -> List[DutyRecord]:
    """
    Replace one field of one day, returning a new raw month.

    Editing the simple flight on/off pair keeps a richer per-aircraft
    mapping intact, except when exactly one aircraft type is on record:
    that entry is rewritten with the new on/off duration.
    """
    name = field_name(field)
    if name not in _EDITABLE_FIELDS:
        raise FTLInputError(f"'{field}' is not an editable duty-log field")

    index = _slot_index(raw_month, day)
    record = raw_month[index]
    changes = {name: _coerce_edit_value(name, value)}

    if name in ('flight_on', 'flight_off') and len(record.flight_hours_by_aircraft) == 1:
        flight_on = changes.get('flight_on', record.flight_on)
        flight_off = changes.get('flight_off', record.flight_off)
        (aircraft_id,) = record.flight_hours_by_aircraft
        changes['flight_hours_by_aircraft'] = {
            aircraft_id: calculate_duration_hours(flight_on, flight_off)
        }

    updated = list(raw_month)
    updated[index] = record.with_changes(**changes)
    return updated


def toggle_day_off(raw_month: Sequence[DutyRecord], day: date) -> List[DutyRecord]:
    """
    Duty day -> day off: clears every duty, flight and standby field.
    Day off -> duty day: drops an explicit "DAY OFF" remark.
    """
    index = _slot_index(raw_month, day)
    record = raw_month[index]
    if record.is_day_off:
        if record.remarks == DAY_OFF_REMARK:
            record = record.with_changes(remarks=None)
    else:
        record = record.with_changes(**_DAY_OFF_CLEARED)
    updated = list(raw_month)
    updated[index] = record
    return updated


def strip_derived(days: Iterable[MonthlyDayRecord]) -> List[DutyRecord]:
    """Raw inputs back out of computed days, ready to be re-fed"""
    return [day.record for day in days]


def summarize_month(days: Sequence[MonthlyDayRecord]) -> MonthlySummary:
    """Month totals and the final day's cumulative figures"""
    if not days:
        return MonthlySummary()
    return MonthlySummary(
        total_duty_hours=sum(calculate_duration_hours(d.record.duty_start, d.record.duty_end) for d in days),
        total_flight_hours=sum(d.flight_duration for d in days),
        total_standby_hours=sum(d.standby.standby_duration for d in days),
        days_off=sum(1 for d in days if d.is_day_off),
        violation_days=sum(1 for d in days if d.violation),
        end_of_month_metrics=days[-1].metrics,
    )


class DutyComplianceEngine:
    """
    Entry point for collaborators: recalculation plus the edit operations,
    each followed by a full-month recompute.
    """

    def __init__(self, config: EngineConfig = None):
        self.config = config or EngineConfig.default_config()
        self.recalculator = MonthlyRecalculator(self.config)

    def recalculate(
        self,
        raw_month: Sequence[DutyRecord],
        history: Sequence[DutyRecord],
        pilot: PilotAttributes,
    ) -> List[MonthlyDayRecord]:
        return self.recalculator.recalculate_month(raw_month, history, pilot)

    def edit(
        self,
        raw_month: Sequence[DutyRecord],
        history: Sequence[DutyRecord],
        pilot: PilotAttributes,
        day: date,
        field: str,
        value: Any,
    ) -> List[MonthlyDayRecord]:
        logger.debug(f"[{day}] Edit {field}={value!r}")
        return self.recalculate(apply_field_edit(raw_month, day, field, value), history, pilot)

    def toggle(
        self,
        raw_month: Sequence[DutyRecord],
        history: Sequence[DutyRecord],
        pilot: PilotAttributes,
        day: date,
    ) -> List[MonthlyDayRecord]:
        return self.recalculate(toggle_day_off(raw_month, day), history, pilot)
