"""
Monthly Duty Log Reports
========================

Tabular and audit views over a recalculated month:

- build_duty_log_table: printable duty log (one row per date)
- collect_violations / build_breakdown: per-day audit of every figure
  that fed the verdict
- export_duty_log_csv: the printable table written to disk
"""

from typing import Any, Dict, List, Optional, Sequence
import logging

import pandas as pd

from models.data_models import AircraftCategory, MonthlyDayRecord
from core.parameters import EngineConfig
from core.rolling_totals import check_cumulative_limits
from core.time_utils import calculate_duration_hours, decimal_to_time

logger = logging.getLogger(__name__)


PRINT_COLUMNS = [
    'Date', 'Status', 'Rest', 'Duty Start', 'Duty End', 'FDP Start', 'FDP End',
    'Break Start/End', 'Flight Hours', 'Sectors', '2-Pilot', 'Standby On',
    'Standby Off', 'Actual FDP', 'Break', 'Extension', 'Max FDP',
    'Duty 7d', 'Duty 28d', 'Flight 3d', 'Flight 7d', 'Flight 28d',
    'Flight 90d', 'Flight 365d', 'Remarks', 'Violation',
]


def _fmt_time(value: Optional[str]) -> str:
    return value if value else '-'


def _fmt_hours(value: float) -> str:
    return decimal_to_time(value) if value > 0 else '-'


def _fmt_decimal(value: float) -> str:
    return f"{value:.1f}" if value > 0 else '-'


def _print_row(day: MonthlyDayRecord) -> Dict[str, Any]:
    record = day.record
    metrics = day.metrics
    rest = decimal_to_time(day.rest.rest_period, compact=True, allow_zero=True) if day.rest.has_history else 'N/A'
    return {
        'Date': record.date.isoformat(),
        'Status': 'OFF' if day.is_day_off else 'DUTY',
        'Rest': rest,
        'Duty Start': _fmt_time(record.duty_start),
        'Duty End': _fmt_time(record.duty_end),
        'FDP Start': _fmt_time(record.fdp_start),
        'FDP End': _fmt_time(record.fdp_end),
        'Break Start/End': (
            f"{_fmt_time(record.break_start)} / {_fmt_time(record.break_end)}" if record.is_split_duty else '-'
        ),
        'Flight Hours': _fmt_hours(day.flight_duration),
        'Sectors': record.sectors if record.sectors else '-',
        '2-Pilot': 'Y' if record.is_two_pilot_operation else '-',
        'Standby On': _fmt_time(record.standby_on),
        'Standby Off': _fmt_time(record.standby_off),
        'Actual FDP': _fmt_hours(day.actual_fdp),
        'Break': _fmt_hours(day.fdp.break_duration),
        'Extension': f"+{_fmt_hours(day.fdp.fdp_extension)}" if day.fdp.fdp_extension > 0 else '-',
        'Max FDP': _fmt_hours(day.fdp.max_fdp),
        'Duty 7d': _fmt_decimal(metrics.duty_time_7d),
        'Duty 28d': _fmt_decimal(metrics.duty_time_28d),
        'Flight 3d': _fmt_decimal(metrics.flight_time_3d),
        'Flight 7d': _fmt_decimal(metrics.flight_time_7d),
        'Flight 28d': _fmt_decimal(metrics.flight_time_28d),
        'Flight 90d': _fmt_decimal(metrics.flight_time_90d),
        'Flight 365d': _fmt_decimal(metrics.flight_time_365d),
        'Remarks': record.remarks or '',
        'Violation': bool(day.violation),
    }


def build_duty_log_table(days: Sequence[MonthlyDayRecord]) -> pd.DataFrame:
    """Printable duty log, one row per date in the order given"""
    return pd.DataFrame([_print_row(day) for day in days], columns=PRINT_COLUMNS)


def export_duty_log_csv(days: Sequence[MonthlyDayRecord], path: str) -> str:
    df = build_duty_log_table(days)
    df.to_csv(path, index=False)
    logger.info(f"Exported {len(df)} duty log rows to {path}")
    return path


# ============================================================================
# AUDIT BREAKDOWN
# ============================================================================

def collect_violations(
    day: MonthlyDayRecord,
    category: Optional[AircraftCategory] = None,
    config: EngineConfig = None,
) -> List[str]:
    """
    Every violation behind a day, not just the one shown in the grid.

    Cumulative caps are re-checked against the day's metrics for the
    given category; without one, the caps recorded on the day are used.
    """
    violations = []
    if day.actual_fdp > 0 and day.fdp.max_fdp > 0 and day.actual_fdp > day.fdp.max_fdp:
        violations.append(
            f"Exceeded Max FDP of {day.fdp.max_fdp:.2f}h (Actual: {day.actual_fdp:.2f}h)."
        )
    for message in (
        day.rest.rest_violation,
        day.disruptive.disruptive_violation,
        day.days_off_validation.violation,
        day.standby.standby_violation,
    ):
        if message and message not in violations:
            violations.append(message)

    if category is not None:
        cumulative = check_cumulative_limits(day.metrics, category, config)
    else:
        cumulative = day.cumulative_violations
    violations.extend(m for m in cumulative if m not in violations)
    return violations


def build_breakdown(
    day: MonthlyDayRecord,
    category: Optional[AircraftCategory] = None,
    config: EngineConfig = None,
) -> Dict[str, Any]:
    """Every intermediate figure for one date, rounded for display"""
    config = config or EngineConfig.default_config()
    record = day.record
    effective_rest = max(0.0, day.fdp.break_duration - config.framework.split_duty_buffer_hours)

    return {
        'date': record.date.isoformat(),
        'inputs': {
            'dutyPeriod': f"{record.duty_start or '--'} - {record.duty_end or '--'}",
            'fdpPeriod': f"{record.fdp_start or '--'} - {record.fdp_end or '--'}",
            'breakPeriod': f"{record.break_start or '--'} - {record.break_end or '--'}" if record.is_split_duty else None,
            'standbyPeriod': f"{record.standby_on} - {record.standby_off or '--'}" if record.standby_on else None,
            'flightHoursByAircraft': {k: round(v, 2) for k, v in record.flight_hours_by_aircraft.items()},
            'sectors': record.sectors,
        },
        'daily': {
            'dutyHours': round(calculate_duration_hours(record.duty_start, record.duty_end), 2),
            'flightHours': round(day.flight_duration, 2),
            'standbyHours': round(day.standby.standby_duration, 2),
            'fdpHours': round(day.actual_fdp, 2),
        },
        'splitDuty': {
            'breakDuration': round(day.fdp.break_duration, 2),
            'buffer': config.framework.split_duty_buffer_hours,
            'effectiveRest': round(effective_rest, 2),
            'extension': round(day.fdp.fdp_extension, 2),
            'baseFdp': round(day.fdp.base_fdp, 2),
            'maxFdp': round(day.fdp.max_fdp, 2),
            'referenceStart': day.fdp.reference_start,
        },
        'rest': {
            'hasHistory': day.rest.has_history,
            'restPeriod': round(day.rest.rest_period, 2),
            'requiredRest': round(day.rest.required_rest, 2),
        },
        'metrics': {k: round(v, 2) for k, v in day.metrics.to_dict().items()},
        'violations': collect_violations(day, category, config),
    }
