"""
Core FTL Compliance Components
==============================

Main exports for the crew duty-time compliance engine.
"""

from core.parameters import (
    FTLFramework,
    StartBracket,
    CumulativeLimit,
    EngineConfig,
)

from core.time_utils import (
    FTLInputError,
    parse_time_to_minutes,
    time_to_decimal,
    decimal_to_time,
    calculate_duration_hours,
)

from core.standby import StandbyCalculator, is_call_out, fdp_reference_start
from core.fdp import FDPLimitResolver, SplitDutyExtensionCalculator, calculate_fdp_details
from core.rest import RestPeriodValidator, find_previous_record_with_end
from core.disruptive import DisruptiveDutyTracker, is_duty_disruptive
from core.rolling_totals import RollingTotalsAggregator, check_cumulative_limits
from core.days_off import DaysOffValidator, count_local_nights

from core.orchestrator import (
    MonthlyRecalculator,
    DutyComplianceEngine,
    build_month_slots,
    apply_field_edit,
    toggle_day_off,
    summarize_month,
)

__all__ = [
    # Parameters
    'FTLFramework',
    'StartBracket',
    'CumulativeLimit',
    'EngineConfig',
    # Time helpers
    'FTLInputError',
    'parse_time_to_minutes',
    'time_to_decimal',
    'decimal_to_time',
    'calculate_duration_hours',
    # Per-day calculators
    'StandbyCalculator',
    'is_call_out',
    'fdp_reference_start',
    'FDPLimitResolver',
    'SplitDutyExtensionCalculator',
    'calculate_fdp_details',
    'RestPeriodValidator',
    'find_previous_record_with_end',
    'DisruptiveDutyTracker',
    'is_duty_disruptive',
    'RollingTotalsAggregator',
    'check_cumulative_limits',
    'DaysOffValidator',
    'count_local_nights',
    # Orchestration
    'MonthlyRecalculator',
    'DutyComplianceEngine',
    'build_month_slots',
    'apply_field_edit',
    'toggle_day_off',
    'summarize_month',
]
