"""
Configuration & Parameters for the FTL Compliance Engine
=========================================================

Regulation constants from the operator's Operations Manual Part A
(flight and duty time limitations), held as explicit immutable tables:

- FTLFramework: scalar limits (WOCL, rest, standby, disruptive duty, days off)
- StartBracket: local start-time band used to index the FDP tables
- HELICOPTER_FDP_LIMITS: Table C, (max FDP, max flight time) per bracket
- FIXED_WING_FDP_LIMITS: Table A / single-pilot table, max FDP per bracket and sector column
- CUMULATIVE_LIMITS: rolling flight/duty caps per category
- EngineConfig: master configuration container
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from models.data_models import AircraftCategory


@dataclass
class FTLFramework:
    """Scalar regulatory definitions (Operations Manual Part A, sections 3-5)"""

    # WOCL - 01:00 to 06:59 local, inclusive
    wocl_start_minute: int = 1 * 60
    wocl_end_minute: int = 6 * 60 + 59

    # Rest between duties (4.1)
    minimum_rest_hours: float = 12.0

    # Home standby (3.4)
    max_standby_hours: float = 12.0
    standby_duty_credit: float = 0.5

    # Split duty (3.1 / 3.2)
    split_duty_buffer_hours: float = 0.5   # Pre/post-flight allowance removed from the break
    helicopter_min_split_rest_hours: float = 2.0
    helicopter_flat_extension_max_rest_hours: float = 3.0
    helicopter_flat_extension_hours: float = 1.0
    fixed_wing_min_split_rest_hours: float = 3.0

    # Disruptive duties, helicopter only (3.3)
    max_consecutive_disruptive_duties: int = 3
    max_disruptive_duties_per_7_days: int = 4
    disruptive_reset_hours: float = 34.0

    # Days off (4.1 - 4.3)
    max_consecutive_duty_days: int = 7
    helicopter_single_day_off_hours: float = 36.0
    fixed_wing_single_day_off_hours: float = 34.0
    required_local_nights: int = 2
    local_night_start_hour: int = 22
    local_night_end_hour: int = 8
    local_night_min_hours: float = 8.0
    min_days_off_14_days: int = 3            # Helicopter
    min_days_off_28_days: int = 7
    min_days_off_per_4_weeks_avg: float = 8.0  # Averaged over 12 weeks

    def single_day_off_hours(self, category: Optional[AircraftCategory]) -> float:
        if category == AircraftCategory.HELICOPTER:
            return self.helicopter_single_day_off_hours
        return self.fixed_wing_single_day_off_hours


# ============================================================================
# FDP TABLES
# ============================================================================

@dataclass(frozen=True)
class StartBracket:
    """Local time-of-start band, inclusive at both ends, may wrap midnight"""
    label: str
    start_minute: int
    end_minute: int

    def contains(self, minute: int) -> bool:
        if self.start_minute <= self.end_minute:
            return self.start_minute <= minute <= self.end_minute
        return minute >= self.start_minute or minute <= self.end_minute


def _bracket(start: str, end: str) -> StartBracket:
    sh, sm = (int(p) for p in start.split(':'))
    eh, em = (int(p) for p in end.split(':'))
    return StartBracket(f"{start}-{end}", sh * 60 + sm, eh * 60 + em)


HELICOPTER_BRACKETS: Tuple[StartBracket, ...] = (
    _bracket('06:00', '06:59'),
    _bracket('07:00', '07:59'),
    _bracket('08:00', '13:59'),
    _bracket('14:00', '21:59'),
    _bracket('22:00', '05:59'),
)

FIXED_WING_BRACKETS: Tuple[StartBracket, ...] = (
    _bracket('06:00', '06:59'),
    _bracket('07:00', '12:59'),
    _bracket('13:00', '17:59'),
    _bracket('18:00', '21:59'),
    _bracket('22:00', '05:59'),
)

TWO_PILOT = 'two_pilot'
SINGLE_PILOT = 'single_pilot'

# Table C: bracket -> (max FDP, max flight time), hours
HELICOPTER_FDP_LIMITS: Mapping[str, Mapping[str, Tuple[float, float]]] = MappingProxyType({
    TWO_PILOT: MappingProxyType({
        '06:00-06:59': (10.0, 7.0),
        '07:00-07:59': (11.0, 8.0),
        '08:00-13:59': (12.0, 8.0),
        '14:00-21:59': (11.0, 7.0),
        '22:00-05:59': (9.0, 6.0),
    }),
    SINGLE_PILOT: MappingProxyType({
        '06:00-06:59': (9.0, 6.0),
        '07:00-07:59': (10.0, 7.0),
        '08:00-13:59': (10.0, 7.0),
        '14:00-21:59': (9.0, 6.0),
        '22:00-05:59': (8.0, 5.0),
    }),
})

# Two crew: columns are 1, 2, ... 7, 8+ sectors
# Single pilot: columns are up-to-4, 5, 6, 7, 8+ sectors
FIXED_WING_FDP_LIMITS: Mapping[str, Mapping[str, Tuple[float, ...]]] = MappingProxyType({
    TWO_PILOT: MappingProxyType({
        '06:00-06:59': (13.0, 12.75, 12.5, 11.75, 10.5, 9.5, 9.0, 9.0),
        '07:00-12:59': (14.0, 13.25, 12.5, 11.5, 11.0, 10.5, 10.0, 9.5),
        '13:00-17:59': (13.0, 12.75, 11.5, 10.75, 10.0, 9.5, 9.0, 9.0),
        '18:00-21:59': (12.0, 11.75, 10.5, 9.75, 9.0, 9.0, 9.0, 9.0),
        '22:00-05:59': (11.0, 10.75, 9.5, 9.0, 9.0, 9.0, 9.0, 9.0),
    }),
    SINGLE_PILOT: MappingProxyType({
        '06:00-06:59': (10.0, 9.5, 8.5, 8.0, 8.0),
        '07:00-12:59': (11.0, 10.0, 9.5, 8.75, 8.0),
        '13:00-17:59': (10.0, 9.0, 8.75, 8.0, 8.0),
        '18:00-21:59': (9.0, 8.75, 8.5, 8.0, 8.0),
        '22:00-05:59': (8.0, 8.0, 8.0, 8.0, 8.0),
    }),
})


def fixed_wing_sector_column(sectors: Optional[int], two_pilot: bool) -> int:
    """Column index into FIXED_WING_FDP_LIMITS; unknown/zero sectors read as 1"""
    sectors = max(sectors or 1, 1)
    if two_pilot:
        return min(sectors, 8) - 1
    return min(max(sectors - 4, 0), 4)


# ============================================================================
# CUMULATIVE LIMITS (section 5)
# ============================================================================

@dataclass(frozen=True)
class CumulativeLimit:
    kind: str          # 'flight' or 'duty'
    window_days: int
    limit_hours: float
    metric: str        # RollingMetrics attribute

    def describe(self, value: float) -> str:
        return (
            f"{self.kind.capitalize()} time of {value:.1f}h in {self.window_days} days "
            f"exceeds the {self.limit_hours:g}h limit."
        )


CUMULATIVE_LIMITS: Mapping[AircraftCategory, Tuple[CumulativeLimit, ...]] = MappingProxyType({
    AircraftCategory.HELICOPTER: (
        CumulativeLimit('flight', 3, 18.0, 'flight_time_3d'),
        CumulativeLimit('flight', 7, 30.0, 'flight_time_7d'),
        CumulativeLimit('flight', 28, 90.0, 'flight_time_28d'),
        CumulativeLimit('flight', 84, 240.0, 'flight_time_84d'),
        CumulativeLimit('flight', 365, 800.0, 'flight_time_365d'),
        CumulativeLimit('duty', 7, 60.0, 'duty_time_7d'),
        CumulativeLimit('duty', 28, 190.0, 'duty_time_28d'),
    ),
    AircraftCategory.FIXED_WING: (
        CumulativeLimit('flight', 28, 100.0, 'flight_time_28d'),
        CumulativeLimit('flight', 365, 900.0, 'flight_time_365d'),
        CumulativeLimit('duty', 7, 55.0, 'duty_time_7d'),
        CumulativeLimit('duty', 14, 95.0, 'duty_time_14d'),
        CumulativeLimit('duty', 28, 190.0, 'duty_time_28d'),
    ),
})


@dataclass
class EngineConfig:
    """Master configuration container"""
    framework: FTLFramework = field(default_factory=FTLFramework)
    helicopter_brackets: Tuple[StartBracket, ...] = field(default_factory=lambda: HELICOPTER_BRACKETS)
    fixed_wing_brackets: Tuple[StartBracket, ...] = field(default_factory=lambda: FIXED_WING_BRACKETS)
    helicopter_fdp_limits: Mapping[str, Mapping[str, Tuple[float, float]]] = field(
        default_factory=lambda: HELICOPTER_FDP_LIMITS)
    fixed_wing_fdp_limits: Mapping[str, Mapping[str, Tuple[float, ...]]] = field(
        default_factory=lambda: FIXED_WING_FDP_LIMITS)
    cumulative_limits: Mapping[AircraftCategory, Tuple[CumulativeLimit, ...]] = field(
        default_factory=lambda: CUMULATIVE_LIMITS)

    @classmethod
    def default_config(cls):
        return cls(framework=FTLFramework())
