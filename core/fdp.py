"""
Flight Duty Period Limits
=========================

Maximum FDP / flight time from the start-time bracket, crew complement,
sector count and aircraft category, plus the split-duty extension earned
from an on-ground break.

References: Operations Manual Part A 2.1 (Table C), 2.2 (Table A and
single-pilot table), 3.1 / 3.2 (split duty)
"""

from typing import Optional, Tuple
import logging

from models.data_models import AircraftCategory, DutyRecord, FdpDetails
from core.parameters import (
    EngineConfig, StartBracket, TWO_PILOT, SINGLE_PILOT, fixed_wing_sector_column,
)
from core.standby import fdp_reference_start
from core.time_utils import calculate_duration_hours, parse_time_to_minutes

logger = logging.getLogger(__name__)


class FDPLimitResolver:
    """Look up (max FDP, max flight time) for a duty"""

    def __init__(self, config: EngineConfig = None):
        self.config = config or EngineConfig.default_config()

    @staticmethod
    def find_bracket(brackets, start_minute: int) -> Optional[StartBracket]:
        for bracket in brackets:
            if bracket.contains(start_minute):
                return bracket
        return None

    def resolve(
        self,
        reference_start: Optional[str],
        category: Optional[AircraftCategory],
        two_pilot: bool = False,
        sectors: Optional[int] = None,
    ) -> Tuple[float, float]:
        """
        Returns (max_fdp, max_flight_time) in hours.

        (0, 0) when the start time or category is missing: the caller treats
        zero as "not computable". Fixed wing publishes no daily flight-time
        cap, so its max_flight_time is always 0.
        """
        start_minute = parse_time_to_minutes(reference_start)
        if start_minute is None or category is None:
            return 0.0, 0.0
        crew = TWO_PILOT if two_pilot else SINGLE_PILOT

        if category == AircraftCategory.HELICOPTER:
            bracket = self.find_bracket(self.config.helicopter_brackets, start_minute)
            if bracket is None:
                return 0.0, 0.0
            return self.config.helicopter_fdp_limits[crew][bracket.label]

        bracket = self.find_bracket(self.config.fixed_wing_brackets, start_minute)
        if bracket is None:
            return 0.0, 0.0
        row = self.config.fixed_wing_fdp_limits[crew][bracket.label]
        return row[fixed_wing_sector_column(sectors, two_pilot)], 0.0


class SplitDutyExtensionCalculator:
    """FDP extension earned by a break on the ground"""

    def __init__(self, config: EngineConfig = None):
        self.config = config or EngineConfig.default_config()

    def effective_rest(self, break_duration: float) -> float:
        """Break less the fixed pre/post-flight allowance"""
        return max(0.0, break_duration - self.config.framework.split_duty_buffer_hours)

    def extension_for_rest(self, effective_rest: float, category: Optional[AircraftCategory]) -> float:
        fw = self.config.framework
        if category == AircraftCategory.HELICOPTER:
            if effective_rest < fw.helicopter_min_split_rest_hours:
                return 0.0
            if effective_rest <= fw.helicopter_flat_extension_max_rest_hours:
                return fw.helicopter_flat_extension_hours
            return effective_rest / 2
        if category == AircraftCategory.FIXED_WING:
            if effective_rest < fw.fixed_wing_min_split_rest_hours:
                return 0.0
            return effective_rest / 2
        return 0.0

    def calculate(self, record: DutyRecord, category: Optional[AircraftCategory]) -> Tuple[float, float]:
        """Returns (break_duration, extension)"""
        break_duration = calculate_duration_hours(record.break_start, record.break_end)
        if not record.is_split_duty or break_duration <= 0:
            return break_duration, 0.0
        # An extension needs at least one sector flown before the break;
        # an unrecorded sector count is not treated as zero.
        if record.sectors == 0:
            return break_duration, 0.0
        return break_duration, self.extension_for_rest(self.effective_rest(break_duration), category)


def calculate_fdp_details(
    record: DutyRecord,
    category: Optional[AircraftCategory],
    config: EngineConfig = None,
    reference_start: Optional[str] = None,
) -> FdpDetails:
    """Base limits + split-duty extension for one day"""
    config = config or EngineConfig.default_config()
    reference_start = reference_start or fdp_reference_start(record)

    if parse_time_to_minutes(reference_start) is None or category is None:
        return FdpDetails()

    base_fdp, max_flight_time = FDPLimitResolver(config).resolve(
        reference_start, category, record.is_two_pilot_operation, record.sectors
    )
    break_duration, extension = SplitDutyExtensionCalculator(config).calculate(record, category)

    return FdpDetails(
        max_fdp=base_fdp + extension,
        max_flight_time=max_flight_time,
        fdp_extension=extension,
        break_duration=break_duration,
        base_fdp=base_fdp,
        reference_start=reference_start,
    )
