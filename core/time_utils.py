"""
Time & Duration Utilities
=========================

Duty logs record local wall-clock times as "HH:MM" strings with no date
attached; a period whose end is numerically before its start wrapped past
midnight. Every helper here degrades to a neutral value (0 / None) on
missing or malformed input instead of raising.
"""

from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple
import logging
import math

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


class FTLInputError(ValueError):
    """Structurally invalid call into the engine (not a domain violation)"""


def parse_time_to_minutes(text: Optional[str]) -> Optional[int]:
    """
    "HH:MM" -> minutes after midnight.

    Returns None for empty or malformed input so callers can tell
    "no time recorded" apart from midnight.
    """
    if not text:
        return None
    text = str(text).strip()
    if ':' not in text:
        logger.warning(f"Ignoring clock time without ':' separator: '{text}'")
        return None
    hours_text, _, minutes_text = text.partition(':')
    try:
        hours = int(hours_text.strip())
        minutes = int(minutes_text.strip())
    except ValueError:
        logger.warning(f"Ignoring unparseable clock time '{text}'")
        return None
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        logger.warning(f"Ignoring out-of-range clock time '{text}'")
        return None
    return hours * 60 + minutes


def time_to_decimal(text: Optional[str]) -> float:
    """
    "HH:MM" (or a plain decimal such as "1.5") -> decimal hours.

    Used for durations as well as clock times, so hours are not capped at 24.
    Invalid or empty input yields 0.
    """
    if text is None:
        return 0.0
    text = str(text).strip()
    if not text:
        return 0.0
    if ':' in text:
        hours_text, _, minutes_text = text.partition(':')
        try:
            hours = int(hours_text.strip() or 0)
            minutes = int(minutes_text.strip() or 0)
        except ValueError:
            return 0.0
        return hours + minutes / 60
    try:
        value = float(text)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def decimal_to_time(hours: Optional[float], compact: bool = False, allow_zero: bool = False) -> str:
    """
    Decimal hours -> "HH:MM", rounded to the minute.

    Zero/None render as "" unless allow_zero (grid cells stay blank).
    compact drops the leading zero on the hours ("7:30"), used by the
    print view.
    """
    if hours is None or (not allow_zero and hours == 0):
        return ''
    total_minutes = int(round(hours * 60))
    sign = '-' if total_minutes < 0 else ''
    whole_hours, minutes = divmod(abs(total_minutes), 60)
    hours_text = str(whole_hours) if compact else f"{whole_hours:02d}"
    return f"{sign}{hours_text}:{minutes:02d}"


def calculate_duration_hours(start: Optional[str], end: Optional[str]) -> float:
    """
    Elapsed hours from start to end, wrapping past midnight when end < start.

    Missing or malformed bounds give 0. Never negative.
    """
    start_minutes = parse_time_to_minutes(start)
    end_minutes = parse_time_to_minutes(end)
    if start_minutes is None or end_minutes is None:
        return 0.0
    if end_minutes < start_minutes:
        end_minutes += MINUTES_PER_DAY
    return (end_minutes - start_minutes) / 60


def clock_on_date(day: date, text: Optional[str]) -> Optional[datetime]:
    """Combine a calendar date with an "HH:MM" clock time"""
    minutes = parse_time_to_minutes(text)
    if minutes is None:
        return None
    return datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)


def period_end_datetime(day: date, start: Optional[str], end: Optional[str]) -> Optional[datetime]:
    """
    Absolute end of a period logged on `day`.

    The end rolls into the next day when it is earlier than the start
    (an overnight duty logged against its report date).
    """
    end_dt = clock_on_date(day, end)
    if end_dt is None:
        return None
    start_minutes = parse_time_to_minutes(start)
    end_minutes = parse_time_to_minutes(end)
    if start_minutes is not None and end_minutes < start_minutes:
        end_dt += timedelta(days=1)
    return end_dt


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def parse_month(month: str) -> Tuple[int, int]:
    """'YYYY-MM' -> (year, month)"""
    try:
        year_text, month_text = str(month).strip().split('-')
        year, month_number = int(year_text), int(month_text)
    except ValueError:
        raise FTLInputError(f"Month must be formatted YYYY-MM, got '{month}'")
    if not 1 <= month_number <= 12:
        raise FTLInputError(f"Month must be formatted YYYY-MM, got '{month}'")
    return year, month_number


def month_dates(month: str) -> List[date]:
    """Every calendar date of the month, ascending"""
    year, month_number = parse_month(month)
    days_in_month = monthrange(year, month_number)[1]
    return [date(year, month_number, day) for day in range(1, days_in_month + 1)]


def window_dates(target: date, days: int) -> List[date]:
    """The N dates of the trailing window [target - N + 1, target], newest first"""
    return [target - timedelta(days=offset) for offset in range(days)]
