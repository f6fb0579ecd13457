"""
Time helpers: weekday classification, game durations, local hours and intervals.
"""

from datetime import datetime, timedelta

import pytz

from .config import GameDurations, GameRequest
from .models import Interval, Weekday


WEEKEND = (Weekday.SATURDAY, Weekday.SUNDAY)


def get_weekday(dt) -> Weekday:
    """
    Get weekday from datetime object.

    Args:
        dt: datetime object (aware datetimes are read in UTC)

    Returns:
        Weekday: Weekday enum value
    """
    weekday_map = {
        0: Weekday.MONDAY,
        1: Weekday.TUESDAY,
        2: Weekday.WEDNESDAY,
        3: Weekday.THURSDAY,
        4: Weekday.FRIDAY,
        5: Weekday.SATURDAY,
        6: Weekday.SUNDAY
    }

    if isinstance(dt, datetime) and dt.tzinfo is not None:
        dt = dt.astimezone(pytz.utc)

    # datetime.weekday() returns 0=Monday, 6=Sunday
    return weekday_map[dt.weekday()]


def is_weekend(dt) -> bool:
    return get_weekday(dt) in WEEKEND


def resolve_game_duration(game: GameRequest, durations: GameDurations) -> int:
    """
    Resolve how many minutes a game occupies its field.

    A per-game override wins. Otherwise the weekend or weekday length is used
    when configured for the day of ``earliest_start``, falling back to the
    season default.
    """
    if game.duration_minutes:
        return game.duration_minutes

    if is_weekend(game.earliest_start):
        if durations.weekend_minutes:
            return durations.weekend_minutes
    elif durations.weekday_minutes:
        return durations.weekday_minutes

    return durations.default_minutes


def local_hour(dt: datetime, time_zone: str) -> int:
    """Hour of day of ``dt`` in the given IANA time zone."""
    return dt.astimezone(pytz.timezone(time_zone)).hour


def day_key(dt: datetime) -> str:
    """Calendar day (UTC) used for per-day caps."""
    return dt.astimezone(pytz.utc).strftime('%Y-%m-%d')


def add_minutes(dt: datetime, minutes: int) -> datetime:
    return dt + timedelta(minutes=minutes)


def overlaps(a: Interval, b: Interval) -> bool:
    """Half-open overlap test; touching intervals do not overlap."""
    return a.start < b.end and b.start < a.end


def contains(container: Interval, target: Interval) -> bool:
    return container.start <= target.start and container.end >= target.end

