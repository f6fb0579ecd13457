"""
Building field slots for a problem spec: weekly availability rules and Excel import.
"""

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set

import pandas as pd
import pytz

from .config import FieldAvailabilityRule, FieldExclusionDate, FieldSlot, SchedulerField, SeasonExclusion
from .models import format_timestamp
from .validation import SchedulerValidationError

DEFAULT_START_INCREMENT_MINUTES = 30

DEFAULT_SLOT_COLUMNS = {
    'id': 'Slot ID',
    'field': 'Field',
    'start': 'Start',
    'end': 'End',
}


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(':')
    return time(int(hours), int(minutes))


def _cell_to_str(value) -> str:
    """Text of a cell; whole-number floats (from columns with blanks) lose the '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _localize(day: date, local_time: time, tz) -> datetime:
    return tz.localize(datetime.combine(day, local_time)).astimezone(pytz.utc)


def _is_day_enabled(mask: int, day: date) -> bool:
    """Bit 0 is Monday, bit 6 is Sunday."""
    return (mask & (1 << day.weekday())) != 0


def generate_field_slots_from_rules(
    rules: Sequence[FieldAvailabilityRule],
    fields: Sequence[SchedulerField],
    time_zone: str,
    start_date: date,
    end_date: date,
    exclusions: Optional[Iterable[FieldExclusionDate]] = None,
) -> List[FieldSlot]:
    """
    Expand weekly field availability rules into concrete field slots.

    For every enabled rule and every matching local date inside both the rule's
    and the requested date range, one slot is produced per start increment of
    the field; each slot runs to the end of the rule's daily window.

    Args:
        rules: Availability rules
        fields: Fields the rules refer to (for start increments)
        time_zone: IANA time zone the rule times are expressed in
        start_date: First date to generate
        end_date: Last date to generate (inclusive)
        exclusions: Dates on which a field produces no slots

    Returns:
        List[FieldSlot]: Generated slots in rule, date and start order
    """
    try:
        tz = pytz.timezone(time_zone)
    except pytz.exceptions.UnknownTimeZoneError:
        raise SchedulerValidationError(f"Unknown timezone: {time_zone}")

    increments = {
        f.id: f.properties.start_increment_minutes or DEFAULT_START_INCREMENT_MINUTES
        for f in fields
    }

    excluded: Dict[str, Set[date]] = defaultdict(set)
    for exclusion in exclusions or []:
        if exclusion.enabled:
            excluded[exclusion.field_id].add(exclusion.exclusion_date)

    slots = []
    for rule in rules:
        if not rule.enabled:
            continue

        rule_start = max(rule.start_date or start_date, start_date)
        rule_end = min(rule.end_date or end_date, end_date)
        if rule_start > rule_end:
            continue

        window_start = _parse_hhmm(rule.start_time_local)
        window_end = _parse_hhmm(rule.end_time_local)
        if window_start >= window_end:
            raise SchedulerValidationError(
                f"Availability rule {rule.id} startTimeLocal must be before endTimeLocal"
            )

        increment = timedelta(minutes=increments.get(rule.field_id, DEFAULT_START_INCREMENT_MINUTES))
        window_minutes = (window_end.hour * 60 + window_end.minute) - (window_start.hour * 60 + window_start.minute)
        max_starts = -(-window_minutes // int(increment.total_seconds() // 60)) + 1

        day = rule_start
        while day <= rule_end:
            if day in excluded[rule.field_id] or not _is_day_enabled(rule.days_of_week_mask, day):
                day += timedelta(days=1)
                continue

            slot_end = _localize(day, window_end, tz)
            cursor = datetime.combine(day, window_start)
            stop = datetime.combine(day, window_end)
            starts = 0
            while cursor < stop:
                slot_start = tz.localize(cursor).astimezone(pytz.utc)
                slots.append(FieldSlot(
                    id=f"rule_{rule.id}_{day.isoformat()}_{format_timestamp(slot_start)}",
                    field_id=rule.field_id,
                    start_time=slot_start,
                    end_time=slot_end,
                ))
                starts += 1
                if starts > max_starts:
                    raise SchedulerValidationError(
                        f"Start increment for field {rule.field_id} produced too many slots in one day"
                    )
                cursor += increment

            day += timedelta(days=1)

    return slots


def filter_slots_by_season_exclusions(slots: Sequence[FieldSlot],
                                      exclusions: Iterable[SeasonExclusion]) -> List[FieldSlot]:
    """Drop slots that start inside an enabled season exclusion window."""
    windows = [e for e in exclusions if e.enabled]
    if not windows:
        return list(slots)

    return [
        slot for slot in slots
        if not any(w.start_time <= slot.start_time < w.end_time for w in windows)
    ]


def load_field_slots(excel_path: str, time_zone: str,
                     columns: Optional[Dict[str, str]] = None) -> List[FieldSlot]:
    """
    Load field slots from an Excel file.

    Args:
        excel_path: Path to Excel file with slot data
        time_zone: Time zone for naive timestamps in the file
        columns: Column mapping for 'id', 'field', 'start' and 'end'

    Returns:
        List[FieldSlot]: Slots sorted by start time, then field
    """
    columns = {**DEFAULT_SLOT_COLUMNS, **(columns or {})}
    df = pd.read_excel(excel_path)

    required_columns = [columns['field'], columns['start'], columns['end']]
    missing_columns = [col for col in required_columns if col not in df.columns]
    if missing_columns:
        raise ValueError(f"Missing required columns: {missing_columns}. Found columns: {list(df.columns)}")

    tz = pytz.timezone(time_zone)

    slots = []
    for _, row in df.iterrows():
        start_time = pd.to_datetime(row[columns['start']]).to_pydatetime()
        end_time = pd.to_datetime(row[columns['end']]).to_pydatetime()

        if start_time.tzinfo is None:
            start_time = tz.localize(start_time)
        if end_time.tzinfo is None:
            end_time = tz.localize(end_time)

        field_id = _cell_to_str(row[columns['field']])
        if columns['id'] in df.columns and not pd.isna(row[columns['id']]):
            slot_id = _cell_to_str(row[columns['id']])
        else:
            slot_id = f"{field_id}_{start_time.astimezone(pytz.utc).strftime('%Y%m%d_%H%M')}"

        slots.append(FieldSlot(id=slot_id, field_id=field_id, start_time=start_time, end_time=end_time))

    slots.sort(key=lambda x: (x.start_time, x.field_id))
    return slots
