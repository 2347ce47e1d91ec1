"""
Time Filter Normalization
=========================

Converts the local date/time constraint extracted from a question into UTC
bounds, given the client's timezone offset.

Offset convention (same as JS Date.getTimezoneOffset):
    local time + offset minutes = UTC
    e.g. UTC-5 -> offset = 300

Rules:
- before/after minute-of-day is shifted by the offset modulo 1440. If that
  crosses midnight the single date (if any) moves by the same day carry, and
  that shifted date becomes the UTC day window.
- A lone date with no time clause becomes [date 00:00 local, date+1 00:00 local).
- A two-date range becomes [start 00:00 local, end+1 00:00 local).
- No offset: the filter passes through unconverted.
- Already-normalized filters (is_utc=True) are returned unchanged.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from extraction.filters import TimeFilter

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440

MONTH_LABELS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def convert_minutes_to_utc(local_minutes: int, offset_minutes: int) -> Tuple[int, int]:
    """
    Shift a minute-of-day by the offset.

    Returns (utc_minutes in 0..1439, day_shift). Floor division keeps the
    carry correct for negative totals (east of UTC before early morning).
    """
    total = local_minutes + offset_minutes
    return total % MINUTES_PER_DAY, total // MINUTES_PER_DAY


def _local_midnight_utc(day: date, offset_minutes: int) -> datetime:
    midnight = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return midnight + timedelta(minutes=offset_minutes)


def normalize_time_filter(local: TimeFilter, offset_minutes: Optional[int]) -> TimeFilter:
    """Local TimeFilter -> UTC TimeFilter. Pure; idempotent on its own output."""
    if local.is_utc or offset_minutes is None:
        return local
    if local.is_empty:
        return replace(local, is_utc=True)

    offset = int(offset_minutes)
    updates = {"is_utc": True}
    shifted_date = local.date

    if local.range_start and local.range_end:
        updates["utc_start"] = _local_midnight_utc(local.range_start, offset)
        updates["utc_end"] = _local_midnight_utc(local.range_end + timedelta(days=1), offset)
        updates["range_start"] = None
        updates["range_end"] = None

    if local.before_minutes is not None:
        minutes, day_shift = convert_minutes_to_utc(local.before_minutes, offset)
        updates["before_minutes"] = minutes
        if shifted_date is not None:
            shifted_date = shifted_date + timedelta(days=day_shift)

    if local.after_minutes is not None:
        minutes, day_shift = convert_minutes_to_utc(local.after_minutes, offset)
        updates["after_minutes"] = minutes
        if shifted_date is not None:
            shifted_date = shifted_date + timedelta(days=day_shift)

    if local.date is not None:
        if local.has_time_clause:
            # Minute bounds are already UTC, so the window is the UTC calendar day
            updates["date"] = shifted_date
            start = datetime.combine(shifted_date, time.min, tzinfo=timezone.utc)
            updates["utc_start"] = start
            updates["utc_end"] = start + timedelta(days=1)
        else:
            updates["date"] = None
            updates["utc_start"] = _local_midnight_utc(local.date, offset)
            updates["utc_end"] = _local_midnight_utc(local.date + timedelta(days=1), offset)

    normalized = replace(local, **updates)
    logger.debug(f"[Time] Normalized {local.to_dict()} with offset {offset} -> {normalized.to_dict()}")
    return normalized


def has_time_filter(time_filter: Optional[TimeFilter]) -> bool:
    return time_filter is not None and not time_filter.is_empty


# =============================================================================
# LABELS
# =============================================================================

def format_minutes(minutes: int) -> str:
    """1140 -> '7pm', 1170 -> '7:30pm'."""
    hour24 = (minutes // 60) % 24
    minute = minutes % 60
    meridiem = "pm" if hour24 >= 12 else "am"
    hour12 = 12 if hour24 % 12 == 0 else hour24 % 12
    if minute == 0:
        return f"{hour12}{meridiem}"
    return f"{hour12}:{minute:02d}{meridiem}"


def format_date(day: date) -> str:
    return f"{MONTH_LABELS[day.month - 1]} {day.day}, {day.year}"


def describe_time_filter(local: TimeFilter) -> Optional[str]:
    """
    Human phrase for a local filter, e.g. "played after 7pm on March 3, 2026".

    Returns None when nothing is set.
    """
    parts = []
    if local.before_minutes is not None:
        parts.append(f"before {format_minutes(local.before_minutes)}")
    if local.after_minutes is not None:
        parts.append(f"after {format_minutes(local.after_minutes)}")
    time_phrase = " and ".join(parts)

    if local.date is not None:
        if time_phrase:
            return f"played {time_phrase} on {format_date(local.date)}"
        return f"played on {format_date(local.date)}"
    if local.range_start is not None and local.range_end is not None:
        between = f"between {format_date(local.range_start)} and {format_date(local.range_end)}"
        if time_phrase:
            return f"played {time_phrase} {between}"
        return f"played {between}"
    if time_phrase:
        return f"played {time_phrase}"
    return None
