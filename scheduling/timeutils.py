import re
from datetime import date, datetime, time

import pytz

_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")
_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")


def normalize_time(value) -> str:
    """
    Returns "HH:MM" for a time/datetime value or the first H:MM / HH:MM
    found in a string. Empty string means the value is unusable.
    """
    if isinstance(value, (datetime, time)):
        return value.strftime("%H:%M")
    match = _TIME_RE.search(str(value or "").strip())
    if not match:
        return ""
    return f"{match.group(1).zfill(2)}:{match.group(2)}"


def normalize_date_id(value, tz=None) -> str:
    """
    Returns the local-calendar ISO date ("YYYY-MM-DD") for a date/datetime,
    or the first YYYY-MM-DD substring of a string.

    Aware datetimes are moved into `tz` (the practice timezone) before the
    calendar day is taken, so a late-evening local time never drifts into the
    next UTC day.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz is not None:
            value = value.astimezone(tz)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    match = _DATE_RE.search(str(value or ""))
    return match.group(1) if match else ""


def parse_date_id(date_id: str):
    try:
        return datetime.strptime(date_id, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def parse_time_str(time_str: str):
    try:
        return datetime.strptime(time_str, "%H:%M").time()
    except (TypeError, ValueError):
        return None


def format_display_date(date_id) -> str:
    # e.g. "Mon 20 Oct" - display only
    day = date_id if isinstance(date_id, date) else parse_date_id(normalize_date_id(date_id))
    if day is None:
        return ""
    return f"{day:%a} {day.day} {day:%b}"


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def practice_tz(tz_name: str):
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        return pytz.UTC


def local_now(tz_name: str) -> datetime:
    """Current wall-clock time in the practice timezone, as a naive datetime."""
    return datetime.now(practice_tz(tz_name)).replace(tzinfo=None)


def localize(day_id: str, time_str: str, tz_name: str) -> datetime:
    """Aware datetime for a practice-local date id and "HH:MM"."""
    naive = datetime.combine(parse_date_id(day_id), parse_time_str(time_str))
    return practice_tz(tz_name).localize(naive)
