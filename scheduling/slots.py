"""
Slot Generation

Builds the discrete 45-minute slot grid shown to patients:
- weekdays only (Saturday/Sunday never enter the slot loop)
- 08:00 inclusive to 17:00 exclusive
- slots starting before the lead-time cutoff are dropped
- booked and blocked slots are dropped
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Set

from .timeutils import format_display_date, is_weekend, parse_time_str

DEFAULT_DAY_START = "08:00"
DEFAULT_DAY_END = "17:00"
DEFAULT_SLOT_MINUTES = 45


@dataclass
class SlotDay:
    id: str
    day: str
    label: str
    times: List[str] = field(default_factory=list)

    @property
    def display(self) -> str:
        return format_display_date(self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "day": self.day,
            "label": self.label,
            "display": self.display,
            "times": list(self.times),
        }


def generate_day_slots(
    day: date,
    booked_times: Optional[Iterable[str]],
    is_day_blocked: bool,
    is_time_blocked: Callable[[str], bool],
    cutoff: Optional[datetime],
    day_start: str = DEFAULT_DAY_START,
    day_end: str = DEFAULT_DAY_END,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[str]:
    """
    Returns the bookable "HH:MM" start times for one day, in order.

    Args:
        day: calendar day
        booked_times: times already taken on that day
        is_day_blocked: the whole day is unavailable
        is_time_blocked: predicate for a single "HH:MM" start
        cutoff: naive local datetime; earlier slot starts are dropped
    """
    if is_weekend(day) or is_day_blocked:
        return []

    booked: Set[str] = set(booked_times or ())
    current = datetime.combine(day, parse_time_str(day_start))
    end = datetime.combine(day, parse_time_str(day_end))
    step = timedelta(minutes=slot_minutes)

    times = []
    while current < end:
        time_str = current.strftime("%H:%M")
        if (cutoff is None or current >= cutoff) and time_str not in booked and not is_time_blocked(time_str):
            times.append(time_str)
        current += step
    return times


def generate_slot_days(
    start_day: date,
    horizon_days: int,
    booked_map: Dict[str, Set[str]],
    is_day_blocked: Callable[[str], bool],
    is_time_blocked: Callable[[str, str], bool],
    cutoff: Optional[datetime],
    day_start: str = DEFAULT_DAY_START,
    day_end: str = DEFAULT_DAY_END,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[SlotDay]:
    """Slot-Days for every weekday in [start_day, start_day + horizon_days)."""
    slot_days = []
    for offset in range(horizon_days):
        day = start_day + timedelta(days=offset)
        if is_weekend(day):
            continue
        date_id = day.isoformat()
        times = generate_day_slots(
            day,
            booked_map.get(date_id, ()),
            is_day_blocked(date_id),
            lambda time_str, _id=date_id: is_time_blocked(_id, time_str),
            cutoff,
            day_start=day_start,
            day_end=day_end,
            slot_minutes=slot_minutes,
        )
        slot_days.append(SlotDay(
            id=date_id,
            day=f"{day:%a}",
            label=f"{day.day} {day:%b}",
            times=times,
        ))
    return slot_days


def slots_per_day(
    day_start: str = DEFAULT_DAY_START,
    day_end: str = DEFAULT_DAY_END,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> int:
    """Number of slot starts in one unblocked working day."""
    start = datetime.combine(date.min, parse_time_str(day_start))
    end = datetime.combine(date.min, parse_time_str(day_end))
    if end <= start or slot_minutes <= 0:
        return 0
    span = int((end - start).total_seconds() // 60)
    return -(-span // slot_minutes)
