"""
Availability Service

Resolves the bookable slots for the practice, considering:
- the fixed weekday grid (slots.py)
- existing non-cancelled bookings
- practitioner blocks (day, slot, range, week, weekend)
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError

from models.block import Block
from models.booking import Booking

from .errors import StoreError
from .slots import (
    DEFAULT_DAY_END,
    DEFAULT_DAY_START,
    DEFAULT_SLOT_MINUTES,
    SlotDay,
    generate_slot_days,
)
from .timeutils import local_now, normalize_date_id, normalize_time

logger = logging.getLogger(__name__)

WINDOW_SEPARATOR = "–"  # en-dash
WHOLE_DAY_SCOPES = {"day", "range", "week", "weekend"}
DEFAULT_HORIZON_DAYS = 21
DEFAULT_LEAD_MINUTES = 30


def build_booked_map(bookings: Iterable[Mapping]) -> Dict[str, Set[str]]:
    """date id -> set of booked "HH:MM" times, ignoring cancelled or unparseable rows."""
    booked: Dict[str, Set[str]] = {}
    for booking in bookings:
        status = str(booking.get("status") or "").strip().lower()
        if status == "cancelled":
            continue
        date_id = normalize_date_id(booking.get("date"))
        time_str = normalize_time(booking.get("time"))
        if not date_id or not time_str:
            continue
        booked.setdefault(date_id, set()).add(time_str)
    return booked


def block_applies(block_date: Optional[str], date_id: str) -> bool:
    """
    Does a block date expression cover `date_id`?

    "A to B" matches inclusively, "A & B & C" matches membership,
    anything else matches by normalized equality.
    """
    if not block_date:
        return False
    expr = str(block_date)
    if "to" in expr:
        start_str, end_str = expr.split("to", 1)
        start_id = normalize_date_id(start_str.strip())
        end_id = normalize_date_id(end_str.strip())
        if not start_id or not end_id:
            return False
        return start_id <= date_id <= end_id
    if "&" in expr:
        return date_id in {normalize_date_id(part.strip()) for part in expr.split("&")}
    return normalize_date_id(expr) == date_id


def parse_block_window(window: Optional[str]) -> Optional[Tuple[str, str]]:
    """("HH:MM", "HH:MM") for a well-formed en-dash window, else None."""
    parts = [p.strip() for p in str(window or "").split(WINDOW_SEPARATOR) if p.strip()]
    if len(parts) != 2:
        return None
    start, end = normalize_time(parts[0]), normalize_time(parts[1])
    if not start or not end:
        return None
    return start, end


def _scope(block: Mapping) -> str:
    return str(block.get("scope") or "").strip().lower()


def is_day_blocked(blocks: Iterable[Mapping], date_id: str) -> bool:
    return any(
        _scope(b) in WHOLE_DAY_SCOPES and block_applies(b.get("block_date"), date_id)
        for b in blocks
    )


def is_time_blocked(blocks: Iterable[Mapping], date_id: str, time_str: str) -> bool:
    # Window is half-open: a slot starting exactly at the window end stays open
    for block in blocks:
        if _scope(block) != "slot":
            continue
        if not block_applies(block.get("block_date"), date_id):
            continue
        window = parse_block_window(block.get("block_window"))
        if window and window[0] <= time_str < window[1]:
            return True
    return False


def resolve_availability(
    bookings: Iterable[Mapping],
    blocks: Iterable[Mapping],
    now: datetime,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    lead_minutes: int = DEFAULT_LEAD_MINUTES,
    day_start: str = DEFAULT_DAY_START,
    day_end: str = DEFAULT_DAY_END,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[SlotDay]:
    """
    Computes the Slot-Days for the horizon starting at `now`'s calendar day.

    Args:
        bookings: canonical booking records (date, time, status)
        blocks: canonical block records (block_date, scope, block_window)
        now: naive practice-local datetime

    Returns:
        list[SlotDay] in chronological order, weekends omitted
    """
    blocks = list(blocks)
    booked_map = build_booked_map(bookings)
    cutoff = now + timedelta(minutes=lead_minutes)

    return generate_slot_days(
        now.date(),
        horizon_days,
        booked_map,
        lambda date_id: is_day_blocked(blocks, date_id),
        lambda date_id, time_str: is_time_blocked(blocks, date_id, time_str),
        cutoff,
        day_start=day_start,
        day_end=day_end,
        slot_minutes=slot_minutes,
    )


def fetch_availability_records() -> Tuple[List[dict], List[dict]]:
    """
    Reads every booking (public projection) and every block from the store.

    Raises StoreError when the store cannot be read, so callers can tell
    "no slots" apart from "availability unknown".
    """
    try:
        bookings = [b.to_public_dict() for b in Booking.query.all()]
        blocks = [b.to_dict() for b in Block.query.order_by(Block.block_date.asc()).all()]
    except SQLAlchemyError as exc:
        logger.error("Availability store read failed: %s", exc)
        raise StoreError("Could not load availability") from exc
    return bookings, blocks


def get_slot_days(config: Mapping, now: Optional[datetime] = None) -> List[SlotDay]:
    """Slot-Days for the canonical horizon, using app config for the schedule."""
    bookings, blocks = fetch_availability_records()
    if now is None:
        now = local_now(config.get("PRACTICE_TIMEZONE", "UTC"))
    return resolve_availability(
        bookings,
        blocks,
        now,
        horizon_days=config.get("AVAILABILITY_HORIZON_DAYS", DEFAULT_HORIZON_DAYS),
        lead_minutes=config.get("BOOKING_LEAD_MINUTES", DEFAULT_LEAD_MINUTES),
        day_start=config.get("WORKDAY_START", DEFAULT_DAY_START),
        day_end=config.get("WORKDAY_END", DEFAULT_DAY_END),
        slot_minutes=config.get("SLOT_MINUTES", DEFAULT_SLOT_MINUTES),
    )
