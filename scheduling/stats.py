from datetime import date, timedelta
from typing import Iterable, Mapping

from .slots import slots_per_day as grid_slots_per_day
from .timeutils import is_weekend, normalize_date_id, parse_date_id

STAT_STATUSES = ("pending", "paid", "completed", "cancelled")
LOAD_DAYS = 7
DEFAULT_HORIZON_DAYS = 21


def _amount(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def weekdays_ahead(today: date, days: int) -> int:
    return sum(1 for offset in range(days) if not is_weekend(today + timedelta(days=offset)))


def _percent(count: int, capacity: int) -> int:
    return min(100, round(count * 100 / capacity))


def compute_stats(bookings: Iterable[Mapping], today: date, slots_per_day: int = None,
                  horizon_days: int = DEFAULT_HORIZON_DAYS) -> dict:
    """
    Booking and payment counters for the dashboard.

    Weeks start on Sunday. Fee sums leave out cancelled bookings; counts
    include every booking so the per-status breakdown adds up to the total.

    `load` compares live bookings starting today against the weekday slot
    capacity: `week_load` is the percent of the next 7 days already taken,
    `capacity_buffer` the percent of the booking horizon still free.
    """
    if slots_per_day is None:
        slots_per_day = grid_slots_per_day()

    start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)
    end_of_week = start_of_week + timedelta(days=7)

    bookings_out = {"total": 0, "month": 0, "week": 0, "today": 0}
    bookings_out.update({status: 0 for status in STAT_STATUSES})
    payments_out = {"total": 0, "month": 0, "week": 0, "today": 0}
    upcoming_week = 0
    upcoming_horizon = 0

    for booking in bookings:
        status = str(booking.get("status") or "").strip().lower()
        amount = 0 if status == "cancelled" else _amount(booking.get("amount"))
        day = parse_date_id(normalize_date_id(booking.get("date")))

        bookings_out["total"] += 1
        payments_out["total"] += amount
        if status in STAT_STATUSES:
            bookings_out[status] += 1
        if day is None:
            continue

        windows = {
            "today": day == today,
            "week": start_of_week <= day < end_of_week,
            "month": (day.year, day.month) == (today.year, today.month),
        }
        for key, inside in windows.items():
            if inside:
                bookings_out[key] += 1
                payments_out[key] += amount

        if status != "cancelled":
            ahead = (day - today).days
            if 0 <= ahead < LOAD_DAYS:
                upcoming_week += 1
            if 0 <= ahead < horizon_days:
                upcoming_horizon += 1

    capacity_week = weekdays_ahead(today, LOAD_DAYS) * slots_per_day
    capacity_horizon = weekdays_ahead(today, horizon_days) * slots_per_day
    load_out = {
        "upcoming_week": upcoming_week,
        "capacity_week": capacity_week,
        "week_load": _percent(upcoming_week, capacity_week) if capacity_week else 0,
        "upcoming_horizon": upcoming_horizon,
        "capacity_horizon": capacity_horizon,
        "capacity_buffer": 100 - _percent(upcoming_horizon, capacity_horizon) if capacity_horizon else 100,
    }

    return {"bookings": bookings_out, "payments": payments_out, "load": load_out}
