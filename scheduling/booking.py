"""
Booking Workflow

Creates a booking in four steps:
1. validate the request (no side effects on failure)
2. provision a Google Calendar event with a Meet link (best effort)
3. persist the booking (the only step that decides success)
4. email the confirmation (best effort)
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Mapping, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.booking import BOOKING_STATUSES, Booking
from utils.calendar import CalendarError, get_calendar_client
from utils.emailer import send_email
from utils.notifications import confirmation_email
from utils.retry import call_with_retries

from .errors import SlotConflictError, StoreError, ValidationError
from .outcomes import SideEffect, side_effects_dict
from .timeutils import localize, normalize_date_id, normalize_time, parse_date_id, parse_time_str

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "phone", "reason", "date", "time")

# Column sizes on the bookings table
FIELD_LIMITS = {"name": 120, "email": 255, "phone": 40, "type_label": 120}


@dataclass
class BookingRequest:
    name: str
    email: str
    phone: str
    reason: str
    date: str
    time: str
    type_label: str
    amount: int


@dataclass
class BookingResult:
    booking: Booking
    side_effects: List[SideEffect] = field(default_factory=list)

    @property
    def video_link(self) -> Optional[str]:
        return self.booking.video_link

    @property
    def email_sent(self) -> bool:
        return any(e.name == "email" and e.ok for e in self.side_effects)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "booking": self.booking.to_dict(),
            "video_link": self.video_link,
            "email_sent": self.email_sent,
            "side_effects": side_effects_dict(self.side_effects),
        }


def _text(data: Mapping, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ("" if value is None else str(value).strip())


def parse_date_value(value) -> str:
    date_id = normalize_date_id(value)
    if not date_id or parse_date_id(date_id) is None:
        raise ValidationError("Invalid date. Use YYYY-MM-DD")
    return date_id


def parse_time_value(value) -> str:
    time_str = normalize_time(value)
    if not time_str or parse_time_str(time_str) is None:
        raise ValidationError("Invalid time. Use HH:MM")
    return time_str


def validate_booking_request(data: Mapping, config: Mapping) -> BookingRequest:
    missing = [name for name in REQUIRED_FIELDS if not _text(data, name)]
    if missing:
        raise ValidationError("Missing required fields: " + ", ".join(missing))

    too_long = [name for name, limit in FIELD_LIMITS.items() if len(_text(data, name)) > limit]
    if too_long:
        raise ValidationError("Too long: " + ", ".join(too_long))

    email = _text(data, "email")
    if "@" not in email:
        raise ValidationError("Invalid email")

    date_id = parse_date_value(_text(data, "date"))
    time_str = parse_time_value(_text(data, "time"))

    catalog = config.get("APPOINTMENT_TYPES", {})
    type_key = _text(data, "appointment_type") or config.get("DEFAULT_APPOINTMENT_TYPE")
    if _text(data, "appointment_type") and type_key not in catalog:
        raise ValidationError("Unknown appointment type")
    entry = catalog.get(type_key, {})

    type_label = _text(data, "type_label") or entry.get("label") or "Consult"

    raw_amount = data.get("amount")
    if raw_amount in (None, ""):
        raw_amount = entry.get("amount", 0)
    try:
        amount = int(str(raw_amount).strip())
    except (TypeError, ValueError):
        raise ValidationError("Invalid amount")
    if amount < 0:
        raise ValidationError("Invalid amount")

    return BookingRequest(
        name=_text(data, "name"),
        email=email,
        phone=_text(data, "phone"),
        reason=_text(data, "reason"),
        date=date_id,
        time=time_str,
        type_label=type_label,
        amount=amount,
    )


def ensure_slot_free(date_id: str, time_str: str, exclude_id: Optional[int] = None) -> None:
    try:
        q = Booking.query.filter(
            Booking.date == date_id,
            Booking.time == time_str,
            Booking.status != "cancelled",
        )
        if exclude_id is not None:
            q = q.filter(Booking.id != exclude_id)
        taken = q.first() is not None
    except SQLAlchemyError as exc:
        raise StoreError("Could not check slot availability") from exc
    if taken:
        raise SlotConflictError("Slot already booked")


def commit_booking() -> None:
    """Commits the session, mapping store failures to workflow errors."""
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise SlotConflictError("Slot already booked") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Booking persistence failed: %s", exc)
        raise StoreError("Could not save booking") from exc


def event_summary(name: str, type_label: Optional[str]) -> str:
    return f"Telehealth: {name} ({type_label})" if type_label else f"Telehealth: {name}"


def event_window(date_id: str, time_str: str, config: Mapping):
    tz_name = config.get("PRACTICE_TIMEZONE", "UTC")
    start = localize(date_id, time_str, tz_name)
    end = start + timedelta(minutes=config.get("APPOINTMENT_DURATION_MINUTES", 30))
    return start, end, tz_name


def sync_calendar_event(event_id, summary, description, date_id, time_str, config):
    """
    Creates (no event_id) or moves (event_id) the calendar event.

    Returns (CalendarEvent or None, SideEffect); never raises.
    """
    calendar = get_calendar_client()
    if not calendar.configured:
        return None, SideEffect("calendar", False, "Google Calendar not configured")

    start, end, tz_name = event_window(date_id, time_str, config)

    def _call():
        if event_id:
            return calendar.update_event(event_id, summary, description, start, end, tz_name)
        return calendar.create_event(summary, description, start, end, tz_name)

    try:
        event = call_with_retries(
            _call,
            attempts=config.get("EXTERNAL_RETRY_ATTEMPTS", 3),
            backoff_seconds=config.get("EXTERNAL_RETRY_BACKOFF_SECONDS", 0.5),
            retry_on=(CalendarError,),
            label="Calendar sync",
        )
    except CalendarError as exc:
        logger.warning("Calendar sync failed for %s %s: %s", date_id, time_str, exc)
        return None, SideEffect("calendar", False, str(exc))
    return event, SideEffect("calendar", True, event.event_id)


def discard_event(event_id: Optional[str]) -> None:
    if not event_id:
        return
    try:
        get_calendar_client().delete_event(event_id)
    except CalendarError as exc:
        logger.warning("Could not remove orphaned calendar event %s: %s", event_id, exc)


def create_booking(data: Mapping, status: str = "paid", payment_method: str = "PayFast") -> BookingResult:
    config = current_app.config
    if status not in BOOKING_STATUSES:
        raise ValidationError("Invalid status")

    req = validate_booking_request(data, config)
    ensure_slot_free(req.date, req.time)

    placeholder = config.get("PLACEHOLDER_VIDEO_LINK", "Google Meet (pending)")
    event, calendar_effect = sync_calendar_event(
        None, event_summary(req.name, req.type_label), req.reason, req.date, req.time, config
    )
    event_id = event.event_id if event else None

    booking = Booking(
        name=req.name,
        email=req.email,
        phone=req.phone,
        reason=req.reason,
        date=req.date,
        time=req.time,
        type_label=req.type_label,
        amount=req.amount,
        status=status,
        payment_method=payment_method,
        video_link=(event.link if event and event.link else placeholder),
        calendar_event_id=event_id,
    )
    db.session.add(booking)
    try:
        commit_booking()
    except (SlotConflictError, StoreError):
        discard_event(event_id)
        raise

    subject, html, text = confirmation_email(booking, config.get("PRACTITIONER_NAME", ""))
    sent, error = send_email(booking.email, subject, html, text)
    email_effect = SideEffect("email", sent, error)

    return BookingResult(booking=booking, side_effects=[calendar_effect, email_effect])
