"""
Reschedule/Update Workflow

Moves a booking and/or changes its status, keeps the calendar event in step
and sends exactly one notification: the completion email when the booking
becomes completed, the generic update email otherwise.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.booking import BOOKING_STATUSES, Booking
from utils.emailer import send_email
from utils.notifications import completion_email, update_email

from .booking import (
    commit_booking,
    discard_event,
    ensure_slot_free,
    event_summary,
    parse_date_value,
    parse_time_value,
    sync_calendar_event,
)
from .errors import NotFoundError, SlotConflictError, StoreError, ValidationError
from .outcomes import SideEffect, side_effects_dict

# pending/paid -> completed, anything -> cancelled
ALLOWED_TRANSITIONS = {
    "pending": {"paid", "completed", "cancelled"},
    "paid": {"completed", "cancelled"},
    "completed": {"cancelled"},
    "cancelled": set(),
}


@dataclass
class UpdateResult:
    booking: Booking
    side_effects: List[SideEffect] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "booking": self.booking.to_dict(),
            "side_effects": side_effects_dict(self.side_effects),
        }


def load_booking(booking_id) -> Booking:
    try:
        booking = db.session.get(Booking, int(booking_id))
    except (TypeError, ValueError):
        raise NotFoundError("Booking not found")
    except SQLAlchemyError as exc:
        raise StoreError("Could not load booking") from exc
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def _check_transition(current: str, new: str) -> None:
    if new not in BOOKING_STATUSES:
        raise ValidationError("Invalid status")
    current = (current or "").lower()
    if new == current:
        return
    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValidationError(f"Cannot change status from {current} to {new}")


def _undo_calendar_change(event_id, original_event_id, summary, description, original_slot, config):
    # The store kept the old slot, so the calendar has to follow it back
    if original_event_id:
        sync_calendar_event(original_event_id, summary, description,
                            original_slot[0], original_slot[1], config)
    else:
        discard_event(event_id)


def update_booking(booking_id, date: Optional[str] = None, time: Optional[str] = None,
                   status: Optional[str] = None) -> UpdateResult:
    config = current_app.config
    if not (date or time or status):
        raise ValidationError("Nothing to update")

    booking = load_booking(booking_id)

    new_status = str(status).strip().lower() if status else None
    if new_status:
        _check_transition(booking.status, new_status)

    new_date = booking.date
    new_time = booking.time
    if date:
        new_date = parse_date_value(date)
    if time:
        new_time = parse_time_value(time)

    moved = (new_date, new_time) != (booking.date, booking.time)
    final_status = new_status or booking.status
    if moved and final_status != "cancelled":
        ensure_slot_free(new_date, new_time, exclude_id=booking.id)

    original_event_id = booking.calendar_event_id
    original_slot = (booking.date, booking.time)
    summary = event_summary(booking.name, booking.type_label)
    description = booking.reason

    effects: List[SideEffect] = []
    event = None
    if date and time:
        event, calendar_effect = sync_calendar_event(
            original_event_id, summary, description, new_date, new_time, config,
        )
        effects.append(calendar_effect)
        if event is not None:
            if event.link:
                booking.video_link = event.link
            if event.event_id:
                booking.calendar_event_id = event.event_id

    booking.date = new_date
    booking.time = new_time
    if new_status:
        booking.status = new_status
    try:
        commit_booking()
    except (SlotConflictError, StoreError):
        if event is not None:
            _undo_calendar_change(event.event_id, original_event_id, summary, description,
                                  original_slot, config)
        raise

    practitioner = config.get("PRACTITIONER_NAME", "")
    if new_status == "completed":
        subject, html, text = completion_email(booking, practitioner)
    else:
        subject, html, text = update_email(booking, practitioner)
    sent, error = send_email(booking.email, subject, html, text)
    effects.append(SideEffect("email", sent, error))

    return UpdateResult(booking=booking, side_effects=effects)
