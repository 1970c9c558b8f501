"""Tests for rescheduling and status changes."""

import pytest

from models import Booking, db
from scheduling import updates
from scheduling.booking import create_booking
from scheduling.errors import NotFoundError, SlotConflictError, StoreError, ValidationError
from scheduling.timeutils import localize
from scheduling.updates import update_booking


@pytest.fixture
def booked(app, booking_payload, mailer):
    result = create_booking(booking_payload)
    mailer.sent.clear()
    return result.booking


def test_reschedule_moves_calendar_event(app, booked, calendar, mailer):
    result = update_booking(booked.id, date="2030-03-05", time="11:00")

    assert (result.booking.date, result.booking.time) == ("2030-03-05", "11:00")
    assert calendar.updated[0]["id"] == "evt-1"
    assert result.booking.video_link == "https://meet.google.com/moved-evt-1"
    assert [m["subject"] for m in mailer.sent] == ["Updated booking details"]


def test_reschedule_creates_event_when_missing(app, booked, calendar):
    booked.calendar_event_id = None
    result = update_booking(booked.id, date="2030-03-05", time="11:00")
    assert result.booking.calendar_event_id == "evt-2"
    assert calendar.updated == []


def test_calendar_failure_is_recorded_not_raised(app, booked, calendar):
    calendar.fail = True
    result = update_booking(booked.id, date="2030-03-05", time="11:00")
    assert result.to_dict()["side_effects"]["calendar"]["ok"] is False
    assert result.booking.date == "2030-03-05"


def test_completion_sends_exactly_one_thank_you(app, booked, mailer):
    update_booking(booked.id, status="completed")
    assert [m["subject"] for m in mailer.sent] == ["Thank you for your consult today"]


def test_status_only_change_does_not_touch_calendar(app, booked, calendar):
    update_booking(booked.id, status="cancelled")
    assert calendar.updated == []
    assert booked.status == "cancelled"


def test_invalid_transition(app, booked):
    update_booking(booked.id, status="cancelled")
    with pytest.raises(ValidationError):
        update_booking(booked.id, status="paid")


def test_unknown_status(app, booked):
    with pytest.raises(ValidationError):
        update_booking(booked.id, status="archived")


def test_nothing_to_update(app, booked):
    with pytest.raises(ValidationError):
        update_booking(booked.id)


def test_not_found(app):
    with pytest.raises(NotFoundError):
        update_booking(999, status="paid")
    with pytest.raises(NotFoundError):
        update_booking("abc", status="paid")


def test_move_onto_taken_slot(app, booked, booking_payload):
    create_booking(dict(booking_payload, time="11:00", name="Other"))
    with pytest.raises(SlotConflictError):
        update_booking(booked.id, time="11:00")


def test_completion_with_reschedule_sends_only_thank_you(app, booked, mailer):
    result = update_booking(booked.id, date="2030-03-05", time="11:00", status="completed")
    assert result.booking.status == "completed"
    assert [m["subject"] for m in mailer.sent] == ["Thank you for your consult today"]


def test_conflict_on_commit_moves_event_back(app, booked, booking_payload, calendar, mailer, monkeypatch):
    create_booking(dict(booking_payload, date="2030-03-05", time="11:00", name="Other"))
    mailer.sent.clear()

    # a concurrent request took the slot after the pre-check
    monkeypatch.setattr(updates, "ensure_slot_free", lambda *a, **kw: None)
    with pytest.raises(SlotConflictError):
        update_booking(booked.id, date="2030-03-05", time="11:00")

    moved, restored = calendar.updated
    assert moved["id"] == restored["id"] == "evt-1"
    assert restored["start"] == localize("2030-03-04", "10:15", "Africa/Johannesburg")
    assert db.session.get(Booking, booked.id).date == "2030-03-04"
    assert mailer.sent == []


def test_store_failure_discards_new_event(app, booked, calendar, monkeypatch):
    booked.calendar_event_id = None

    def failing_commit():
        db.session.rollback()
        raise StoreError("Could not save booking")

    monkeypatch.setattr(updates, "commit_booking", failing_commit)
    with pytest.raises(StoreError):
        update_booking(booked.id, date="2030-03-05", time="11:00")
    assert calendar.deleted == ["evt-2"]


def test_status_only_failure_leaves_calendar_alone(app, booked, calendar, monkeypatch):
    def failing_commit():
        db.session.rollback()
        raise StoreError("Could not save booking")

    monkeypatch.setattr(updates, "commit_booking", failing_commit)
    with pytest.raises(StoreError):
        update_booking(booked.id, status="completed")
    assert calendar.updated == []
    assert calendar.deleted == []
