"""Tests for creating bookings end to end through the workflow."""

import pytest

from models import Booking, db
from scheduling import booking as booking_module
from scheduling.booking import create_booking, validate_booking_request
from scheduling.errors import SlotConflictError, ValidationError


class TestValidation:
    def test_missing_fields_listed(self, app, booking_payload):
        del booking_payload["phone"]
        booking_payload["reason"] = "   "
        with pytest.raises(ValidationError) as exc:
            validate_booking_request(booking_payload, app.config)
        assert "phone" in exc.value.message
        assert "reason" in exc.value.message

    def test_bad_time(self, app, booking_payload):
        booking_payload["time"] = "soon"
        with pytest.raises(ValidationError):
            validate_booking_request(booking_payload, app.config)

    def test_catalog_key_fills_label_and_amount(self, app, booking_payload):
        del booking_payload["type_label"]
        del booking_payload["amount"]
        booking_payload["appointment_type"] = "mental_health"
        req = validate_booking_request(booking_payload, app.config)
        assert req.type_label == "Mental health (40 min)"
        assert req.amount == 550

    def test_unknown_catalog_key(self, app, booking_payload):
        booking_payload["appointment_type"] = "surgery"
        with pytest.raises(ValidationError):
            validate_booking_request(booking_payload, app.config)

    @pytest.mark.parametrize("field, limit", [("name", 120), ("phone", 40), ("type_label", 120), ("email", 255)])
    def test_overlong_fields_rejected_before_calendar(self, app, calendar, booking_payload, field, limit):
        value = "x" * (limit + 1)
        booking_payload[field] = value if field != "email" else value[:-12] + "@example.com"
        with pytest.raises(ValidationError) as exc:
            create_booking(booking_payload)
        assert field in exc.value.message
        assert calendar.created == []

    def test_validation_failure_has_no_side_effects(self, app, calendar, mailer, booking_payload):
        booking_payload["email"] = "not-an-email"
        with pytest.raises(ValidationError):
            create_booking(booking_payload)
        assert calendar.created == []
        assert mailer.sent == []
        assert Booking.query.count() == 0


class TestCreateBooking:
    def test_public_booking_is_paid_with_meet_link(self, app, calendar, mailer, booking_payload):
        result = create_booking(booking_payload)

        assert result.booking.id is not None
        assert result.booking.status == "paid"
        assert result.booking.payment_method == "PayFast"
        assert result.video_link == "https://meet.google.com/fake-1"
        assert result.booking.calendar_event_id == "evt-1"
        assert result.email_sent is True
        assert mailer.sent[0]["subject"] == "Your telehealth booking is confirmed"

        event = calendar.created[0]
        assert event["tz"] == "Africa/Johannesburg"
        assert (event["end"] - event["start"]).total_seconds() == 30 * 60

    def test_manual_booking_is_pending(self, app, booking_payload):
        result = create_booking(booking_payload, status="pending", payment_method="Manual")
        assert result.booking.status == "pending"
        assert result.booking.payment_method == "Manual"

    def test_calendar_failure_falls_back_to_placeholder(self, app, calendar, booking_payload):
        calendar.fail = True
        result = create_booking(booking_payload)

        assert result.video_link == "Google Meet (pending)"
        assert result.booking.calendar_event_id is None
        effects = result.to_dict()["side_effects"]
        assert effects["calendar"]["ok"] is False
        assert effects["email"]["ok"] is True

    def test_unconfigured_calendar_falls_back_to_placeholder(self, app, calendar, booking_payload):
        calendar.configured = False
        result = create_booking(booking_payload)
        assert result.video_link == "Google Meet (pending)"
        assert calendar.created == []

    def test_email_failure_is_tolerated(self, app, mailer, booking_payload):
        mailer.fail = True
        result = create_booking(booking_payload)

        assert result.email_sent is False
        assert db.session.get(Booking, result.booking.id) is not None

    def test_taken_slot_rejected_before_calendar(self, app, calendar, booking_payload):
        create_booking(booking_payload)
        with pytest.raises(SlotConflictError):
            create_booking(dict(booking_payload, name="Someone Else"))
        assert len(calendar.created) == 1
        assert Booking.query.count() == 1

    def test_store_constraint_closes_race(self, app, calendar, booking_payload, monkeypatch):
        first = create_booking(booking_payload)

        # simulate a second request that passed the pre-check concurrently
        monkeypatch.setattr(booking_module, "ensure_slot_free", lambda *a, **kw: None)
        with pytest.raises(SlotConflictError):
            create_booking(dict(booking_payload, name="Racer"))

        assert Booking.query.count() == 1
        assert db.session.get(Booking, first.booking.id).name == "Thandi Nkosi"
        # the loser's calendar event is cleaned up
        assert calendar.deleted == ["evt-2"]

    def test_cancelled_booking_frees_slot(self, app, booking_payload):
        first = create_booking(booking_payload)
        first.booking.status = "cancelled"
        db.session.commit()

        second = create_booking(dict(booking_payload, name="Next Patient"))
        assert second.booking.status == "paid"
        assert Booking.query.count() == 2
