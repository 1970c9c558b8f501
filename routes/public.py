from flask import Blueprint, request, jsonify, current_app

from scheduling.availability import fetch_availability_records, get_slot_days
from scheduling.booking import create_booking
from scheduling.errors import BookingError, SlotConflictError
from utils.audit import log_event

public_bp = Blueprint("public", __name__, url_prefix="/api")

# incoming name -> canonical name
BOOKING_ALIASES = {
    "booking_date": "date",
    "booking_time": "time",
    "typeLabel": "type_label",
    "appointmentType": "appointment_type",
}


def canonical_payload(data: dict, aliases: dict) -> dict:
    """Maps aliased field names onto canonical ones; canonical names win."""
    out = dict(data)
    for alias, name in aliases.items():
        if alias in out:
            value = out.pop(alias)
            if out.get(name) in (None, ""):
                out[name] = value
    return out


def error_response(e: BookingError):
    return jsonify(success=False, error=e.message), e.status_code


@public_bp.get("/availability")
def availability():
    try:
        bookings, blocks = fetch_availability_records()
    except BookingError as e:
        return jsonify(status="error", error=e.message), e.status_code
    return jsonify(bookings=bookings, blocks=blocks), 200


@public_bp.get("/availability/slots")
def availability_slots():
    try:
        days = get_slot_days(current_app.config)
    except BookingError as e:
        return jsonify(status="error", error=e.message), e.status_code
    return jsonify(
        status="ok",
        horizon_days=current_app.config.get("AVAILABILITY_HORIZON_DAYS", 21),
        days=[d.to_dict() for d in days],
    ), 200


@public_bp.get("/appointment-types")
def appointment_types():
    catalog = current_app.config.get("APPOINTMENT_TYPES", {})
    return jsonify([
        {"key": key, "label": entry.get("label"), "amount": entry.get("amount")}
        for key, entry in catalog.items()
    ]), 200


@public_bp.post("/book")
def book():
    data = canonical_payload(request.get_json(silent=True) or {}, BOOKING_ALIASES)

    try:
        result = create_booking(data, status="paid", payment_method="PayFast")
    except SlotConflictError as e:
        log_event("BOOKING_CONFLICT", entity="booking",
                  metadata={"date": data.get("date"), "time": data.get("time")})
        return error_response(e)
    except BookingError as e:
        return error_response(e)

    log_event(
        "BOOKING_CREATE",
        entity="booking",
        entity_id=result.booking.id,
        metadata={"side_effects": {e.name: e.ok for e in result.side_effects}},
    )
    return jsonify(result.to_dict()), 201
