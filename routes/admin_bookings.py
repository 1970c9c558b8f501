from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from models.booking import BOOKING_STATUSES, Booking
from routes.public import BOOKING_ALIASES, canonical_payload, error_response
from scheduling.booking import create_booking
from scheduling.errors import BookingError, StoreError
from scheduling.slots import DEFAULT_DAY_END, DEFAULT_DAY_START, DEFAULT_SLOT_MINUTES, slots_per_day
from scheduling.stats import compute_stats
from scheduling.timeutils import local_now, normalize_date_id
from scheduling.updates import load_booking, update_booking
from utils.audit import log_event
from utils.auth_context import admin_required

admin_bookings_bp = Blueprint("admin_bookings", __name__, url_prefix="/api/admin/bookings")


def _truthy(value) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def _escape_like(term: str) -> str:
    # search text is literal; % and _ are not wildcards here
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _filtered_query(args):
    q = Booking.query

    start = normalize_date_id(args.get("start") or "")
    end = normalize_date_id(args.get("end") or "")
    if start:
        q = q.filter(Booking.date >= start)
    if end:
        q = q.filter(Booking.date <= end)

    status = (args.get("status") or "").strip().lower()
    if status:
        q = q.filter(Booking.status == status)

    term = (args.get("q") or "").strip()
    if term:
        like = f"%{_escape_like(term)}%"
        q = q.filter(or_(
            Booking.name.ilike(like, escape="\\"),
            Booking.email.ilike(like, escape="\\"),
            Booking.phone.ilike(like, escape="\\"),
            Booking.reason.ilike(like, escape="\\"),
        ))

    return q.order_by(Booking.date.asc(), Booking.time.asc())


@admin_bookings_bp.get("")
@admin_required
def list_bookings():
    status = (request.args.get("status") or "").strip().lower()
    if status and status not in BOOKING_STATUSES:
        return jsonify(success=False, error="Invalid status"), 400

    try:
        rows = _filtered_query(request.args).all()
    except SQLAlchemyError:
        return error_response(StoreError("Could not load bookings"))

    out = {"bookings": [b.to_dict() for b in rows]}
    if _truthy(request.args.get("stats")):
        config = current_app.config
        today = local_now(config.get("PRACTICE_TIMEZONE", "UTC")).date()
        out["stats"] = compute_stats(
            out["bookings"],
            today,
            slots_per_day=slots_per_day(
                config.get("WORKDAY_START", DEFAULT_DAY_START),
                config.get("WORKDAY_END", DEFAULT_DAY_END),
                config.get("SLOT_MINUTES", DEFAULT_SLOT_MINUTES),
            ),
            horizon_days=config.get("AVAILABILITY_HORIZON_DAYS", 21),
        )
    return jsonify(out), 200


@admin_bookings_bp.post("")
@admin_required
def add_booking():
    data = canonical_payload(request.get_json(silent=True) or {}, BOOKING_ALIASES)

    try:
        result = create_booking(data, status="pending", payment_method="Manual")
    except BookingError as e:
        return error_response(e)

    log_event("BOOKING_CREATE", actor="admin", entity="booking", entity_id=result.booking.id,
              metadata={"manual": True})
    return jsonify(result.to_dict()), 201


@admin_bookings_bp.get("/<booking_id>")
@admin_required
def get_booking(booking_id):
    try:
        booking = load_booking(booking_id)
    except BookingError as e:
        return error_response(e)
    return jsonify(booking=booking.to_dict()), 200


@admin_bookings_bp.patch("/<booking_id>")
@admin_required
def patch_booking(booking_id):
    data = canonical_payload(request.get_json(silent=True) or {}, BOOKING_ALIASES)

    try:
        result = update_booking(
            booking_id,
            date=data.get("date"),
            time=data.get("time"),
            status=data.get("status"),
        )
    except BookingError as e:
        return error_response(e)

    log_event(
        "BOOKING_UPDATE",
        actor="admin",
        entity="booking",
        entity_id=result.booking.id,
        metadata={k: data.get(k) for k in ("date", "time", "status") if data.get(k)},
    )
    return jsonify(result.to_dict()), 200
