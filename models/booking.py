from datetime import datetime
from models.db import db

BOOKING_STATUSES = ("pending", "paid", "completed", "cancelled")

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(40), nullable=False)
    reason = db.Column(db.Text, nullable=False)

    # ISO calendar day (YYYY-MM-DD) and 24-hour start time (HH:MM)
    date = db.Column(db.String(10), nullable=False, index=True)
    time = db.Column(db.String(5), nullable=False)

    type_label = db.Column(db.String(120), nullable=True)
    amount = db.Column(db.Integer, nullable=False, default=0)  # whole currency units

    status = db.Column(db.String(20), nullable=False, default="pending")
    # status values: pending, paid, completed, cancelled
    payment_method = db.Column(db.String(40), nullable=True)

    video_link = db.Column(db.String(500), nullable=True)
    calendar_event_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Only one live booking per (date, time); cancelled rows free the slot
        db.Index(
            "uq_booking_active_slot",
            "date",
            "time",
            unique=True,
            sqlite_where=db.text("status != 'cancelled'"),
            postgresql_where=db.text("status != 'cancelled'"),
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "reason": self.reason,
            "date": self.date,
            "time": self.time,
            "type_label": self.type_label,
            "amount": self.amount,
            "status": self.status,
            "payment_method": self.payment_method,
            "video_link": self.video_link,
            "calendar_event_id": self.calendar_event_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_public_dict(self):
        # Availability only needs the slot, never patient details
        return {"id": self.id, "date": self.date, "time": self.time, "status": self.status}
