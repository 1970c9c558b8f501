from datetime import datetime
from models.db import db

class IpRateLimit(db.Model):
    """Fixed-window request counter per (bucket, client IP)."""

    __tablename__ = "ip_rate_limits"

    id = db.Column(db.Integer, primary_key=True)
    bucket = db.Column(db.String(40), nullable=False, default="admin_login")
    ip = db.Column(db.String(64), nullable=False, index=True)

    window_start = db.Column(db.DateTime, nullable=False)
    count = db.Column(db.Integer, default=0, nullable=False)
    last_request_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("bucket", "ip", name="uq_rate_limit_bucket_ip"),
    )
