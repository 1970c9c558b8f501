from datetime import datetime
from models.db import db

BLOCK_SCOPES = ("day", "slot", "range", "week", "weekend")

class Block(db.Model):
    __tablename__ = "blocks"

    id = db.Column(db.Integer, primary_key=True)

    # "2026-10-20", "2026-10-20 to 2026-10-24" or "2026-10-20 & 2026-10-22"
    block_date = db.Column(db.String(120), nullable=False, index=True)
    scope = db.Column(db.String(20), nullable=False, default="day")
    block_window = db.Column(db.String(20), nullable=True)  # "08:00–09:30"

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "block_date": self.block_date,
            "scope": self.scope,
            "block_window": self.block_window,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
