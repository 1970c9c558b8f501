from .db import db
from .booking import Booking, BOOKING_STATUSES
from .block import Block, BLOCK_SCOPES
from .session import AdminSession
from .audit_log import AuditLog
from .ip_rate_limit import IpRateLimit
