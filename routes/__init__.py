from routes.health import health_bp
from routes.public import public_bp
from routes.admin_auth import admin_auth_bp
from routes.admin_bookings import admin_bookings_bp
from routes.admin_blocks import admin_blocks_bp

__all__ = [
    "health_bp",
    "public_bp",
    "admin_auth_bp",
    "admin_bookings_bp",
    "admin_blocks_bp",
]
