import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as telehealth.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "telehealth.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Shared admin password (prefer the bcrypt hash in production)
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
    ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")

    # Session cookie name for the admin session token
    AUTH_COOKIE_NAME = os.getenv("ADMIN_COOKIE_NAME", "admin_session")

    # 7 days session lifetime
    SESSION_LIFETIME_SECONDS = 7 * 24 * 60 * 60

    # Idle timeout: 12 hours
    IDLE_TIMEOUT_SECONDS = 12 * 60 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Simple IP rate limit for the admin login endpoint
    LOGIN_RATE_WINDOW_SECONDS = 60
    LOGIN_RATE_MAX_REQUESTS = 10

    # Practice schedule
    PRACTICE_TIMEZONE = os.getenv("PRACTICE_TIMEZONE", "Africa/Johannesburg")
    PRACTITIONER_NAME = os.getenv("PRACTITIONER_NAME", "Dr Samith Kalyan")
    WORKDAY_START = "08:00"
    WORKDAY_END = "17:00"
    SLOT_MINUTES = 45
    BOOKING_LEAD_MINUTES = 30
    AVAILABILITY_HORIZON_DAYS = 21
    APPOINTMENT_DURATION_MINUTES = 30

    APPOINTMENT_TYPES = {
        "virtual_consult": {"label": "Virtual consult (25 min)", "amount": 350},
        "follow_up": {"label": "Follow-up (15 min)", "amount": 250},
        "mental_health": {"label": "Mental health (40 min)", "amount": 550},
    }
    DEFAULT_APPOINTMENT_TYPE = "virtual_consult"

    # Google Calendar (refresh token is obtained out of band)
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_REFRESH_TOKEN = os.getenv("GOOGLE_REFRESH_TOKEN")
    GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")
    PLACEHOLDER_VIDEO_LINK = "Google Meet (pending)"

    # Email: Resend first, SMTP when Resend is not configured
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    EMAIL_FROM = os.getenv("EMAIL_FROM")
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Calendar/email calls are retried with exponential backoff
    EXTERNAL_RETRY_ATTEMPTS = int(os.getenv("EXTERNAL_RETRY_ATTEMPTS", "3"))
    EXTERNAL_RETRY_BACKOFF_SECONDS = float(os.getenv("EXTERNAL_RETRY_BACKOFF_SECONDS", "0.5"))
    EXTERNAL_TIMEOUT_SECONDS = float(os.getenv("EXTERNAL_TIMEOUT_SECONDS", "10"))

    # Basic app settings
    DEBUG = False
