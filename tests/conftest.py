"""Shared fixtures: in-memory app, fake calendar and mailer, admin client."""

import pytest

from app import create_app
from models import db
from utils.calendar import CalendarError, CalendarEvent
from utils.emailer import EmailError

ADMIN_PASSWORD = "correct horse battery"


class FakeCalendar:
    """Records calls; set `fail` to make every call raise CalendarError."""

    def __init__(self):
        self.configured = True
        self.fail = False
        self.created = []
        self.updated = []
        self.deleted = []
        self._next_id = 0

    def create_event(self, summary, description, start, end, tz_name):
        if self.fail:
            raise CalendarError("calendar down")
        self._next_id += 1
        event_id = f"evt-{self._next_id}"
        self.created.append({"id": event_id, "summary": summary, "start": start, "end": end, "tz": tz_name})
        return CalendarEvent(event_id=event_id, link=f"https://meet.google.com/fake-{self._next_id}")

    def update_event(self, event_id, summary, description, start, end, tz_name):
        if self.fail:
            raise CalendarError("calendar down")
        self.updated.append({"id": event_id, "start": start, "end": end})
        return CalendarEvent(event_id=event_id, link=f"https://meet.google.com/moved-{event_id}")

    def delete_event(self, event_id):
        if self.fail:
            raise CalendarError("calendar down")
        self.deleted.append(event_id)


class FakeMailer:
    """Records sent messages; set `fail` to make sends raise EmailError."""

    def __init__(self):
        self.configured = True
        self.fail = False
        self.sent = []

    def send(self, to_email, subject, html, text=None):
        if self.fail:
            raise EmailError("smtp down")
        self.sent.append({"to": to_email, "subject": subject, "html": html, "text": text})
        return "msg-1"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "ADMIN_PASSWORD_HASH": None,
        "EXTERNAL_RETRY_ATTEMPTS": 2,
        "EXTERNAL_RETRY_BACKOFF_SECONDS": 0,
        "PRACTITIONER_NAME": "Dr Test",
    })
    app.extensions["calendar_client"] = FakeCalendar()
    app.extensions["mailer"] = FakeMailer()

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def calendar(app):
    return app.extensions["calendar_client"]


@pytest.fixture
def mailer(app):
    return app.extensions["mailer"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client holding a logged-in admin session; returns (client, csrf headers)."""
    resp = client.post("/admin/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    token = client.get_cookie("csrf_token").value
    return client, {"X-CSRF-Token": token}


@pytest.fixture
def booking_payload():
    return {
        "name": "Thandi Nkosi",
        "email": "thandi@example.com",
        "phone": "+27 82 555 0101",
        "reason": "Persistent cough",
        "date": "2030-03-04",
        "time": "10:15",
        "type_label": "Virtual consult (25 min)",
        "amount": 350,
    }
