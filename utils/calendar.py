"""
Google Calendar client

Creates, moves and deletes the practice's telehealth events, each with a
Google Meet conference attached. Access tokens are minted from the refresh
token held in configuration.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import quote

import httpx
from flask import current_app

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


class CalendarError(Exception):
    pass


@dataclass
class CalendarEvent:
    event_id: Optional[str]
    link: Optional[str]


def extract_meet_link(data: dict, allow_html_link: bool = False) -> Optional[str]:
    if data.get("hangoutLink"):
        return data["hangoutLink"]
    entry_points = (data.get("conferenceData") or {}).get("entryPoints") or []
    for entry in entry_points:
        if entry.get("entryPointType") == "video" and entry.get("uri"):
            return entry["uri"]
    if allow_html_link:
        return data.get("htmlLink")
    return None


class GoogleCalendarClient:
    def __init__(self, client_id=None, client_secret=None, refresh_token=None,
                 calendar_id="primary", timeout=10.0, transport=None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.calendar_id = calendar_id or "primary"
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config, transport=None):
        return cls(
            client_id=config.get("GOOGLE_CLIENT_ID"),
            client_secret=config.get("GOOGLE_CLIENT_SECRET"),
            refresh_token=config.get("GOOGLE_REFRESH_TOKEN"),
            calendar_id=config.get("GOOGLE_CALENDAR_ID", "primary"),
            timeout=config.get("EXTERNAL_TIMEOUT_SECONDS", 10.0),
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def _events_url(self, event_id: Optional[str] = None) -> str:
        url = f"{GOOGLE_CALENDAR_API}/calendars/{quote(self.calendar_id, safe='')}/events"
        if event_id:
            url += f"/{quote(event_id, safe='')}"
        return url

    def _access_token(self, client: httpx.Client) -> str:
        if not self.configured:
            raise CalendarError("Google Calendar is not configured")
        response = client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            },
        )
        if response.status_code != 200:
            raise CalendarError(f"Token refresh failed ({response.status_code})")
        token = response.json().get("access_token")
        if not token:
            raise CalendarError("No access token in refresh response")
        return token

    @staticmethod
    def _event_body(summary: str, description: str, start: datetime, end: datetime, tz_name: str) -> dict:
        return {
            "summary": summary,
            "description": description or "",
            "start": {"dateTime": start.isoformat(), "timeZone": tz_name},
            "end": {"dateTime": end.isoformat(), "timeZone": tz_name},
            "conferenceData": {
                "createRequest": {
                    "requestId": str(uuid.uuid4()),
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            },
        }

    def _send(self, method: str, url: str, json_body: Optional[dict] = None) -> httpx.Response:
        try:
            with self._client() as client:
                token = self._access_token(client)
                response = client.request(
                    method,
                    url,
                    params={"conferenceDataVersion": 1} if json_body is not None else None,
                    json=json_body,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as exc:
            raise CalendarError(f"Google Calendar request failed: {exc}") from exc
        if response.status_code >= 400:
            raise CalendarError(f"Google Calendar {method} failed ({response.status_code}): {response.text[:200]}")
        return response

    def create_event(self, summary, description, start, end, tz_name) -> CalendarEvent:
        response = self._send("POST", self._events_url(), self._event_body(summary, description, start, end, tz_name))
        data = response.json()
        return CalendarEvent(event_id=data.get("id"), link=extract_meet_link(data, allow_html_link=True))

    def update_event(self, event_id, summary, description, start, end, tz_name) -> CalendarEvent:
        response = self._send("PATCH", self._events_url(event_id), self._event_body(summary, description, start, end, tz_name))
        data = response.json()
        return CalendarEvent(event_id=data.get("id") or event_id, link=extract_meet_link(data))

    def delete_event(self, event_id: str) -> None:
        self._send("DELETE", self._events_url(event_id))


def get_calendar_client():
    client = current_app.extensions.get("calendar_client")
    if client is None:
        client = GoogleCalendarClient.from_config(current_app.config)
    return client
