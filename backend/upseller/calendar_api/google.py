"""
Google Calendar backend.

WHAT: freeBusy lookups and event inserts against the Calendar v3 REST API
WHY: Sellers with a connected Google calendar get real conflict checks
HOW: HTTPX async client, OAuth access token read from a JSON token file,
     auth problems surfaced as CalendarAuthRequiredError with a consent URL
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import httpx

from ..models.domain import Appointment, TimeInterval
from ..utils.timeutils import parse_iso, to_iso_z
from .types import CalendarAuthRequiredError, CalendarEvent, CalendarProviderError
from ..utils.logger import get_logger

logger = get_logger(__name__)

GOOGLE_AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_CALENDAR_SCOPES = (
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/calendar.freebusy",
)


def build_auth_url(client_id: str, redirect_uri: str) -> str:
    """Consent screen URL the seller must visit to connect a calendar."""
    url = httpx.URL(
        GOOGLE_AUTH_ENDPOINT,
        params={
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_CALENDAR_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        },
    )
    return str(url)


class GoogleCalendarProvider:
    """Google Calendar v3 client."""

    name = "google"

    def __init__(
        self,
        *,
        client_id: str,
        redirect_uri: str,
        token_file: str | Path,
        calendar_id: str = "primary",
        base_url: str = "https://www.googleapis.com/calendar/v3",
        time_zone: str = "UTC",
        timeout: float = 10.0
    ):
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.token_file = Path(token_file)
        self.calendar_id = calendar_id
        self.base_url = base_url.rstrip("/")
        self.time_zone = time_zone

        self.client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def auth_url(self) -> str:
        return build_auth_url(self.client_id, self.redirect_uri)

    def _access_token(self) -> str:
        """
        Read the stored access token.

        Raises:
            CalendarAuthRequiredError: File missing, unreadable or without a token
        """
        try:
            data = json.loads(self.token_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info(f"No Google token at {self.token_file}; authorization required")
            raise CalendarAuthRequiredError(self.auth_url)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable Google token file {self.token_file}: {e}")
            raise CalendarAuthRequiredError(self.auth_url) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise CalendarAuthRequiredError(self.auth_url)
        return token

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._access_token()}"}
        try:
            response = await self.client.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise CalendarProviderError("Google Calendar request timed out") from e
        except httpx.HTTPError as e:
            raise CalendarProviderError(f"Google Calendar request failed: {e}") from e

        if response.status_code in (401, 403):
            logger.warning(f"Google Calendar rejected token (HTTP {response.status_code})")
            raise CalendarAuthRequiredError(self.auth_url)
        return response

    async def get_busy_intervals(self, time_min: datetime, time_max: datetime) -> list[TimeInterval]:
        payload = {
            "timeMin": to_iso_z(time_min),
            "timeMax": to_iso_z(time_max),
            "timeZone": self.time_zone,
            "items": [{"id": self.calendar_id}],
        }
        response = await self._request("POST", "/freeBusy", json=payload)
        if response.is_error:
            raise CalendarProviderError(f"freeBusy HTTP {response.status_code}: {response.text}")

        try:
            calendar = response.json()["calendars"][self.calendar_id]
            busy = [
                TimeInterval(parse_iso(entry["start"]), parse_iso(entry["end"]))
                for entry in calendar.get("busy", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise CalendarProviderError(f"Invalid freeBusy response: {e}") from e

        logger.debug(f"Google freeBusy returned {len(busy)} busy interval(s)")
        return busy

    async def create_event(
        self,
        appointment: Appointment,
        *,
        title: str,
        buyer_email: Optional[str] = None
    ) -> CalendarEvent:
        # Appointment ids are hex, which is valid base32hex for Google event ids
        event_id = appointment.id
        body = {
            "id": event_id,
            "summary": title,
            "location": appointment.spot,
            "description": f"Marketplace meetup for listing {appointment.listing_id}",
            "start": {"dateTime": to_iso_z(appointment.start), "timeZone": self.time_zone},
            "end": {"dateTime": to_iso_z(appointment.end), "timeZone": self.time_zone},
            "reminders": {"useDefault": False, "overrides": [{"method": "popup", "minutes": 15}]},
        }
        if buyer_email:
            body["attendees"] = [{"email": buyer_email}]

        response = await self._request(
            "POST",
            f"/calendars/{self.calendar_id}/events",
            params={"sendUpdates": "all" if buyer_email else "none"},
            json=body,
        )

        if response.status_code == 409:
            # Event with this id already exists: an earlier write went through
            logger.info(f"Google event {event_id} already exists; reusing it")
            return CalendarEvent(event_id=event_id)
        if response.is_error:
            raise CalendarProviderError(f"Event insert HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise CalendarProviderError(f"Invalid event insert response: {e}") from e
        logger.info(f"Created Google event {data.get('id', event_id)} for appointment {appointment.id}")
        return CalendarEvent(event_id=data.get("id", event_id), html_link=data.get("htmlLink"))

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
