"""
Unit tests for the Google Calendar backend.

WHAT: Test freeBusy parsing, event insert, 409 reuse and auth detection
WHY: Auth problems must surface as a consent URL, never as a crash
HOW: Mock the Calendar v3 REST API with respx, token file in tmp_path
"""

import json
from datetime import datetime, timezone

import httpx
import pytest
import respx

from upseller.calendar_api.google import GoogleCalendarProvider, build_auth_url
from upseller.calendar_api.types import CalendarAuthRequiredError, CalendarProviderError
from upseller.models.domain import Appointment, TimeInterval

BASE_URL = "https://calendar.test/v3"
DAY_START = datetime(2025, 1, 1, tzinfo=timezone.utc)
DAY_END = datetime(2025, 1, 2, tzinfo=timezone.utc)


@pytest.fixture
def token_file(tmp_path):
    path = tmp_path / "google_token.json"
    path.write_text(json.dumps({"access_token": "ya29.test"}), encoding="utf-8")
    return path


def make_provider(token_file) -> GoogleCalendarProvider:
    return GoogleCalendarProvider(
        client_id="client-123",
        redirect_uri="http://localhost:8000/api/v1/oauth/callback",
        token_file=token_file,
        base_url=BASE_URL,
    )


@pytest.fixture
def appointment() -> Appointment:
    return Appointment(
        id="0123456789abcdef0123456789abcdef",
        listing_id="listing-1",
        buyer_id="buyer-1",
        start=datetime(2025, 1, 1, 10, 45, tzinfo=timezone.utc),
        end=datetime(2025, 1, 1, 11, 30, tzinfo=timezone.utc),
        spot="Provo Police Department Lobby",
    )


@pytest.mark.unit
class TestAuth:

    def test_auth_url_carries_client_and_scopes(self):
        url = httpx.URL(build_auth_url("client-123", "http://localhost/cb"))

        assert url.host == "accounts.google.com"
        assert url.params["client_id"] == "client-123"
        assert url.params["access_type"] == "offline"
        assert "calendar.freebusy" in url.params["scope"]

    @pytest.mark.asyncio
    async def test_missing_token_file_requires_auth(self, tmp_path):
        provider = make_provider(tmp_path / "missing.json")

        with pytest.raises(CalendarAuthRequiredError) as exc_info:
            await provider.get_busy_intervals(DAY_START, DAY_END)

        assert "client_id=client-123" in exc_info.value.auth_url

    @pytest.mark.asyncio
    async def test_token_file_without_token_requires_auth(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text("{}", encoding="utf-8")

        with pytest.raises(CalendarAuthRequiredError):
            await make_provider(path).get_busy_intervals(DAY_START, DAY_END)

    @pytest.mark.asyncio
    @respx.mock
    async def test_rejected_token_requires_auth(self, token_file):
        respx.post(f"{BASE_URL}/freeBusy").mock(return_value=httpx.Response(401))

        with pytest.raises(CalendarAuthRequiredError):
            await make_provider(token_file).get_busy_intervals(DAY_START, DAY_END)


@pytest.mark.unit
class TestFreeBusy:

    @pytest.mark.asyncio
    @respx.mock
    async def test_parses_busy_intervals(self, token_file):
        route = respx.post(f"{BASE_URL}/freeBusy").mock(
            return_value=httpx.Response(200, json={
                "calendars": {"primary": {"busy": [
                    {"start": "2025-01-01T10:00:00Z", "end": "2025-01-01T10:45:00Z"},
                ]}}
            })
        )

        busy = await make_provider(token_file).get_busy_intervals(DAY_START, DAY_END)

        assert busy == [TimeInterval(
            datetime(2025, 1, 1, 10, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 10, 45, tzinfo=timezone.utc),
        )]
        request = route.calls.last.request
        assert request.headers["authorization"] == "Bearer ya29.test"
        body = json.loads(request.content)
        assert body["timeMin"] == "2025-01-01T00:00:00Z"
        assert body["items"] == [{"id": "primary"}]

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error(self, token_file):
        respx.post(f"{BASE_URL}/freeBusy").mock(return_value=httpx.Response(500, text="oops"))

        with pytest.raises(CalendarProviderError, match="HTTP 500"):
            await make_provider(token_file).get_busy_intervals(DAY_START, DAY_END)

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self, token_file):
        respx.post(f"{BASE_URL}/freeBusy").mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(CalendarProviderError, match="timed out"):
            await make_provider(token_file).get_busy_intervals(DAY_START, DAY_END)


@pytest.mark.unit
class TestCreateEvent:

    @pytest.mark.asyncio
    @respx.mock
    async def test_insert_returns_link(self, token_file, appointment):
        route = respx.post(f"{BASE_URL}/calendars/primary/events").mock(
            return_value=httpx.Response(200, json={
                "id": appointment.id,
                "htmlLink": "https://calendar.google.com/event?eid=abc",
            })
        )

        event = await make_provider(token_file).create_event(
            appointment, title="Marketplace meetup: Road bike", buyer_email="buyer@example.com"
        )

        assert event.event_id == appointment.id
        assert event.html_link == "https://calendar.google.com/event?eid=abc"
        request = route.calls.last.request
        assert request.url.params["sendUpdates"] == "all"
        body = json.loads(request.content)
        assert body["id"] == appointment.id
        assert body["start"]["dateTime"] == "2025-01-01T10:45:00Z"
        assert body["attendees"] == [{"email": "buyer@example.com"}]
        assert body["reminders"]["overrides"] == [{"method": "popup", "minutes": 15}]

    @pytest.mark.asyncio
    @respx.mock
    async def test_existing_event_is_reused(self, token_file, appointment):
        respx.post(f"{BASE_URL}/calendars/primary/events").mock(return_value=httpx.Response(409))

        event = await make_provider(token_file).create_event(appointment, title="Meetup")

        assert event.event_id == appointment.id
        assert event.html_link is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_success_is_provider_error(self, token_file, appointment):
        respx.post(f"{BASE_URL}/calendars/primary/events").mock(
            return_value=httpx.Response(200, text="<html>gateway</html>")
        )

        with pytest.raises(CalendarProviderError, match="Invalid event insert response"):
            await make_provider(token_file).create_event(appointment, title="Meetup")
