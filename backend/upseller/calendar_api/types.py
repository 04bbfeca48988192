"""
Calendar provider types and exceptions.

WHAT: Shared contracts for calendar backends
WHY: Confirmer and slot suggester must not care which calendar is connected
HOW: Dataclass for created events, typed exceptions for auth and failures
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CalendarEvent:
    """Reference to an event written to a calendar."""
    event_id: str
    html_link: Optional[str] = None
    ics_path: Optional[str] = None


class CalendarProviderError(Exception):
    """Calendar backend failed or timed out."""
    pass


class CalendarAuthRequiredError(CalendarProviderError):
    """Calendar needs the seller to (re-)authorize access."""

    def __init__(self, auth_url: str, message: str = "Calendar authorization required"):
        super().__init__(message)
        self.auth_url = auth_url
