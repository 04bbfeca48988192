"""
Calendar provider protocol.

WHAT: Abstract interface for calendar backends
WHY: Swap local and Google calendars without touching scheduling code
HOW: Protocol with busy lookup and event creation
"""

from datetime import datetime
from typing import Optional, Protocol

from ..models.domain import Appointment, TimeInterval
from .types import CalendarEvent


class CalendarProvider(Protocol):
    """Protocol for calendar backends."""

    name: str

    async def get_busy_intervals(self, time_min: datetime, time_max: datetime) -> list[TimeInterval]:
        """
        Busy time between time_min and time_max.

        Raises:
            CalendarAuthRequiredError: Access token missing or rejected
            CalendarProviderError: Backend failure
        """
        ...

    async def create_event(
        self,
        appointment: Appointment,
        *,
        title: str,
        buyer_email: Optional[str] = None
    ) -> CalendarEvent:
        """
        Write the appointment as an event.

        Writing the same appointment twice must not create two events.

        Raises:
            CalendarAuthRequiredError: Access token missing or rejected
            CalendarProviderError: Backend failure
        """
        ...
