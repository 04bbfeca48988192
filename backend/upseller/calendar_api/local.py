"""
Local calendar backend.

WHAT: Calendar that lives in process memory plus .ics files on disk
WHY: Scheduling works without any Google account
HOW: Busy time comes from non-cancelled appointments; events are ICS invites
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..models.domain import Appointment, AppointmentStatus, TimeInterval
from ..services.ics_generator import write_ics_file
from ..utils.timeutils import ensure_utc
from .types import CalendarEvent, CalendarProviderError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class LocalCalendarProvider:
    """Calendar backed by the in-memory appointment book."""

    name = "local"

    def __init__(self, appointments: Callable[[], Iterable[Appointment]], ics_dir: str | Path):
        """
        Args:
            appointments: Callable returning the current appointments
            ics_dir: Directory invites are written to
        """
        self._appointments = appointments
        self.ics_dir = Path(ics_dir)

    async def get_busy_intervals(self, time_min: datetime, time_max: datetime) -> list[TimeInterval]:
        window = TimeInterval(ensure_utc(time_min), ensure_utc(time_max))
        busy = []
        for appointment in self._appointments():
            if appointment.status == AppointmentStatus.CANCELLED:
                continue
            interval = TimeInterval(ensure_utc(appointment.start), ensure_utc(appointment.end))
            if interval.overlaps(window):
                busy.append(interval)
        busy.sort(key=lambda b: b.start)
        return busy

    async def create_event(
        self,
        appointment: Appointment,
        *,
        title: str,
        buyer_email: Optional[str] = None
    ) -> CalendarEvent:
        description = f"Meetup with {buyer_email or appointment.buyer_id}"
        # Same appointment id -> same file, so rewrites are harmless
        try:
            ics_path = await asyncio.to_thread(
                write_ics_file, appointment, self.ics_dir, title=title, description=description
            )
        except OSError as e:
            raise CalendarProviderError(f"Could not write invite for {appointment.id}: {e}") from e
        logger.info(f"Wrote local invite {ics_path}")
        return CalendarEvent(event_id=f"local-{appointment.id}", ics_path=ics_path)
