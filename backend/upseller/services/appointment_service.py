"""
Appointment book and confirmation.

WHAT: Store appointments and confirm chosen slots through a calendar
WHY: A meetup is only real once the calendar has it
HOW: Store-wide asyncio.Lock over an in-memory dict; calendar writes under
     asyncio.wait_for, no retries (event ids are idempotent instead)
"""

import asyncio
import uuid
from dataclasses import replace
from datetime import timedelta
from typing import Callable, Optional

from ..calendar_api.provider import CalendarProvider
from ..calendar_api.types import CalendarAuthRequiredError, CalendarEvent, CalendarProviderError
from ..models.domain import Appointment, AppointmentStatus, Listing
from ..utils.exceptions import (
    AppointmentNotFoundException,
    InvalidAppointmentTransitionException,
    ValidationException,
)
from ..utils.timeutils import parse_iso
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Allowed status changes (setting the current status again is a no-op)
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PROPOSED: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.CANCELLED}),
    AppointmentStatus.CANCELLED: frozenset(),
}


class AppointmentBook:
    """In-memory appointment collection."""

    def __init__(self):
        self._appointments: dict[str, Appointment] = {}
        self._lock = asyncio.Lock()

    def all(self) -> list[Appointment]:
        """Snapshot of every appointment, ordered by start time."""
        return sorted(self._appointments.values(), key=lambda a: a.start)

    def find(self, listing_id: Optional[str] = None, status: Optional[AppointmentStatus] = None) -> list[Appointment]:
        return [
            a for a in self.all()
            if (listing_id is None or a.listing_id == listing_id)
            and (status is None or a.status == status)
        ]

    def get(self, appointment_id: str) -> Appointment:
        """
        Raises:
            AppointmentNotFoundException: Unknown id
        """
        appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundException(appointment_id)
        return appointment

    async def add(self, appointment: Appointment) -> Appointment:
        async with self._lock:
            self._appointments[appointment.id] = appointment
        return appointment

    async def discard(self, appointment_id: str) -> None:
        async with self._lock:
            self._appointments.pop(appointment_id, None)

    async def attach_event(self, appointment_id: str, event: CalendarEvent) -> Appointment:
        """Record the calendar reference and mark the appointment confirmed."""
        async with self._lock:
            current = self.get(appointment_id)
            self._check_transition(current, AppointmentStatus.CONFIRMED)
            updated = replace(
                current,
                status=AppointmentStatus.CONFIRMED,
                external_event_id=event.event_id,
                html_link=event.html_link,
                ics_path=event.ics_path,
            )
            self._appointments[appointment_id] = updated
        return updated

    async def update_status(self, appointment_id: str, status: AppointmentStatus) -> Appointment:
        """
        Change an appointment's status.

        Raises:
            AppointmentNotFoundException: Unknown id
            InvalidAppointmentTransitionException: Change not allowed
        """
        async with self._lock:
            current = self.get(appointment_id)
            if current.status == status:
                return current
            self._check_transition(current, status)
            updated = replace(current, status=status)
            self._appointments[appointment_id] = updated

        logger.info(f"Appointment {appointment_id}: {current.status.value} -> {status.value}")
        return updated

    @staticmethod
    def _check_transition(appointment: Appointment, status: AppointmentStatus) -> None:
        if status not in ALLOWED_TRANSITIONS[appointment.status]:
            raise InvalidAppointmentTransitionException(
                appointment.id, appointment.status.value, status.value
            )


class AppointmentConfirmer:
    """Turns a chosen slot into a confirmed, calendar-backed appointment."""

    def __init__(
        self,
        book: AppointmentBook,
        calendar: CalendarProvider,
        *,
        timeout: float = 10.0,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex
    ):
        self.book = book
        self.calendar = calendar
        self.timeout = timeout
        self.id_factory = id_factory

    async def confirm_appointment(
        self,
        listing_ref: Listing | str,
        buyer_id: str,
        start_iso: str,
        spot: str,
        duration_minutes: int = 45,
        buyer_email: Optional[str] = None
    ) -> Appointment:
        """
        Create and confirm an appointment.

        Args:
            listing_ref: Listing or listing id
            buyer_id: Buyer the meetup is with
            start_iso: Slot start (ISO-8601)
            spot: Meeting location
            duration_minutes: Meetup length
            buyer_email: Optional attendee to invite

        Returns:
            Confirmed Appointment with its calendar reference

        Raises:
            ValidationException: Bad start time or duration
            CalendarAuthRequiredError: Calendar needs authorization
            CalendarProviderError: Calendar write failed or timed out
        """
        try:
            start = parse_iso(start_iso)
        except (ValueError, AttributeError) as e:
            raise ValidationException(
                "Invalid start time",
                field_errors=[{"field": "start", "error": str(e)}]
            ) from e
        if duration_minutes <= 0:
            raise ValidationException(
                "Duration must be positive",
                field_errors=[{"field": "durationMinutes", "error": "must be > 0"}]
            )

        if isinstance(listing_ref, Listing):
            listing_id, title = listing_ref.id, f"Marketplace meetup: {listing_ref.title}"
        else:
            listing_id, title = listing_ref, "Marketplace meetup"

        appointment = await self.book.add(Appointment(
            id=self.id_factory(),
            listing_id=listing_id,
            buyer_id=buyer_id,
            start=start,
            end=start + timedelta(minutes=duration_minutes),
            spot=spot,
            status=AppointmentStatus.PROPOSED,
        ))

        try:
            event = await asyncio.wait_for(
                self.calendar.create_event(appointment, title=title, buyer_email=buyer_email),
                timeout=self.timeout,
            )
        except CalendarAuthRequiredError:
            await self.book.discard(appointment.id)
            logger.info(f"Calendar authorization required; appointment {appointment.id} not created")
            raise
        except asyncio.TimeoutError as e:
            await self.book.discard(appointment.id)
            raise CalendarProviderError(f"Calendar write timed out after {self.timeout}s") from e
        except CalendarProviderError:
            await self.book.discard(appointment.id)
            raise
        except Exception:
            await self.book.discard(appointment.id)
            logger.error(f"Calendar write failed unexpectedly; appointment {appointment.id} discarded")
            raise

        confirmed = await self.book.attach_event(appointment.id, event)
        logger.info(
            f"Confirmed appointment {confirmed.id} for {listing_id}/{buyer_id} "
            f"at {confirmed.start.isoformat()} ({self.calendar.name} event {event.event_id})"
        )
        return confirmed
