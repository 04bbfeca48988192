"""
Calendar provider factory.

WHAT: Build the configured calendar backend
WHY: Single switch point between local and Google calendars
HOW: Read CALENDAR_PROVIDER from settings
"""

from typing import Callable, Iterable

from ..core.config import Settings, settings as default_settings
from ..models.domain import Appointment
from .google import GoogleCalendarProvider
from .local import LocalCalendarProvider
from .provider import CalendarProvider
from ..utils.logger import get_logger

logger = get_logger(__name__)


def build_calendar_provider(
    appointments: Callable[[], Iterable[Appointment]],
    config: Settings = default_settings
) -> CalendarProvider:
    """
    Create the calendar backend named by CALENDAR_PROVIDER.

    Args:
        appointments: Source of appointments for the local backend's busy time
        config: Settings to read from

    Raises:
        ValueError: Unknown provider name
    """
    name = config.CALENDAR_PROVIDER.lower()

    if name == "local":
        logger.info(f"Using local calendar (ICS dir: {config.ICS_DIR})")
        return LocalCalendarProvider(appointments, config.ICS_DIR)

    if name == "google":
        logger.info(f"Using Google calendar {config.GOOGLE_CALENDAR_ID}")
        return GoogleCalendarProvider(
            client_id=config.GOOGLE_CLIENT_ID,
            redirect_uri=config.GOOGLE_REDIRECT_URI,
            token_file=config.GOOGLE_TOKEN_FILE,
            calendar_id=config.GOOGLE_CALENDAR_ID,
            base_url=config.GOOGLE_CALENDAR_BASE_URL,
            time_zone=config.TIMEZONE,
            timeout=config.CALENDAR_TIMEOUT_SECONDS,
        )

    raise ValueError(f"Unknown calendar provider: {name}")
