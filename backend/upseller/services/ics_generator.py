"""
iCalendar invite generation.

WHAT: Render and write an .ics invite for an appointment
WHY: Buyers and sellers without a connected calendar still get an invite
HOW: RFC 5545 VCALENDAR with one VEVENT and a 15 minute VALARM, CRLF lines
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from ..models.domain import Appointment
from ..utils.timeutils import ensure_utc, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

PRODID = "-//Upseller//Marketplace Seller Assistant//EN"
ICS_ROUTE_PREFIX = "/ics/"


def _ics_time(value: datetime) -> str:
    return ensure_utc(value).strftime("%Y%m%dT%H%M%SZ")


def _escape(text: str) -> str:
    """Escape TEXT values (backslash, semicolon, comma, newline)."""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def generate_ics_content(
    appointment: Appointment,
    *,
    title: str = "Marketplace meetup",
    description: str = "",
    now: Optional[datetime] = None
) -> str:
    """
    Render the invite body.

    Args:
        appointment: Appointment to describe
        title: Event summary
        description: Event description
        now: DTSTAMP value (defaults to current time)

    Returns:
        iCalendar text with CRLF line endings
    """
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:REQUEST",
        "BEGIN:VEVENT",
        f"UID:{appointment.id}@upseller",
        f"DTSTAMP:{_ics_time(now or utc_now())}",
        f"DTSTART:{_ics_time(appointment.start)}",
        f"DTEND:{_ics_time(appointment.end)}",
        f"SUMMARY:{_escape(title)}",
        f"LOCATION:{_escape(appointment.spot)}",
        f"DESCRIPTION:{_escape(description)}",
        "STATUS:CONFIRMED",
        "BEGIN:VALARM",
        "TRIGGER:-PT15M",
        "ACTION:DISPLAY",
        "DESCRIPTION:Meetup reminder",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"


def write_ics_file(appointment: Appointment, directory: str | Path, **kwargs) -> str:
    """
    Write {appointment.id}.ics into directory.

    Returns:
        Download route for the file, e.g. "/ics/<id>.ics"
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{appointment.id}.ics"
    # newline="" keeps the CRLF endings intact on every platform
    with open(target_dir / filename, "w", encoding="utf-8", newline="") as f:
        f.write(generate_ics_content(appointment, **kwargs))
    logger.info(f"Wrote ICS invite {filename} to {target_dir}")
    return f"{ICS_ROUTE_PREFIX}{filename}"


def resolve_ics_file(filename: str, directory: str | Path) -> Optional[Path]:
    """
    Map a requested filename to a file inside directory.

    Returns None for names that are not plain .ics filenames or do not exist.
    """
    if not filename.endswith(".ics") or Path(filename).name != filename:
        return None
    path = Path(directory) / filename
    return path if path.is_file() else None
