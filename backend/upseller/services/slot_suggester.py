"""
Meetup slot suggestion.

WHAT: Earliest conflict-free meetup slots inside seller availability
WHY: Drafts that agree to meet need concrete times to offer the buyer
HOW: Walk each availability window on a fixed grid, skipping busy intervals
"""

import asyncio
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from ..calendar_api.types import CalendarProviderError
from ..models.domain import Listing, TimeInterval
from ..utils.timeutils import Clock, ceil_to_grid, ensure_utc, parse_iso, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


def parse_availability_windows(raw_windows: Iterable[str]) -> list[TimeInterval]:
    """
    Parse "start/end" ISO-8601 pairs into intervals.

    Entries that do not parse, or whose end is not after start, are skipped.
    """
    windows = []
    for raw in raw_windows or []:
        try:
            start_text, end_text = str(raw).split("/", 1)
            start, end = parse_iso(start_text), parse_iso(end_text)
        except ValueError:
            logger.debug(f"Skipping unparseable availability window: {raw!r}")
            continue
        if end <= start:
            logger.debug(f"Skipping empty availability window: {raw!r}")
            continue
        windows.append(TimeInterval(start, end))
    return windows


def suggest_slots(
    windows: Sequence[TimeInterval],
    busy: Sequence[TimeInterval],
    window_count: int = 2,
    duration_minutes: int = 45,
    *,
    now: datetime,
    grid_minutes: int = 30,
    lead_minutes: int = 30
) -> list[datetime]:
    """
    Compute the earliest conflict-free slot start times.

    Each window is scanned from max(window.start, now + lead rounded up to
    the grid). A candidate [cursor, cursor + duration) is kept when it fits
    in the window and overlaps no busy interval. After a kept slot the cursor
    moves one grid step; after a conflict it moves to whichever is later of
    the next grid step and the end of the conflicting busy time.

    Windows are scanned in start order, so results are strictly increasing.

    Args:
        windows: Seller availability windows
        busy: Busy intervals reported by the calendar
        window_count: Maximum number of slots to return
        duration_minutes: Meetup length
        now: Current time (injected for determinism)
        grid_minutes: Step between candidate starts
        lead_minutes: Minimum notice before the first slot

    Returns:
        Up to window_count slot start times, earliest first
    """
    if window_count <= 0 or not windows:
        return []

    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=grid_minutes)
    earliest = ceil_to_grid(ensure_utc(now) + timedelta(minutes=lead_minutes), grid_minutes)
    busy_intervals = [
        TimeInterval(ensure_utc(b.start), ensure_utc(b.end)) for b in busy if b.end > b.start
    ]

    slots: list[datetime] = []
    # Listings may list windows in any order
    for window in sorted(windows, key=lambda w: w.start):
        window_start, window_end = ensure_utc(window.start), ensure_utc(window.end)
        cursor = max(window_start, earliest)
        if slots:
            cursor = max(cursor, slots[-1] + step)

        while cursor + duration <= window_end:
            candidate = TimeInterval(cursor, cursor + duration)
            conflicts = [b for b in busy_intervals if candidate.overlaps(b)]
            if conflicts:
                cursor = max(cursor + step, max(b.end for b in conflicts))
                continue

            slots.append(cursor)
            if len(slots) >= window_count:
                return slots
            cursor += step

    return slots


class SlotSuggestionService:
    """Suggests slots for a listing using a calendar provider's busy times."""

    def __init__(
        self,
        calendar,
        *,
        clock: Clock = utc_now,
        grid_minutes: int = 30,
        lead_minutes: int = 30,
        default_horizon_days: int = 3,
        timeout: float = 10.0
    ):
        """
        Args:
            calendar: CalendarProvider supplying busy intervals
            clock: Source of "now"
            grid_minutes: Step between candidate starts
            lead_minutes: Minimum notice before the first slot
            default_horizon_days: Window length used when a listing has no availability
            timeout: Ceiling in seconds for the busy-interval lookup
        """
        self.calendar = calendar
        self.clock = clock
        self.grid_minutes = grid_minutes
        self.lead_minutes = lead_minutes
        self.default_horizon_days = default_horizon_days
        self.timeout = timeout

    def windows_for(self, listing: Optional[Listing]) -> list[TimeInterval]:
        """
        Availability windows for a listing.

        A listing with no availability configured gets one rolling window
        from now; configured-but-unparseable availability yields no windows.
        """
        if listing is None or not listing.availability:
            now = self.clock()
            return [TimeInterval(now, now + timedelta(days=self.default_horizon_days))]
        return parse_availability_windows(listing.availability)

    async def suggest_for_listing(
        self,
        listing: Optional[Listing],
        window_count: int = 2,
        duration_minutes: int = 45
    ) -> list[datetime]:
        """
        Suggest slots for a listing.

        Raises:
            CalendarAuthRequiredError: Calendar needs (re-)authorization
            CalendarProviderError: Busy lookup failed or timed out
        """
        windows = self.windows_for(listing)
        if not windows:
            logger.info(f"No parseable availability for listing {listing.id if listing else '-'}")
            return []

        time_min = min(w.start for w in windows)
        time_max = max(w.end for w in windows)
        try:
            busy = await asyncio.wait_for(
                self.calendar.get_busy_intervals(time_min, time_max),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise CalendarProviderError(f"Busy lookup timed out after {self.timeout}s") from e

        slots = suggest_slots(
            windows,
            busy,
            window_count,
            duration_minutes,
            now=self.clock(),
            grid_minutes=self.grid_minutes,
            lead_minutes=self.lead_minutes,
        )
        logger.info(
            f"Suggested {len(slots)} slot(s) for listing {listing.id if listing else '-'} "
            f"({len(windows)} window(s), {len(busy)} busy interval(s))"
        )
        return slots
