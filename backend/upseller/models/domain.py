"""
Domain models for listings, buyer messages, negotiation and appointments.

WHAT: Core data structures shared by classifier, negotiation and scheduling
WHY: Type-safe in-memory state without database dependencies
HOW: Enums for closed vocabularies, dataclasses for records
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal, Optional


class Intent(str, Enum):
    """Classified purpose of a buyer message."""
    AVAILABILITY_CHECK = "availability_check"
    OFFER = "offer"
    QUESTION = "question"
    SCHEDULE_PROPOSAL = "schedule_proposal"
    SCAM_RISK = "scam_risk"
    LOWBALL = "lowball"
    BUNDLE_INTEREST = "bundle_interest"
    CONFIRM_MEET = "confirm_meet"


class DraftAction(str, Enum):
    """Structured action attached to a draft reply."""
    COUNTER = "counter"
    ACCEPT = "accept"
    DECLINE = "decline"
    SCHEDULE_PROPOSAL = "schedule_proposal"
    CONFIRM = "confirm"


class SellTimeFrame(str, Enum):
    """How quickly the seller wants the item gone."""
    ONE_DAY = "one_day"
    ONE_WEEK = "one_week"
    ONE_MONTH = "one_month"

    @classmethod
    def parse(cls, value: "str | SellTimeFrame | None", default: "SellTimeFrame") -> "SellTimeFrame":
        """Accept both 'one_day' and the legacy 'one day' spelling."""
        if isinstance(value, SellTimeFrame):
            return value
        if not value:
            return default
        normalized = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            return default


class AppointmentStatus(str, Enum):
    PROPOSED = "proposed"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


Mode = Literal["mock", "shadow"]


@dataclass
class Listing:
    """An item for sale."""
    id: str
    title: str
    list_price: float
    min_price: float  # Floor price, never disclosed to buyers
    location_city: str = ""
    meet_spots: list[str] = field(default_factory=list)
    availability: list[str] = field(default_factory=list)  # "start/end" ISO pairs
    payment_methods: list[str] = field(default_factory=lambda: ["cash"])
    deadline: Optional[datetime] = None
    description: str = ""
    condition: str = ""


@dataclass(frozen=True)
class BuyerMessage:
    """One inbound message from a buyer."""
    id: str
    listing_id: str
    buyer_id: str
    text: str
    timestamp: datetime
    source: Literal["mock", "facebook"] = "mock"


@dataclass(frozen=True)
class Classification:
    """Output of intent detection."""
    intent: Intent
    offer_price: Optional[int] = None
    proposed_time: Optional[datetime] = None
    questions: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()


@dataclass(frozen=True)
class SellerContext:
    """Negotiation policy parameters for one call."""
    target_price: float
    floor_price: float
    sell_time_frame: SellTimeFrame = SellTimeFrame.ONE_WEEK
    meeting_location: str = ""
    seller_name: str = ""
    item_description: str = ""
    item_condition: str = ""

    @classmethod
    def from_listing(
        cls,
        listing: Listing,
        *,
        sell_time_frame: SellTimeFrame,
        fallback_meet_spot: str
    ) -> "SellerContext":
        """Derive default negotiation context from a stored listing."""
        return cls(
            target_price=listing.list_price,
            floor_price=listing.min_price,
            sell_time_frame=sell_time_frame,
            meeting_location=listing.meet_spots[0] if listing.meet_spots else fallback_meet_spot,
            item_description=listing.description or listing.title,
            item_condition=listing.condition,
        )


@dataclass(frozen=True)
class DraftReply:
    """
    Proposed outbound reply plus negotiation metadata.

    Frozen: enrichment (slots, dispatch flags) builds a new instance
    with dataclasses.replace.
    """
    text: str
    action: Optional[DraftAction] = None
    counter_price: Optional[int | float] = None
    proposed_times: Optional[tuple[datetime, ...]] = None
    meet_spot: Optional[str] = None
    require_human_click: bool = False
    safety_note: Optional[str] = None
    invite_ref: Optional[str] = None
    scheduling_requested: bool = False
    strategy: Literal["rules", "llm", "fallback"] = "rules"

    @property
    def needs_slots(self) -> bool:
        """True when the orchestrator should attach suggested slots."""
        wants_schedule = self.action == DraftAction.SCHEDULE_PROPOSAL or self.scheduling_requested
        return wants_schedule and not self.proposed_times


@dataclass(frozen=True)
class TimeInterval:
    """Half-open [start, end) span of time."""
    start: datetime
    end: datetime

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass
class Appointment:
    """A scheduled meetup."""
    id: str
    listing_id: str
    buyer_id: str
    start: datetime
    end: datetime
    spot: str
    status: AppointmentStatus = AppointmentStatus.PROPOSED
    external_event_id: Optional[str] = None
    html_link: Optional[str] = None
    ics_path: Optional[str] = None
