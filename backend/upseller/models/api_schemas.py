"""
Pydantic API schemas.

WHAT: Request and response models for FastAPI
WHY: Validate inbound JSON and keep the camelCase wire format in one place
HOW: Pydantic v2 models with camelCase aliases and domain converters
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .domain import (
    Appointment,
    AppointmentStatus,
    BuyerMessage,
    Classification,
    DraftAction,
    DraftReply,
    Intent,
    Listing,
    SellerContext,
    SellTimeFrame,
)
from ..utils.timeutils import ensure_utc, to_iso_z, utc_now


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========== Listings ==========

class ListingSchema(CamelModel):
    """Listing as stored and returned."""
    id: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    list_price: float = Field(..., gt=0, description="Asking price")
    min_price: float = Field(..., ge=0, description="Floor price, never shown to buyers")
    location_city: str = ""
    meet_spots: list[str] = Field(default_factory=list)
    availability: list[str] = Field(default_factory=list, description="ISO 'start/end' windows")
    payment_methods: list[Literal["venmo", "cash"]] = Field(default_factory=lambda: ["cash"])
    deadline_ts: Optional[datetime] = None
    description: str = ""
    condition: str = ""

    @model_validator(mode='after')
    def validate_price_range(self):
        """Ensure min_price <= list_price."""
        if self.min_price > self.list_price:
            raise ValueError(f"minPrice ({self.min_price}) must not exceed listPrice ({self.list_price})")
        return self

    def to_domain(self) -> Listing:
        return Listing(
            id=self.id,
            title=self.title,
            list_price=self.list_price,
            min_price=self.min_price,
            location_city=self.location_city,
            meet_spots=list(self.meet_spots),
            availability=list(self.availability),
            payment_methods=list(self.payment_methods),
            deadline=ensure_utc(self.deadline_ts) if self.deadline_ts else None,
            description=self.description,
            condition=self.condition,
        )

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingSchema":
        return cls(
            id=listing.id,
            title=listing.title,
            list_price=listing.list_price,
            min_price=listing.min_price,
            location_city=listing.location_city,
            meet_spots=listing.meet_spots,
            availability=listing.availability,
            payment_methods=listing.payment_methods,
            deadline_ts=listing.deadline,
            description=listing.description,
            condition=listing.condition,
        )


# ========== Negotiation ==========

class SellerContextSchema(CamelModel):
    """Per-call negotiation context."""
    target_price: float = Field(..., gt=0)
    # Wire name follows the LLM prompt's "lowestPrice"; "floorPrice" also accepted
    floor_price: float = Field(..., ge=0, alias="lowestPrice")
    sell_time_frame: SellTimeFrame = SellTimeFrame.ONE_WEEK
    meeting_location: str = ""
    seller_name: str = ""
    item_description: str = ""
    item_condition: str = ""

    @model_validator(mode='before')
    @classmethod
    def accept_floor_price_alias(cls, data):
        if isinstance(data, dict) and "floorPrice" in data and "lowestPrice" not in data:
            data = {**data, "lowestPrice": data["floorPrice"]}
        return data

    @field_validator('sell_time_frame', mode='before')
    @classmethod
    def normalize_time_frame(cls, v):
        """Accept legacy spellings like 'one day'."""
        if isinstance(v, str):
            normalized = v.strip().lower().replace(" ", "_").replace("-", "_")
            if normalized not in {tf.value for tf in SellTimeFrame}:
                raise ValueError(f"Unknown sellTimeFrame: {v}")
            return normalized
        return v

    @model_validator(mode='after')
    def validate_floor_below_target(self):
        """Ensure floor_price <= target_price."""
        if self.floor_price > self.target_price:
            raise ValueError(
                f"lowestPrice ({self.floor_price}) must not exceed targetPrice ({self.target_price})"
            )
        return self

    def to_domain(self) -> SellerContext:
        return SellerContext(
            target_price=self.target_price,
            floor_price=self.floor_price,
            sell_time_frame=self.sell_time_frame,
            meeting_location=self.meeting_location,
            seller_name=self.seller_name,
            item_description=self.item_description,
            item_condition=self.item_condition,
        )


class BuyerMessageSchema(CamelModel):
    """Inbound buyer message."""
    id: str = Field(default_factory=lambda: f"msg-{uuid4().hex[:12]}", min_length=1)
    listing_id: str = Field(..., min_length=1)
    buyer_id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, max_length=2000)
    ts: Optional[datetime] = None
    source: Literal["mock", "facebook"] = "mock"

    def to_domain(self) -> BuyerMessage:
        return BuyerMessage(
            id=self.id,
            listing_id=self.listing_id,
            buyer_id=self.buyer_id,
            text=self.text,
            timestamp=ensure_utc(self.ts) if self.ts else utc_now(),
            source=self.source,
        )

    @classmethod
    def from_domain(cls, message: BuyerMessage) -> "BuyerMessageSchema":
        return cls(
            id=message.id,
            listing_id=message.listing_id,
            buyer_id=message.buyer_id,
            text=message.text,
            ts=message.timestamp,
            source=message.source,
        )


class IngestMessageRequest(BuyerMessageSchema):
    """Buyer message plus optional seller context override."""
    seller_context: Optional[SellerContextSchema] = None


class ClassifyRequest(CamelModel):
    text: str = Field(..., min_length=1, max_length=2000)


class ClassificationSchema(CamelModel):
    intent: Intent
    offer_price: Optional[int] = Field(default=None, ge=0)
    proposed_time_iso: Optional[datetime] = None
    questions: list[str] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)

    def to_domain(self) -> Classification:
        return Classification(
            intent=self.intent,
            offer_price=self.offer_price,
            proposed_time=ensure_utc(self.proposed_time_iso) if self.proposed_time_iso else None,
            questions=tuple(self.questions),
            flags=tuple(self.flags),
        )

    @classmethod
    def from_domain(cls, classification: Classification) -> "ClassificationSchema":
        return cls(
            intent=classification.intent,
            offer_price=classification.offer_price,
            proposed_time_iso=classification.proposed_time,
            questions=list(classification.questions),
            flags=list(classification.flags),
        )


class NegotiateRequest(CamelModel):
    """Draft a reply for an already-classified message."""
    message: BuyerMessageSchema
    classification: ClassificationSchema
    seller_context: Optional[SellerContextSchema] = None


class DraftReplySchema(CamelModel):
    text: str
    action: Optional[DraftAction] = None
    counter_price: Optional[int | float] = None
    proposed_times: Optional[list[str]] = None
    meet_spot: Optional[str] = None
    require_human_click: bool = False
    safety_note: Optional[str] = None
    ics_path: Optional[str] = None
    scheduling_requested: bool = False
    strategy: Literal["rules", "llm", "fallback"] = "rules"

    @classmethod
    def from_domain(cls, draft: DraftReply) -> "DraftReplySchema":
        return cls(
            text=draft.text,
            action=draft.action,
            counter_price=draft.counter_price,
            proposed_times=[to_iso_z(t) for t in draft.proposed_times] if draft.proposed_times else None,
            meet_spot=draft.meet_spot,
            require_human_click=draft.require_human_click,
            safety_note=draft.safety_note,
            ics_path=draft.invite_ref,
            scheduling_requested=draft.scheduling_requested,
            strategy=draft.strategy,
        )


class SendDraftRequest(CamelModel):
    message_id: Optional[str] = None
    listing_id: str = Field(default="", description="Listing whose thread receives the draft")
    draft: DraftReplySchema
    mode: Optional[str] = Field(default=None, description="Overrides the current mode when given")


class SendDraftResponse(CamelModel):
    sent: bool
    drafted: bool = False


class ModeRequest(CamelModel):
    mode: str


class ModeResponse(CamelModel):
    mode: Literal["mock", "shadow"]


class ConversationResponse(CamelModel):
    listing_id: str
    buyer_id: str
    messages: list[BuyerMessageSchema]


# ========== Calendar ==========

class SuggestSlotsRequest(CamelModel):
    """Slot request for a stored listing (listingId) or an inline listing."""
    listing_id: Optional[str] = None
    listing: Optional[ListingSchema] = None
    window_count: int = Field(default=2, ge=1, le=10)
    duration_minutes: int = Field(default=45, gt=0, le=480)

    @model_validator(mode='after')
    def require_listing(self):
        if self.listing_id is None and self.listing is None:
            raise ValueError("Either listingId or listing is required")
        return self


class SuggestSlotsResponse(CamelModel):
    suggested: list[str]


class NeedsAuthResponse(CamelModel):
    needs_auth: bool = True
    auth_url: str


class CreateAppointmentRequest(CamelModel):
    listing_id: Optional[str] = None
    listing: Optional[ListingSchema] = None
    buyer_id: str = Field(..., min_length=1)
    start_iso: str = Field(..., min_length=1)
    spot: str = Field(..., min_length=1)
    duration_minutes: int = Field(default=45, gt=0, le=480)
    buyer_email: Optional[str] = None

    @model_validator(mode='after')
    def require_listing(self):
        if self.listing_id is None and self.listing is None:
            raise ValueError("Either listingId or listing is required")
        return self


class AppointmentSchema(CamelModel):
    id: str
    listing_id: str
    buyer_id: str
    start_iso: str
    end_iso: str
    spot: str
    status: AppointmentStatus
    external_event_id: Optional[str] = None
    html_link: Optional[str] = None
    ics_path: Optional[str] = None

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentSchema":
        return cls(
            id=appointment.id,
            listing_id=appointment.listing_id,
            buyer_id=appointment.buyer_id,
            start_iso=to_iso_z(appointment.start),
            end_iso=to_iso_z(appointment.end),
            spot=appointment.spot,
            status=appointment.status,
            external_event_id=appointment.external_event_id,
            html_link=appointment.html_link,
            ics_path=appointment.ics_path,
        )


class UpdateAppointmentRequest(CamelModel):
    status: AppointmentStatus
