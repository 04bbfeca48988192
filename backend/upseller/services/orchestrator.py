"""
Inbound message orchestration.

WHAT: Turn one buyer message into a dispatched DraftReply
WHY: Single pipeline shared by the ingest and demo endpoints
HOW: store -> classify -> negotiate -> (suggest slots) -> dispatch by mode

Pipeline:
1. Append the message to its (listing, buyer) conversation
2. Classify the text
3. Negotiate with history that excludes the current message
4. Attach suggested slots when the draft asks to schedule without times
5. Dispatch: mock simulates auto-send, shadow drafts into the compose box
"""

from dataclasses import replace
from typing import Mapping, Optional, Sequence

from ..calendar_api.types import CalendarAuthRequiredError, CalendarProviderError
from ..models.domain import BuyerMessage, DraftReply, Listing, Mode, SellerContext, SellTimeFrame
from .classifier import classify
from .conversation_store import ConversationStore
from .marketplace_hooks import MarketplaceHooks
from .negotiation_engine import NegotiationEngine
from .slot_suggester import SlotSuggestionService
from ..utils.logger import get_logger

logger = get_logger(__name__)

SAFE_FALLBACK_TEXT = "Thanks for your interest! Let me get back to you shortly."


class Orchestrator:
    """Runs the inbound message pipeline."""

    def __init__(
        self,
        *,
        store: ConversationStore,
        engine: NegotiationEngine,
        slots: SlotSuggestionService,
        hooks: MarketplaceHooks,
        listings: Mapping[str, Listing],
        sell_time_frame: SellTimeFrame = SellTimeFrame.ONE_WEEK,
        meet_spots: Sequence[str] = (),
        default_target_price: float = 100.0,
        default_floor_price: float = 80.0,
        window_count: int = 2,
        duration_minutes: int = 45
    ):
        self.store = store
        self.engine = engine
        self.slots = slots
        self.hooks = hooks
        self.listings = listings
        self.sell_time_frame = sell_time_frame
        self.meet_spots = list(meet_spots)
        self.default_target_price = default_target_price
        self.default_floor_price = default_floor_price
        self.window_count = window_count
        self.duration_minutes = duration_minutes

    def context_for(self, listing_id: str, seller_context: Optional[SellerContext] = None) -> SellerContext:
        """Seller context from the request, else the stored listing, else defaults."""
        if seller_context is not None:
            return seller_context

        fallback_spot = self.meet_spots[0] if self.meet_spots else ""
        listing = self.listings.get(listing_id)
        if listing is not None:
            return SellerContext.from_listing(
                listing,
                sell_time_frame=self.sell_time_frame,
                fallback_meet_spot=fallback_spot,
            )

        return SellerContext(
            target_price=self.default_target_price,
            floor_price=self.default_floor_price,
            sell_time_frame=self.sell_time_frame,
            meeting_location=fallback_spot,
        )

    async def handle_inbound_message(
        self,
        message: BuyerMessage,
        mode: Mode,
        seller_context: Optional[SellerContext] = None
    ) -> DraftReply:
        """
        Process one buyer message end to end.

        Never raises: unexpected failures produce a safe draft that
        requires a human click.
        """
        try:
            return await self._handle(message, mode, seller_context)
        except Exception as e:
            logger.error(f"Failed to process message {message.id}: {e}", exc_info=True)
            return DraftReply(text=SAFE_FALLBACK_TEXT, require_human_click=True, strategy="fallback")

    async def _handle(
        self,
        message: BuyerMessage,
        mode: Mode,
        seller_context: Optional[SellerContext]
    ) -> DraftReply:
        history = await self.store.append(message.listing_id, message.buyer_id, message)
        prior = history[:-1]

        classification = classify(message.text)
        logger.info(
            f"Message {message.id} ({message.listing_id}/{message.buyer_id}) "
            f"classified as {classification.intent.value}"
        )

        context = self.context_for(message.listing_id, seller_context)
        draft = await self.engine.negotiate(message, classification, context, prior)

        if draft.needs_slots:
            draft = await self.attach_slots(draft, message.listing_id)

        return await self.dispatch(draft, message, mode)

    async def attach_slots(self, draft: DraftReply, listing_id: str) -> DraftReply:
        """Add suggested times to a scheduling draft; failures keep the draft as is."""
        try:
            suggested = await self.slots.suggest_for_listing(
                self.listings.get(listing_id),
                window_count=self.window_count,
                duration_minutes=self.duration_minutes,
            )
        except CalendarAuthRequiredError as e:
            logger.warning(f"Calendar needs authorization ({e.auth_url}); draft sent without times")
            return draft
        except CalendarProviderError as e:
            logger.warning(f"Slot suggestion failed: {e}; draft sent without times")
            return draft

        if not suggested:
            return draft
        return replace(draft, proposed_times=tuple(suggested))

    async def _draft_in_thread(self, listing_id: str, text: str) -> bool:
        """Open the listing's thread and type the reply. False if the wrong thread is open."""
        await self.hooks.ensure_facebook_session()
        await self.hooks.open_listing_inbox_thread(listing_id)
        if not await self.hooks.verify_correct_thread(listing_id):
            logger.warning(f"[SHADOW] Wrong inbox thread for {listing_id}; reply not drafted")
            return False
        await self.hooks.draft_reply(text)
        return True

    async def dispatch(self, draft: DraftReply, message: BuyerMessage, mode: Mode) -> DraftReply:
        """
        Deliver a draft according to the operating mode.

        mock:   simulated auto-send, nothing leaves the process
        shadow: typed into the Marketplace compose box, a human sends it
        """
        if mode == "shadow":
            if await self._draft_in_thread(message.listing_id, draft.text):
                logger.info(f"[SHADOW] Drafted reply for {message.listing_id}/{message.buyer_id}")
            return replace(draft, require_human_click=True)

        if draft.require_human_click:
            logger.info(f"[MOCK] Reply for {message.listing_id}/{message.buyer_id} held for review")
        else:
            logger.info(f"[MOCK] Auto-sent reply to {message.buyer_id}: {draft.text!r}")
        return draft

    async def send_draft(self, listing_id: str, text: str, mode: Mode) -> dict:
        """Send (mock) or draft (shadow) a seller-approved reply."""
        if mode == "shadow":
            drafted = await self._draft_in_thread(listing_id, text)
            return {"sent": False, "drafted": drafted}

        logger.info(f"[MOCK] Sent reply for listing {listing_id}: {text!r}")
        return {"sent": True}
