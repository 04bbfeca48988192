"""
Rule-based negotiation strategy.

WHAT: Deterministic reply drafting keyed on intent
WHY: Always-available strategy and the fallback for LLM failures
HOW: Exhaustive dispatch table over Intent, offer policy by sell time frame
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable

from ..models.domain import (
    Classification,
    DraftAction,
    DraftReply,
    Intent,
    SellerContext,
    SellTimeFrame,
)
from ..models.negotiation import OfferDecision
from ..utils.offers import format_price, round_half_up
from ..utils.timeutils import Clock, ceil_to_grid, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

SCAM_DECLINE_TEXT = (
    "Thanks for your interest, but I prefer to keep transactions simple with cash "
    "payment at meetup. Let me know if you'd like to arrange a time to meet!"
)
SCAM_SAFETY_NOTE = "Potential scam detected - verification code request"
GENERIC_ACK_TEXT = (
    "Thanks for your message! Let me know if you have any other questions "
    "or if you'd like to schedule a time to meet."
)
ASK_FOR_PRICE_TEXT = "I'm open to reasonable offers. What price did you have in mind?"


def _as_price(value: float) -> int | float:
    """Whole-dollar prices as int so replies and JSON read "$60", not "$60.0"."""
    return int(value) if float(value).is_integer() else value


def _within(value: float, floor: float, target: float) -> int | float:
    """Clamp a rounded counter into [floor, target]."""
    return _as_price(min(max(value, floor), target))


def decide_offer(offer_price: int, context: SellerContext) -> OfferDecision:
    """
    Apply the seller's pricing policy to a buyer offer.

    one_day:              offer >= floor  -> accept, else counter at floor
    one_week / one_month: offer >= target -> accept
                          floor <= offer  -> counter halfway to target
                          offer < floor   -> counter at target (one_month)
                                             or halfway floor-to-target

    Floor and target counters are exact; halfway counters are rounded
    half-up and then clamped into [floor, target].
    """
    target = context.target_price
    floor = context.floor_price

    if context.sell_time_frame == SellTimeFrame.ONE_DAY:
        if offer_price >= floor:
            return OfferDecision(action=DraftAction.ACCEPT, offer_price=offer_price)
        return OfferDecision(
            action=DraftAction.COUNTER,
            offer_price=offer_price,
            counter_price=_as_price(floor)
        )

    if offer_price >= target:
        return OfferDecision(action=DraftAction.ACCEPT, offer_price=offer_price)

    if offer_price >= floor:
        counter = _within(round_half_up((offer_price + target) / 2), floor, target)
    elif context.sell_time_frame == SellTimeFrame.ONE_MONTH:
        counter = _as_price(target)
    else:
        counter = _within(round_half_up((floor + target) / 2), floor, target)

    return OfferDecision(action=DraftAction.COUNTER, offer_price=offer_price, counter_price=counter)


def default_proposed_times(now: datetime, grid_minutes: int = 30) -> tuple[datetime, datetime]:
    """Two fallback meetup times: next grid boundary + 2h, then 45 minutes later."""
    first = ceil_to_grid(now, grid_minutes) + timedelta(hours=2)
    return first, first + timedelta(minutes=45)


class RuleBasedNegotiator:
    """Deterministic negotiation strategy."""

    def __init__(self, clock: Clock = utc_now, tz: tzinfo = timezone.utc):
        """
        Args:
            clock: Source of "now" for default meetup times
            tz: Seller timezone used when times appear in reply text
        """
        self.clock = clock
        self.tz = tz
        self._handlers: dict[Intent, Callable[[Classification, SellerContext], DraftReply]] = {
            Intent.AVAILABILITY_CHECK: self._availability,
            Intent.OFFER: self._offer,
            Intent.SCAM_RISK: self._scam,
            Intent.SCHEDULE_PROPOSAL: self._schedule,
            Intent.QUESTION: self._acknowledge,
            Intent.LOWBALL: self._acknowledge,
            Intent.BUNDLE_INTEREST: self._acknowledge,
            Intent.CONFIRM_MEET: self._acknowledge,
        }
        missing = set(Intent) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No rule handler for intents: {sorted(i.value for i in missing)}")

    def draft(self, classification: Classification, context: SellerContext) -> DraftReply:
        """Draft a reply for a classified message."""
        reply = self._handlers[classification.intent](classification, context)
        logger.debug(f"Rule draft for {classification.intent.value}: action={reply.action}")
        return reply

    def _format_time(self, value: datetime) -> str:
        return value.astimezone(self.tz).strftime("%I:%M %p").lstrip("0")

    def _availability(self, classification: Classification, context: SellerContext) -> DraftReply:
        return DraftReply(
            text="Yes it is.",
            action=DraftAction.SCHEDULE_PROPOSAL,
            proposed_times=default_proposed_times(self.clock()),
            meet_spot=context.meeting_location,
        )

    def _schedule(self, classification: Classification, context: SellerContext) -> DraftReply:
        times = default_proposed_times(self.clock())
        first, second = (self._format_time(t) for t in times)
        return DraftReply(
            text=(
                f"Great! I have some availability coming up. Would {first} or {second} "
                f"work for you? We can meet at {context.meeting_location or 'a convenient location'}."
            ),
            action=DraftAction.SCHEDULE_PROPOSAL,
            proposed_times=times,
            meet_spot=context.meeting_location,
        )

    def _scam(self, classification: Classification, context: SellerContext) -> DraftReply:
        return DraftReply(
            text=SCAM_DECLINE_TEXT,
            action=DraftAction.DECLINE,
            require_human_click=True,
            safety_note=SCAM_SAFETY_NOTE,
        )

    def _acknowledge(self, classification: Classification, context: SellerContext) -> DraftReply:
        return DraftReply(text=GENERIC_ACK_TEXT, require_human_click=True)

    def _offer(self, classification: Classification, context: SellerContext) -> DraftReply:
        if classification.offer_price is None:
            return DraftReply(text=ASK_FOR_PRICE_TEXT, require_human_click=True)

        decision = decide_offer(classification.offer_price, context)
        return self.draft_for_decision(decision, context)

    def draft_for_decision(self, decision: OfferDecision, context: SellerContext) -> DraftReply:
        """Render buyer-facing text for a pricing decision."""
        offer = format_price(decision.offer_price)

        if decision.action == DraftAction.ACCEPT:
            if context.sell_time_frame == SellTimeFrame.ONE_DAY:
                text = "That works for me! When would be good to meet up?"
            else:
                text = "That sounds reasonable! When would be a good time to meet up?"
            return DraftReply(
                text=text,
                action=DraftAction.ACCEPT,
                meet_spot=context.meeting_location,
                scheduling_requested=True,
            )

        counter = format_price(decision.counter_price)
        if context.sell_time_frame == SellTimeFrame.ONE_DAY:
            text = f"I can't do {offer}, but I could do {counter} for a quick sale today."
        elif decision.offer_price >= context.floor_price:
            text = f"I can't do {offer}, but I could do {counter}."
        else:
            text = (
                f"Thanks for the offer! I'm looking for something closer to "
                f"{format_price(context.target_price)}. Would you be interested in meeting at {counter}?"
            )

        return DraftReply(
            text=text,
            action=DraftAction.COUNTER,
            counter_price=decision.counter_price,
            meet_spot=context.meeting_location,
        )
