"""
Unit tests for the rule-based negotiation strategy.

WHAT: Test offer policy, intent handlers and dispatch completeness
WHY: Rules are the authoritative pricing policy and the LLM fallback
HOW: Direct calls with a fixed clock, scenario and property checks
"""

from datetime import datetime, timezone

import pytest

from upseller.models.domain import (
    Classification,
    DraftAction,
    Intent,
    SellerContext,
    SellTimeFrame,
)
from upseller.services.classifier import classify
from upseller.services.negotiation_rules import (
    ASK_FOR_PRICE_TEXT,
    RuleBasedNegotiator,
    decide_offer,
    default_proposed_times,
)
from tests.conftest import FIXED_NOW, fixed_clock


def context_for(time_frame: SellTimeFrame, target: float = 75, floor: float = 60) -> SellerContext:
    return SellerContext(
        target_price=target,
        floor_price=floor,
        sell_time_frame=time_frame,
        meeting_location="Provo Police Department Lobby",
    )


@pytest.fixture
def negotiator():
    return RuleBasedNegotiator(clock=fixed_clock)


@pytest.mark.unit
class TestScenarios:
    """End-to-end rule scenarios from classified text."""

    def test_availability_proposes_two_times(self, negotiator, week_context):
        draft = negotiator.draft(classify("Is this still available?"), week_context)

        assert draft.text == "Yes it is."
        assert draft.action == DraftAction.SCHEDULE_PROPOSAL
        assert len(draft.proposed_times) == 2
        assert draft.meet_spot == "Provo Police Department Lobby"

    def test_lowball_counters_between_floor_and_target(self, negotiator, week_context):
        draft = negotiator.draft(classify("I'll offer $50"), week_context)

        assert draft.action == DraftAction.COUNTER
        assert draft.counter_price == 68  # round_half_up((60 + 75) / 2)
        assert "$60" not in draft.text

    def test_offer_above_target_is_accepted(self, negotiator, week_context):
        draft = negotiator.draft(classify("$80"), week_context)

        assert draft.action == DraftAction.ACCEPT
        assert draft.scheduling_requested is True
        assert draft.needs_slots is True
        assert draft.meet_spot == week_context.meeting_location

    def test_scam_requires_human_click(self, negotiator, week_context):
        draft = negotiator.draft(classify("Send me the verification code please"), week_context)

        assert draft.action == DraftAction.DECLINE
        assert draft.require_human_click is True
        assert draft.safety_note


@pytest.mark.unit
class TestOfferPolicy:
    """Property checks over the pricing policy."""

    @pytest.mark.parametrize("offer", range(60, 200, 7))
    def test_one_day_accepts_at_or_above_floor(self, offer):
        decision = decide_offer(offer, context_for(SellTimeFrame.ONE_DAY))
        assert decision.action == DraftAction.ACCEPT

    @pytest.mark.parametrize("offer", range(0, 60, 7))
    def test_one_day_counters_at_floor_below_floor(self, offer):
        decision = decide_offer(offer, context_for(SellTimeFrame.ONE_DAY))
        assert decision.action == DraftAction.COUNTER
        assert decision.counter_price == 60

    @pytest.mark.parametrize("time_frame", [SellTimeFrame.ONE_WEEK, SellTimeFrame.ONE_MONTH])
    @pytest.mark.parametrize("offer", range(60, 75))
    def test_counter_is_midpoint_and_within_bounds(self, time_frame, offer):
        decision = decide_offer(offer, context_for(time_frame))
        assert decision.action == DraftAction.COUNTER
        assert decision.counter_price == int((offer + 75) / 2 + 0.5)
        assert 60 <= decision.counter_price <= 75

    def test_one_month_below_floor_counters_at_target(self):
        decision = decide_offer(40, context_for(SellTimeFrame.ONE_MONTH))
        assert decision.counter_price == 75

    def test_half_rounds_up(self):
        # (66 + 75) / 2 = 70.5
        assert decide_offer(66, context_for(SellTimeFrame.ONE_WEEK)).counter_price == 71

    def test_one_day_counter_is_exact_fractional_floor(self):
        decision = decide_offer(50, context_for(SellTimeFrame.ONE_DAY, target=75.5, floor=60.4))
        assert decision.counter_price == 60.4

    def test_one_month_lowball_is_exact_fractional_target(self):
        decision = decide_offer(40, context_for(SellTimeFrame.ONE_MONTH, target=75.5, floor=60))
        assert decision.counter_price == 75.5

    @pytest.mark.parametrize("time_frame", [SellTimeFrame.ONE_WEEK, SellTimeFrame.ONE_MONTH])
    @pytest.mark.parametrize("offer", [0, 40, 60])
    def test_fractional_prices_keep_counter_in_bounds(self, time_frame, offer):
        # floor 60.6, target 60.8: the rounded midpoint (61) is above target
        context = context_for(time_frame, target=60.8, floor=60.6)

        decision = decide_offer(offer, context)

        assert decision.action == DraftAction.COUNTER
        assert 60.6 <= decision.counter_price <= 60.8

    def test_whole_dollar_prices_stay_ints(self):
        decision = decide_offer(40, context_for(SellTimeFrame.ONE_DAY, target=75.0, floor=60.0))
        assert decision.counter_price == 60
        assert isinstance(decision.counter_price, int)

    def test_fractional_counter_text(self, negotiator):
        draft = negotiator.draft(classify("$40?"), context_for(SellTimeFrame.ONE_DAY, floor=60.5))
        assert "$60.50" in draft.text

    def test_offer_without_price_asks_for_one(self, negotiator, week_context):
        draft = negotiator.draft(Classification(intent=Intent.OFFER), week_context)
        assert draft.text == ASK_FOR_PRICE_TEXT
        assert draft.require_human_click is True
        assert draft.action is None

    def test_one_day_counter_text_mentions_quick_sale(self, negotiator):
        draft = negotiator.draft(classify("$40?"), context_for(SellTimeFrame.ONE_DAY))
        assert draft.counter_price == 60
        assert "quick sale today" in draft.text


@pytest.mark.unit
class TestDispatch:

    def test_every_intent_has_a_handler(self, negotiator, week_context):
        for intent in Intent:
            draft = negotiator.draft(Classification(intent=intent), week_context)
            assert draft.text

    @pytest.mark.parametrize(
        "intent",
        [Intent.QUESTION, Intent.LOWBALL, Intent.BUNDLE_INTEREST, Intent.CONFIRM_MEET],
    )
    def test_other_intents_get_acknowledgement(self, negotiator, week_context, intent):
        draft = negotiator.draft(Classification(intent=intent), week_context)
        assert draft.require_human_click is True
        assert draft.action is None

    def test_schedule_reply_lists_times(self, negotiator, week_context):
        draft = negotiator.draft(Classification(intent=Intent.SCHEDULE_PROPOSAL), week_context)
        assert draft.action == DraftAction.SCHEDULE_PROPOSAL
        assert "10:00 AM" in draft.text and "10:45 AM" in draft.text


@pytest.mark.unit
class TestDefaultTimes:

    def test_times_follow_next_half_hour(self):
        first, second = default_proposed_times(datetime(2025, 1, 1, 8, 10, tzinfo=timezone.utc))
        assert first == datetime(2025, 1, 1, 10, 30, tzinfo=timezone.utc)
        assert second == datetime(2025, 1, 1, 11, 15, tzinfo=timezone.utc)

    def test_aligned_now_is_kept(self):
        first, _ = default_proposed_times(FIXED_NOW)
        assert first == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
