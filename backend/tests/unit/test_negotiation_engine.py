"""
Unit tests for the negotiation engine and LLM seller agent.

WHAT: Test LLM drafting, policy enforcement and silent rule fallback
WHY: LLM output is untrusted; rules must take over on any failure
HOW: MockLLMProvider with scripted text, errors and delays
"""

import pytest

from upseller.agents.seller_agent import SellerAgent
from upseller.llm.types import (
    ProviderDisabledError,
    ProviderEmptyResponseError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from upseller.models.domain import DraftAction
from upseller.services.classifier import classify
from upseller.services.negotiation_engine import NegotiationEngine
from upseller.services.negotiation_rules import SCAM_DECLINE_TEXT, RuleBasedNegotiator
from tests.conftest import fixed_clock, make_message
from tests.fixtures.mock_llm import MockLLMProvider


def build_engine(provider=None, timeout: float = 5.0) -> NegotiationEngine:
    agent = SellerAgent(provider, timeout=timeout) if provider is not None else None
    return NegotiationEngine(RuleBasedNegotiator(clock=fixed_clock), agent)


async def negotiate(engine, text, context, history=()):
    message = make_message(text)
    return await engine.negotiate(message, classify(text), context, list(history))


@pytest.mark.unit
class TestRulesOnly:

    @pytest.mark.asyncio
    async def test_no_agent_uses_rules(self, week_context):
        engine = build_engine()
        draft = await negotiate(engine, "I'll offer $50", week_context)

        assert draft.strategy == "rules"
        assert draft.counter_price == 68

    @pytest.mark.asyncio
    async def test_scam_never_reaches_llm(self, week_context):
        provider = MockLLMProvider(responses=["Sure, send the code!"])
        engine = build_engine(provider)

        draft = await negotiate(engine, "I'll send you a verification code first", week_context)

        assert draft.text == SCAM_DECLINE_TEXT
        assert draft.require_human_click is True
        assert provider.calls == []


@pytest.mark.unit
class TestLLMDrafts:

    @pytest.mark.asyncio
    async def test_counter_uses_rule_price(self, week_context):
        provider = MockLLMProvider(responses=["I can't do $50, but I could do $68."])
        engine = build_engine(provider)

        draft = await negotiate(engine, "I'll offer $50", week_context)

        assert draft.strategy == "llm"
        assert draft.action == DraftAction.COUNTER
        assert draft.counter_price == 68
        assert draft.text == "I can't do $50, but I could do $68."

    @pytest.mark.asyncio
    async def test_policy_hint_reaches_system_prompt(self, week_context):
        provider = MockLLMProvider(responses=["I could do $68."])
        engine = build_engine(provider)

        await negotiate(engine, "I'll offer $50", week_context)

        system_prompt = provider.calls[0]["messages"][0]["content"]
        assert "counter at exactly $68" in system_prompt

    @pytest.mark.asyncio
    async def test_accept_with_sentinel_requests_scheduling(self, week_context):
        provider = MockLLMProvider(responses=["Sounds good. [INITIATE_SCHEDULING]"])
        engine = build_engine(provider)

        draft = await negotiate(engine, "$80", week_context)

        assert draft.text == "Sounds good."
        assert draft.action == DraftAction.ACCEPT
        assert draft.scheduling_requested is True
        assert draft.needs_slots is True

    @pytest.mark.asyncio
    async def test_sentinel_on_non_offer_becomes_schedule_proposal(self, week_context):
        provider = MockLLMProvider(responses=["Yes it is! Want to grab it today? [INITIATE_SCHEDULING]"])
        engine = build_engine(provider)

        draft = await negotiate(engine, "Is this still available?", week_context)

        assert draft.action == DraftAction.SCHEDULE_PROPOSAL
        assert draft.proposed_times is None
        assert "[INITIATE_SCHEDULING]" not in draft.text

    @pytest.mark.asyncio
    async def test_history_excludes_current_message(self, week_context):
        provider = MockLLMProvider(responses=["Yes it is."])
        engine = build_engine(provider)
        earlier = make_message("Hi there, nice bike", msg_id="msg-0")

        await engine.negotiate(
            make_message("Is this still available?"),
            classify("Is this still available?"),
            week_context,
            [earlier],
        )

        messages = provider.calls[0]["messages"]
        assert [m["role"] for m in messages] == ["system", "user", "user"]
        assert messages[-1]["content"] == "Is this still available?"


@pytest.mark.unit
class TestFallback:
    """Every LLM problem falls back to the rule draft."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "provider",
        [
            MockLLMProvider(should_fail=True),
            MockLLMProvider(error=ProviderTimeoutError("slow")),
            MockLLMProvider(error=ProviderUnavailableError("down")),
            MockLLMProvider(error=RuntimeError("boom")),
            MockLLMProvider(responses=[""]),
            MockLLMProvider(responses=["[INITIATE_SCHEDULING]"]),
        ],
        ids=["error", "timeout", "unavailable", "unexpected", "empty", "sentinel-only"],
    )
    async def test_failures_fall_back_to_rules(self, week_context, provider):
        engine = build_engine(provider)

        draft = await negotiate(engine, "I'll offer $50", week_context)

        assert draft.strategy == "fallback"
        assert draft.counter_price == 68
        assert engine.fallback_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, reason",
        [
            (ProviderTimeoutError("slow"), "timeout"),
            (ProviderUnavailableError("down"), "unavailable"),
            (ProviderDisabledError("no key"), "disabled"),
            (ProviderEmptyResponseError("blank"), "empty"),
            (ProviderResponseError("HTTP 500"), "error"),
        ],
    )
    async def test_provider_errors_name_fallback_reason(self, week_context, error, reason):
        agent = SellerAgent(MockLLMProvider(error=error))
        text = "Is this still available?"

        outcome = await agent.draft(make_message(text), classify(text), week_context, [])

        assert outcome.error.reason == reason
        assert outcome.error.detail == str(error)

    @pytest.mark.asyncio
    async def test_slow_provider_times_out(self, week_context):
        engine = build_engine(MockLLMProvider(responses=["too late"], delay=1.0), timeout=0.05)

        draft = await negotiate(engine, "Is this still available?", week_context)

        assert draft.strategy == "fallback"
        assert draft.text == "Yes it is."

    @pytest.mark.asyncio
    async def test_price_below_floor_is_rejected(self, week_context):
        engine = build_engine(MockLLMProvider(responses=["Honestly $55 works for me."]))

        draft = await negotiate(engine, "I'll offer $50", week_context)

        assert draft.strategy == "fallback"
        assert draft.counter_price == 68

    @pytest.mark.asyncio
    async def test_wrong_counter_is_rejected(self, week_context):
        engine = build_engine(MockLLMProvider(responses=["I could do $72."]))

        draft = await negotiate(engine, "I'll offer $50", week_context)

        assert draft.strategy == "fallback"

    @pytest.mark.asyncio
    async def test_scheduling_during_counter_is_rejected(self, week_context):
        engine = build_engine(MockLLMProvider(responses=["Deal! [INITIATE_SCHEDULING]"]))

        draft = await negotiate(engine, "I'll offer $50", week_context)

        assert draft.strategy == "fallback"
        assert draft.action == DraftAction.COUNTER
