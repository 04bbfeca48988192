"""
LLM-backed seller assistant agent.

WHAT: Drafts negotiation replies through a text-generation provider
WHY: More natural replies than the fixed rule templates
HOW: Render prompt, call provider under a timeout, parse the scheduling
     directive, check the draft against the pricing policy
"""

import asyncio
from typing import Optional, Sequence

from ..llm.provider import LLMProvider
from ..llm.types import ProviderError
from ..models.domain import (
    BuyerMessage,
    Classification,
    DraftAction,
    DraftReply,
    SellerContext,
)
from ..models.negotiation import OfferDecision, StrategyOutcome
from ..utils.offers import extract_dollar_amounts
from .prompts import estimate_tokens, extract_scheduling_directive, render_negotiation_messages
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SellerAgent:
    """Seller assistant that drafts replies with an LLM."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        timeout: float = 20.0,
        temperature: float = 0.7,
        max_tokens: int = 500,
        history_limit: int = 10
    ):
        """
        Initialize seller agent.

        Args:
            provider: LLM provider instance
            timeout: Ceiling in seconds for one generate call, retries included
            temperature: LLM temperature
            max_tokens: Maximum tokens to generate
            history_limit: Maximum prior messages rendered into the prompt
        """
        self.provider = provider
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.history_limit = history_limit

    async def draft(
        self,
        message: BuyerMessage,
        classification: Classification,
        context: SellerContext,
        history: Sequence[BuyerMessage],
        decision: Optional[OfferDecision] = None
    ) -> StrategyOutcome:
        """
        Draft a reply for the current buyer message.

        Never raises: every collaborator problem becomes a failed outcome.

        Args:
            message: Current buyer message
            classification: Classifier output for the message
            context: Seller negotiation context
            history: Prior buyer messages, oldest first, excluding message
            decision: Authoritative pricing decision when the message is an offer

        Returns:
            StrategyOutcome holding a draft or a CollaboratorError
        """
        messages = render_negotiation_messages(
            context,
            history,
            message,
            policy_hint=decision.as_hint() if decision else None,
            max_messages=self.history_limit,
        )
        logger.info(
            f"LLM draft request for {message.listing_id}/{message.buyer_id} "
            f"(messages: {len(messages)}, estimated tokens: {estimate_tokens(messages)})"
        )

        try:
            result = await asyncio.wait_for(
                self.provider.generate(
                    messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return StrategyOutcome.failed("timeout", f"no response within {self.timeout}s")
        except ProviderError as e:
            return StrategyOutcome.failed(e.fallback_reason, str(e))
        except Exception as e:
            logger.error(f"Unexpected LLM provider failure: {e}", exc_info=True)
            return StrategyOutcome.failed("error", str(e))

        text, scheduling_requested = extract_scheduling_directive(result.text)
        if not text:
            return StrategyOutcome.failed("empty", "provider returned no usable text")

        violation = self._policy_violation(text, classification, context, decision, scheduling_requested)
        if violation:
            return StrategyOutcome.failed("policy_violation", violation)

        return StrategyOutcome.ok(self._build_draft(text, context, decision, scheduling_requested))

    def _build_draft(
        self,
        text: str,
        context: SellerContext,
        decision: Optional[OfferDecision],
        scheduling_requested: bool
    ) -> DraftReply:
        if decision is not None and decision.action == DraftAction.ACCEPT:
            return DraftReply(
                text=text,
                action=DraftAction.ACCEPT,
                meet_spot=context.meeting_location,
                scheduling_requested=True,
                strategy="llm",
            )
        if decision is not None:
            return DraftReply(
                text=text,
                action=DraftAction.COUNTER,
                counter_price=decision.counter_price,
                meet_spot=context.meeting_location,
                strategy="llm",
            )
        if scheduling_requested:
            return DraftReply(
                text=text,
                action=DraftAction.SCHEDULE_PROPOSAL,
                meet_spot=context.meeting_location,
                scheduling_requested=True,
                strategy="llm",
            )
        return DraftReply(text=text, meet_spot=context.meeting_location, strategy="llm")

    @staticmethod
    def _policy_violation(
        text: str,
        classification: Classification,
        context: SellerContext,
        decision: Optional[OfferDecision],
        scheduling_requested: bool
    ) -> Optional[str]:
        """Return a description of how text breaks the pricing policy, if it does."""
        quoted = [
            amount for amount in extract_dollar_amounts(text)
            if amount != classification.offer_price
        ]
        below_floor = [amount for amount in quoted if amount < context.floor_price]
        if below_floor:
            return f"quoted ${below_floor[0]} below the floor price"

        if decision is not None and decision.action == DraftAction.COUNTER:
            if scheduling_requested:
                return "tried to schedule a meetup while the policy says counter"
            if quoted and decision.counter_price not in quoted:
                return f"quoted ${quoted[0]} instead of the ${decision.counter_price} counter"

        return None
