"""
Negotiation engine.

WHAT: Produce a DraftReply for a classified buyer message
WHY: Single entry point over the LLM and rule strategies
HOW: Try the LLM agent when configured, fall back to rules via or_else
"""

from dataclasses import replace
from typing import Optional, Sequence

from ..agents.seller_agent import SellerAgent
from ..models.domain import BuyerMessage, Classification, DraftReply, Intent, SellerContext
from ..models.negotiation import CollaboratorError, OfferDecision
from .negotiation_rules import RuleBasedNegotiator, decide_offer
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Intents answered by rules even when an LLM is configured
RULES_ONLY_INTENTS = frozenset({Intent.SCAM_RISK})


class NegotiationEngine:
    """Chooses between LLM drafting and deterministic rules."""

    def __init__(self, rules: RuleBasedNegotiator, llm_agent: Optional[SellerAgent] = None):
        self.rules = rules
        self.llm_agent = llm_agent
        self.fallback_count = 0

    @property
    def uses_llm(self) -> bool:
        return self.llm_agent is not None

    async def negotiate(
        self,
        message: BuyerMessage,
        classification: Classification,
        context: SellerContext,
        history: Sequence[BuyerMessage]
    ) -> DraftReply:
        """
        Draft a reply.

        Args:
            message: Current buyer message
            classification: Classifier output for message
            context: Seller negotiation context
            history: Prior messages for the conversation, excluding message

        Returns:
            DraftReply (never raises for collaborator failures)
        """
        if self.llm_agent is None or classification.intent in RULES_ONLY_INTENTS:
            return self.rules.draft(classification, context)

        decision: Optional[OfferDecision] = None
        if classification.intent == Intent.OFFER and classification.offer_price is not None:
            decision = decide_offer(classification.offer_price, context)

        outcome = await self.llm_agent.draft(message, classification, context, history, decision)
        return outcome.or_else(
            lambda error: self._fallback(error, message, classification, context)
        )

    def _fallback(
        self,
        error: CollaboratorError,
        message: BuyerMessage,
        classification: Classification,
        context: SellerContext
    ) -> DraftReply:
        self.fallback_count += 1
        logger.warning(
            f"LLM draft unavailable for message {message.id} "
            f"({error.reason}: {error.detail}); using rule-based reply "
            f"(fallbacks so far: {self.fallback_count})"
        )
        return replace(self.rules.draft(classification, context), strategy="fallback")
