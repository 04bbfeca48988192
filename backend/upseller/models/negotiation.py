"""
Negotiation outcome models.

WHAT: Result types passed between negotiation strategies
WHY: Make the LLM-to-rules fallback explicit instead of exception-driven
HOW: Frozen dataclasses with an or_else combinator
"""

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from .domain import DraftAction, DraftReply
from ..utils.offers import format_price

FailureReason = Literal["timeout", "unavailable", "disabled", "empty", "error", "policy_violation"]


@dataclass(frozen=True)
class CollaboratorError:
    """Why the text-generation collaborator produced no usable draft."""
    reason: FailureReason
    detail: str = ""


@dataclass(frozen=True)
class StrategyOutcome:
    """Either a draft or a collaborator error, never both."""
    draft: Optional[DraftReply] = None
    error: Optional[CollaboratorError] = None

    @classmethod
    def ok(cls, draft: DraftReply) -> "StrategyOutcome":
        return cls(draft=draft)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str = "") -> "StrategyOutcome":
        return cls(error=CollaboratorError(reason=reason, detail=detail))

    @property
    def is_ok(self) -> bool:
        return self.draft is not None

    def or_else(self, fallback: Callable[[CollaboratorError], DraftReply]) -> DraftReply:
        """Return the draft, or the fallback's draft for the recorded error."""
        if self.draft is not None:
            return self.draft
        return fallback(self.error or CollaboratorError(reason="error"))


@dataclass(frozen=True)
class OfferDecision:
    """Deterministic pricing decision for a buyer offer."""
    action: DraftAction
    offer_price: int
    counter_price: Optional[int | float] = None

    def as_hint(self) -> str:
        """Instruction appended to the LLM system prompt."""
        if self.action == DraftAction.ACCEPT:
            return f"accept the buyer's offer of ${self.offer_price}."
        return f"decline ${self.offer_price} and counter at exactly {format_price(self.counter_price)}."
