"""
Buyer message intent classifier.

WHAT: Map raw buyer text to an Intent plus extracted fields
WHY: The negotiation engine dispatches on intent
HOW: Keyword rules applied in a fixed precedence order

Keyword sets overlap ("$50, can we meet tonight?" hits both the offer and
the scheduling rules), so the first matching rule wins:

1. scam / safety   -> scam_risk (flag "potential_scam")
2. price / offer   -> offer (first "$<integer>" becomes offer_price)
3. scheduling      -> schedule_proposal
4. availability    -> availability_check
5. anything else   -> question

The classifier is total: it never raises, unmatched text is a question.
"""

import re

from ..models.domain import Classification, Intent
from ..utils.offers import first_dollar_amount
from ..utils.timeutils import parse_iso

SCAM_FLAG = "potential_scam"

SCAM_KEYWORDS = (
    "verification",
    "code",
    "scam",
    "gift card",
    "wire transfer",
    "zelle",
    "cashier's check",
    "shipping agent",
)
OFFER_KEYWORDS = ("offer", "pay")
SCHEDULE_KEYWORDS = ("when", "meet", "time", "pick up", "pickup", "tonight", "tomorrow")
AVAILABILITY_KEYWORDS = ("available", "still", "sold")

_ISO_TIMESTAMP = re.compile(
    r'\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:\d{2})?'
)
_SENTENCE_SPLIT = re.compile(r'(?<=[.!?])\s+')


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern:
    # Word-start match so "meeting" hits "meet" but "decode" misses "code"
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b(?:{alternatives})", re.IGNORECASE)


_SCAM = _keyword_pattern(SCAM_KEYWORDS)
_OFFER = _keyword_pattern(OFFER_KEYWORDS)
_SCHEDULE = _keyword_pattern(SCHEDULE_KEYWORDS)
_AVAILABILITY = _keyword_pattern(AVAILABILITY_KEYWORDS)


def classify(text: str) -> Classification:
    """
    Classify a buyer message.

    Args:
        text: Raw buyer message text

    Returns:
        Classification with intent and any extracted fields
    """
    text = text or ""
    questions = extract_questions(text)
    proposed_time = extract_proposed_time(text)

    if _SCAM.search(text):
        return Classification(
            intent=Intent.SCAM_RISK,
            questions=questions,
            flags=(SCAM_FLAG,),
        )

    if "$" in text or _OFFER.search(text):
        return Classification(
            intent=Intent.OFFER,
            offer_price=first_dollar_amount(text),
            proposed_time=proposed_time,
            questions=questions,
        )

    if _SCHEDULE.search(text) or proposed_time is not None:
        return Classification(
            intent=Intent.SCHEDULE_PROPOSAL,
            proposed_time=proposed_time,
            questions=questions,
        )

    if _AVAILABILITY.search(text):
        return Classification(intent=Intent.AVAILABILITY_CHECK, questions=questions)

    return Classification(intent=Intent.QUESTION, questions=questions)


def extract_questions(text: str) -> tuple[str, ...]:
    """Return the sentences of text that end with a question mark."""
    sentences = _SENTENCE_SPLIT.split(text.strip())
    return tuple(s.strip() for s in sentences if s.strip().endswith("?"))


def extract_proposed_time(text: str):
    """Return the first explicit ISO-8601 timestamp in text, if it parses."""
    match = _ISO_TIMESTAMP.search(text)
    if not match:
        return None
    try:
        return parse_iso(match.group(0))
    except ValueError:
        return None
