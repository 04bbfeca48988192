"""
Price parsing and rounding utilities.

WHAT: Pull dollar amounts out of buyer or LLM text
WHY: Offers arrive as free text ("$50 cash now?")
HOW: Regex over "$<integer>" tokens, half-up rounding for counters
"""

import math
import re

_DOLLAR_PATTERN = re.compile(r'\$(\d+)')


def extract_dollar_amounts(text: str) -> list[int]:
    """
    Return every "$<integer>" amount in text, in order of appearance.

    Cents and thousands separators are not interpreted: "$1,200" yields 1.
    """
    if not text:
        return []
    return [int(match) for match in _DOLLAR_PATTERN.findall(text)]


def first_dollar_amount(text: str) -> int | None:
    """Return the first "$<integer>" amount in text, or None."""
    match = _DOLLAR_PATTERN.search(text or "")
    return int(match.group(1)) if match else None


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (67.5 -> 68, 66.5 -> 67)."""
    return int(math.floor(value + 0.5))


def format_price(value: float) -> str:
    """Format a price for buyer-facing text ($75, $62.50)."""
    if float(value).is_integer():
        return f"${int(value)}"
    return f"${value:.2f}"
