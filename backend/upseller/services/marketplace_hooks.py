"""
Facebook Marketplace browser hooks (placeholders).

WHAT: Async stand-ins for browser automation against the Marketplace inbox
WHY: Shadow mode needs a seam where real automation will plug in
HOW: Log the intended action and remember which thread is open
"""

from collections import deque
from typing import Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_DRAFT_LOG = 50


class MarketplaceHooks:
    """Placeholder browser automation. Nothing is ever sent."""

    def __init__(self, max_drafts: int = MAX_DRAFT_LOG):
        """
        Args:
            max_drafts: How many recent shadow drafts to keep for inspection
        """
        self.open_thread: Optional[str] = None
        self.drafted: deque[str] = deque(maxlen=max_drafts)

    async def ensure_facebook_session(self) -> None:
        logger.info("[PLACEHOLDER] Ensuring Facebook session is active")

    async def open_listing_inbox_thread(self, listing_url_or_id: str) -> None:
        logger.info(f"[PLACEHOLDER] Opening listing inbox thread: {listing_url_or_id}")
        self.open_thread = listing_url_or_id

    async def verify_correct_thread(self, expected_listing_id: str) -> bool:
        """Check the compose box belongs to the listing we are replying about."""
        ok = self.open_thread == expected_listing_id
        if not ok:
            logger.warning(
                f"[PLACEHOLDER] Open thread {self.open_thread!r} is not listing {expected_listing_id!r}"
            )
        return ok

    async def draft_reply(self, text: str) -> None:
        """
        Type text into the compose box without sending it.

        A human must review the draft and click Send.
        """
        logger.info(f"[PLACEHOLDER] Drafting reply in compose box: {text!r}")
        self.drafted.append(text)
        logger.info("[SHADOW MODE] Reply drafted; human must click Send")
