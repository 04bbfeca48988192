"""
Unit tests for the Marketplace browser hooks.

WHAT: Test thread verification and the bounded draft log
WHY: Shadow drafts must land in the right thread and not grow forever
HOW: Direct calls on MarketplaceHooks
"""

import pytest

from upseller.services.marketplace_hooks import MarketplaceHooks


@pytest.mark.unit
class TestMarketplaceHooks:

    @pytest.mark.asyncio
    async def test_verifies_opened_thread(self):
        hooks = MarketplaceHooks()
        await hooks.open_listing_inbox_thread("listing-1")

        assert await hooks.verify_correct_thread("listing-1") is True
        assert await hooks.verify_correct_thread("listing-2") is False

    @pytest.mark.asyncio
    async def test_nothing_open_fails_verification(self):
        assert await MarketplaceHooks().verify_correct_thread("listing-1") is False

    @pytest.mark.asyncio
    async def test_draft_log_keeps_most_recent(self):
        hooks = MarketplaceHooks(max_drafts=2)

        for text in ("one", "two", "three"):
            await hooks.draft_reply(text)

        assert list(hooks.drafted) == ["two", "three"]
