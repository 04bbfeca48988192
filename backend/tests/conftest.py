"""
Pytest configuration and shared fixtures for backend tests.

WHAT: Centralized test configuration with markers
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers, fixtures, and test helpers
"""

from datetime import datetime, timezone

import pytest

from upseller.core.config import Settings
from upseller.core.state import build_app_state
from upseller.llm.provider_factory import reset_provider
from upseller.models.domain import BuyerMessage, Listing, SellerContext, SellTimeFrame

# 2025-01-01 08:00 UTC, two hours before the sample availability window
FIXED_NOW = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )


@pytest.fixture(autouse=True)
def reset_provider_singleton():
    """
    Reset provider singleton before each test.

    WHAT: Clear provider cache between tests
    WHY: Prevent test pollution and ensure clean state
    HOW: Call reset_provider() before and after each test
    """
    reset_provider()
    yield
    reset_provider()


@pytest.fixture
def test_settings(tmp_path):
    """
    Settings isolated from .env and the working directory.

    Rule-based negotiation and the local calendar writing into tmp_path.
    """
    return Settings(
        _env_file=None,
        LLM_PROVIDER="none",
        CALENDAR_PROVIDER="local",
        ICS_DIR=str(tmp_path / "ics"),
        LOG_FILE=str(tmp_path / "logs" / "app.log"),
        DEFAULT_MODE="mock",
    )


@pytest.fixture
def app_state(test_settings):
    """AppState with rules only, local calendar and a fixed clock."""
    return build_app_state(test_settings, llm_provider=None, clock=fixed_clock)


@pytest.fixture
def bike_listing() -> Listing:
    return Listing(
        id="listing-1",
        title="Road bike",
        list_price=75,
        min_price=60,
        location_city="Provo",
        meet_spots=["Provo Police Department Lobby"],
        availability=["2025-01-01T10:00:00Z/2025-01-01T12:00:00Z"],
        description="Lightly used road bike, 54cm frame",
        condition="good",
    )


@pytest.fixture
def week_context() -> SellerContext:
    return SellerContext(
        target_price=75,
        floor_price=60,
        sell_time_frame=SellTimeFrame.ONE_WEEK,
        meeting_location="Provo Police Department Lobby",
        seller_name="Jordan",
    )


def make_message(text: str, *, msg_id: str = "msg-1", listing_id: str = "listing-1", buyer_id: str = "buyer-1") -> BuyerMessage:
    """Build a BuyerMessage with fixed metadata."""
    return BuyerMessage(
        id=msg_id,
        listing_id=listing_id,
        buyer_id=buyer_id,
        text=text,
        timestamp=FIXED_NOW,
    )


# Test data constants
MOCK_LLM_RESPONSE = {
    "choices": [{"message": {"content": "Yes it is. Want to come see it?"}}],
    "usage": {"prompt_tokens": 10, "completion_tokens": 8, "total_tokens": 18},
    "model": "test-model"
}

MOCK_MODELS_RESPONSE = {
    "data": [
        {"id": "model-1", "object": "model"},
        {"id": "model-2", "object": "model"}
    ]
}
