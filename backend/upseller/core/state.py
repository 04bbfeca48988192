"""
Application state container.

WHAT: Every piece of mutable in-memory state plus the wired services
WHY: One explicit object instead of module globals; tests build their own
HOW: build_app_state() reads settings once and wires collaborators
"""

from dataclasses import dataclass, field
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from datetime import timezone, tzinfo

from .config import Settings, settings as default_settings
from ..agents.seller_agent import SellerAgent
from ..calendar_api.factory import build_calendar_provider
from ..calendar_api.provider import CalendarProvider
from ..llm.provider import LLMProvider
from ..models.domain import Listing, Mode, SellTimeFrame
from ..services.appointment_service import AppointmentBook, AppointmentConfirmer
from ..services.conversation_store import ConversationStore
from ..services.marketplace_hooks import MarketplaceHooks
from ..services.negotiation_engine import NegotiationEngine
from ..services.negotiation_rules import RuleBasedNegotiator
from ..services.orchestrator import Orchestrator
from ..services.slot_suggester import SlotSuggestionService
from ..utils.exceptions import InvalidModeException
from ..utils.timeutils import Clock, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

VALID_MODES = ("mock", "shadow")

_FROM_CONFIG: Any = object()

DEMO_THREADS = [
    {
        "id": "buyer-1",
        "name": "Alex Chen",
        "lastMessage": "Is this still available?",
        "timestamp": "2025-08-16T20:30:00Z",
        "messages": [
            {
                "id": "msg-1",
                "listingId": "listing-1",
                "buyerId": "buyer-1",
                "text": "Is this still available?",
                "ts": "2025-08-16T20:30:00Z",
                "source": "mock",
            },
        ],
    },
    {
        "id": "buyer-2",
        "name": "Sarah Johnson",
        "lastMessage": "$50 cash now?",
        "timestamp": "2025-08-16T19:45:00Z",
        "messages": [
            {
                "id": "msg-2",
                "listingId": "listing-1",
                "buyerId": "buyer-2",
                "text": "$50 cash now?",
                "ts": "2025-08-16T19:45:00Z",
                "source": "mock",
            },
        ],
    },
    {
        "id": "buyer-3",
        "name": "Mike Rodriguez",
        "lastMessage": "I'll send you a verification code first...",
        "timestamp": "2025-08-16T18:15:00Z",
        "messages": [
            {
                "id": "msg-3",
                "listingId": "listing-1",
                "buyerId": "buyer-3",
                "text": "I'll send you a verification code first...",
                "ts": "2025-08-16T18:15:00Z",
                "source": "mock",
            },
        ],
    },
]


@dataclass
class AppState:
    """Process-wide state, attached to app.state.upseller."""
    config: Settings
    listings: dict[str, Listing]
    store: ConversationStore
    appointments: AppointmentBook
    calendar: CalendarProvider
    slots: SlotSuggestionService
    confirmer: AppointmentConfirmer
    engine: NegotiationEngine
    hooks: MarketplaceHooks
    orchestrator: Orchestrator
    llm_provider: Optional[LLMProvider] = None
    mode: Mode = "mock"
    demo_threads: list[dict] = field(default_factory=lambda: [dict(t) for t in DEMO_THREADS])

    def set_mode(self, mode: str) -> Mode:
        """
        Switch operating mode.

        Raises:
            InvalidModeException: mode is not "mock" or "shadow"
        """
        if mode not in VALID_MODES:
            raise InvalidModeException(str(mode))
        if mode != self.mode:
            logger.info(f"Mode changed: {self.mode} -> {mode}")
        self.mode = mode
        return self.mode

    def add_listing(self, listing: Listing) -> Listing:
        """Store a listing, replacing any listing with the same id."""
        if listing.id in self.listings:
            logger.info(f"Replacing listing {listing.id}")
        self.listings[listing.id] = listing
        return listing


def _resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}; using UTC")
        return timezone.utc


def build_app_state(
    config: Settings = default_settings,
    *,
    llm_provider: Optional[LLMProvider] = _FROM_CONFIG,
    calendar: Optional[CalendarProvider] = None,
    clock: Clock = utc_now,
    hooks: Optional[MarketplaceHooks] = None
) -> AppState:
    """
    Wire every service from settings.

    Args:
        config: Settings to read
        llm_provider: Explicit provider (None for rules only); default resolves from config
        calendar: Explicit calendar backend; default built from config
        clock: Source of "now" for scheduling
        hooks: Marketplace hooks; default placeholders without latency
    """
    if llm_provider is _FROM_CONFIG:
        from ..llm.provider_factory import get_provider
        llm_provider = get_provider()

    listings: dict[str, Listing] = {}
    book = AppointmentBook()
    calendar = calendar or build_calendar_provider(book.all, config)
    store = ConversationStore(limit=config.CONVERSATION_HISTORY_LIMIT)
    hooks = hooks or MarketplaceHooks()

    slots = SlotSuggestionService(
        calendar,
        clock=clock,
        grid_minutes=config.SLOT_GRID_MINUTES,
        lead_minutes=config.SLOT_LEAD_MINUTES,
        timeout=config.CALENDAR_TIMEOUT_SECONDS,
    )
    confirmer = AppointmentConfirmer(book, calendar, timeout=config.CALENDAR_TIMEOUT_SECONDS)

    agent = None
    if llm_provider is not None:
        agent = SellerAgent(
            llm_provider,
            timeout=config.LLM_TIMEOUT_SECONDS,
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_TOKENS,
            history_limit=config.CONVERSATION_HISTORY_LIMIT,
        )
    rules = RuleBasedNegotiator(clock=clock, tz=_resolve_timezone(config.TIMEZONE))
    engine = NegotiationEngine(rules, agent)

    sell_time_frame = SellTimeFrame.parse(config.DEFAULT_SELL_TIMEFRAME, SellTimeFrame.ONE_WEEK)
    orchestrator = Orchestrator(
        store=store,
        engine=engine,
        slots=slots,
        hooks=hooks,
        listings=listings,
        sell_time_frame=sell_time_frame,
        meet_spots=config.get_default_meet_spots(),
        default_target_price=config.DEFAULT_TARGET_PRICE,
        default_floor_price=config.DEFAULT_FLOOR_PRICE,
        window_count=config.SLOT_WINDOW_COUNT,
        duration_minutes=config.SLOT_DURATION_MINUTES,
    )

    logger.info(
        f"App state ready (mode: {config.DEFAULT_MODE}, "
        f"negotiation: {'llm+rules' if engine.uses_llm else 'rules'}, "
        f"calendar: {getattr(calendar, 'name', type(calendar).__name__)})"
    )
    return AppState(
        config=config,
        listings=listings,
        store=store,
        appointments=book,
        calendar=calendar,
        slots=slots,
        confirmer=confirmer,
        engine=engine,
        hooks=hooks,
        orchestrator=orchestrator,
        llm_provider=llm_provider,
        mode=config.DEFAULT_MODE,
    )
