"""
Master endpoints.

WHAT: Listing intake, inbound message processing, mode control, demo threads
WHY: Entry point the web UI talks to
HOW: FastAPI router over AppState and the orchestrator
"""

from fastapi import APIRouter, Depends

from ...deps import get_state
from ....core.state import AppState
from ....models.api_schemas import (
    DraftReplySchema,
    IngestMessageRequest,
    ListingSchema,
    ModeRequest,
    ModeResponse,
)
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/ingest/listing")
async def ingest_listing(request: ListingSchema, state: AppState = Depends(get_state)):
    """Store a listing (same id replaces the previous one)."""
    listing = state.add_listing(request.to_domain())
    logger.info(f"Listing stored: {listing.id} ({listing.title})")
    return {"ok": True, "id": listing.id}


@router.get("/listings", response_model=list[ListingSchema])
async def list_listings(state: AppState = Depends(get_state)):
    return [ListingSchema.from_domain(listing) for listing in state.listings.values()]


@router.post("/ingest/message", response_model=DraftReplySchema)
async def ingest_message(request: IngestMessageRequest, state: AppState = Depends(get_state)):
    """
    Process a buyer message.

    WHAT: Classify, negotiate, schedule and dispatch one message
    WHY: Main loop of the assistant
    HOW: Orchestrator in the current mode; never fails for collaborator errors

    Returns:
        DraftReply for the message
    """
    seller_context = request.seller_context.to_domain() if request.seller_context else None
    draft = await state.orchestrator.handle_inbound_message(
        request.to_domain(),
        state.mode,
        seller_context,
    )
    return DraftReplySchema.from_domain(draft)


@router.get("/threads")
async def demo_threads(state: AppState = Depends(get_state)):
    """Canned buyer threads for the demo UI."""
    return state.demo_threads


@router.get("/mode", response_model=ModeResponse)
async def get_mode(state: AppState = Depends(get_state)):
    return ModeResponse(mode=state.mode)


@router.post("/mode", response_model=ModeResponse)
async def set_mode(request: ModeRequest, state: AppState = Depends(get_state)):
    """Switch between mock and shadow mode (anything else is a 400)."""
    return ModeResponse(mode=state.set_mode(request.mode))
