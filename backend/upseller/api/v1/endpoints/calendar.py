"""
Calendar endpoints.

WHAT: Slot suggestion, appointment creation and management, ICS downloads
WHY: Scheduling surface for the UI
HOW: FastAPI router over SlotSuggestionService and AppointmentConfirmer;
     missing calendar authorization becomes {"needsAuth": true, "authUrl": ...}
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from ...deps import get_state
from ....calendar_api.types import CalendarAuthRequiredError
from ....core.state import AppState
from ....models.api_schemas import (
    AppointmentSchema,
    CreateAppointmentRequest,
    ListingSchema,
    NeedsAuthResponse,
    SuggestSlotsRequest,
    SuggestSlotsResponse,
    UpdateAppointmentRequest,
)
from ....models.domain import AppointmentStatus, Listing
from ....services.ics_generator import resolve_ics_file
from ....utils.exceptions import InviteNotFoundException, ListingNotFoundException
from ....utils.timeutils import to_iso_z
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _resolve_listing(state: AppState, listing_id: Optional[str], listing: Optional[ListingSchema]) -> Listing:
    if listing is not None:
        return listing.to_domain()
    stored = state.listings.get(listing_id)
    if stored is None:
        raise ListingNotFoundException(listing_id)
    return stored


@router.post(
    "/suggest-slots",
    response_model=SuggestSlotsResponse | NeedsAuthResponse,
    response_model_exclude_none=True,
)
async def suggest_slots(request: SuggestSlotsRequest, state: AppState = Depends(get_state)):
    """
    Suggest meetup slots for a listing.

    Returns:
        {"suggested": [...]} or {"needsAuth": true, "authUrl": ...}
    """
    listing = _resolve_listing(state, request.listing_id, request.listing)
    try:
        slots = await state.slots.suggest_for_listing(
            listing,
            window_count=request.window_count,
            duration_minutes=request.duration_minutes,
        )
    except CalendarAuthRequiredError as e:
        return NeedsAuthResponse(auth_url=e.auth_url)
    return SuggestSlotsResponse(suggested=[to_iso_z(s) for s in slots])


@router.post("/create-appointment", response_model=AppointmentSchema | NeedsAuthResponse)
async def create_appointment(request: CreateAppointmentRequest, state: AppState = Depends(get_state)):
    """
    Confirm a chosen slot.

    Returns:
        Confirmed appointment or {"needsAuth": true, "authUrl": ...}
    """
    listing = _resolve_listing(state, request.listing_id, request.listing)
    try:
        appointment = await state.confirmer.confirm_appointment(
            listing,
            request.buyer_id,
            request.start_iso,
            request.spot,
            duration_minutes=request.duration_minutes,
            buyer_email=request.buyer_email,
        )
    except CalendarAuthRequiredError as e:
        return NeedsAuthResponse(auth_url=e.auth_url)
    return AppointmentSchema.from_domain(appointment)


@router.get("/appointments", response_model=list[AppointmentSchema])
async def list_appointments(
    listing_id: Optional[str] = None,
    status: Optional[AppointmentStatus] = None,
    state: AppState = Depends(get_state)
):
    return [AppointmentSchema.from_domain(a) for a in state.appointments.find(listing_id, status)]


@router.patch("/appointments/{appointment_id}", response_model=AppointmentSchema)
async def update_appointment(
    appointment_id: str,
    request: UpdateAppointmentRequest,
    state: AppState = Depends(get_state)
):
    """Change appointment status (404 unknown id, 409 invalid transition)."""
    updated = await state.appointments.update_status(appointment_id, request.status)
    return AppointmentSchema.from_domain(updated)


@router.get("/ics/{filename}")
async def download_ics(filename: str, state: AppState = Depends(get_state)):
    """Download a generated invite."""
    path = resolve_ics_file(filename, state.config.ICS_DIR)
    if path is None:
        raise InviteNotFoundException(filename)
    return FileResponse(path, media_type="text/calendar", filename=filename)
