"""
Messenger endpoints.

WHAT: Classification, negotiation drafting, draft sending, conversation access
WHY: Each pipeline stage is callable on its own for the UI and debugging
HOW: FastAPI router calling the classifier, engine and orchestrator directly
"""

from fastapi import APIRouter, Depends

from ...deps import get_state
from ....core.state import AppState, VALID_MODES
from ....models.api_schemas import (
    BuyerMessageSchema,
    ClassificationSchema,
    ClassifyRequest,
    ConversationResponse,
    DraftReplySchema,
    NegotiateRequest,
    SendDraftRequest,
    SendDraftResponse,
)
from ....services.classifier import classify
from ....utils.exceptions import InvalidModeException
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/classify", response_model=ClassificationSchema, response_model_exclude_none=True)
async def classify_message(request: ClassifyRequest):
    """Classify buyer text into an intent with extracted fields."""
    return ClassificationSchema.from_domain(classify(request.text))


@router.post("/negotiate", response_model=DraftReplySchema)
async def negotiate(request: NegotiateRequest, state: AppState = Depends(get_state)):
    """
    Draft a reply for a classified message.

    WHAT: Run the negotiation engine without dispatching
    WHY: Lets the UI preview drafts
    HOW: History is read from the conversation store, never appended to

    Returns:
        DraftReply (LLM or rules)
    """
    message = request.message.to_domain()
    context = state.orchestrator.context_for(
        message.listing_id,
        request.seller_context.to_domain() if request.seller_context else None,
    )
    history = [
        m for m in state.store.get(message.listing_id, message.buyer_id)
        if m.id != message.id
    ]
    draft = await state.engine.negotiate(message, request.classification.to_domain(), context, history)
    if draft.needs_slots:
        draft = await state.orchestrator.attach_slots(draft, message.listing_id)
    return DraftReplySchema.from_domain(draft)


@router.post("/send-draft", response_model=SendDraftResponse)
async def send_draft(request: SendDraftRequest, state: AppState = Depends(get_state)):
    """
    Send or draft a seller-approved reply.

    mock   -> {"sent": true}
    shadow -> {"sent": false, "drafted": true}, drafted false on a wrong thread
    """
    mode = request.mode or state.mode
    if mode not in VALID_MODES:
        raise InvalidModeException(mode)
    result = await state.orchestrator.send_draft(request.listing_id, request.draft.text, mode)
    return SendDraftResponse(**result)


@router.get("/conversations/{listing_id}/{buyer_id}", response_model=ConversationResponse)
async def get_conversation(listing_id: str, buyer_id: str, state: AppState = Depends(get_state)):
    messages = state.store.get(listing_id, buyer_id)
    return ConversationResponse(
        listing_id=listing_id,
        buyer_id=buyer_id,
        messages=[BuyerMessageSchema.from_domain(m) for m in messages],
    )


@router.delete("/conversations/{listing_id}/{buyer_id}")
async def clear_conversation(listing_id: str, buyer_id: str, state: AppState = Depends(get_state)):
    cleared = await state.store.clear(listing_id, buyer_id)
    return {"cleared": cleared}
