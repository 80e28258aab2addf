"""
Session API routes.

The chat layer pushes conversation turns here; the supervising adult's
banner reads the pending redirection suggestion and accepts or dismisses
it. Accept/dismiss errors (404/409) are safe for the caller to ignore.
"""

from fastapi import APIRouter
import structlog

from parentgate.api.dependencies import ContextDep
from parentgate.api.schemas import (
    SessionStateSchema,
    SuggestionResponse,
    SuggestionSchema,
    TurnRequest,
    TurnResponse,
)
from parentgate.domain.models.conversation import ConversationTurn

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


@router.post("/turns", response_model=TurnResponse)
async def submit_turn(request: TurnRequest, context: ContextDep):
    """Classify a conversation turn and update the pending suggestion."""
    turn_data = {"speaker": request.speaker, "text": request.text}
    if request.timestamp is not None:
        turn_data["timestamp"] = request.timestamp
    state, pending = await context.observe_turn(ConversationTurn(**turn_data))
    return TurnResponse(
        state=SessionStateSchema.from_state(state),
        suggestion=SuggestionSchema.from_suggestion(pending),
    )


@router.get("/state", response_model=SessionStateSchema)
async def get_session_state(context: ContextDep):
    return SessionStateSchema.from_state(context.classifier.state)


@router.get("/suggestion", response_model=SuggestionResponse)
async def get_suggestion(context: ContextDep):
    return SuggestionResponse(
        suggestion=SuggestionSchema.from_suggestion(context.coordinator.pending)
    )


@router.post("/suggestions/{suggestion_id}/accept", response_model=SuggestionSchema)
async def accept_suggestion(suggestion_id: str, context: ContextDep):
    return SuggestionSchema.from_suggestion(context.coordinator.accept(suggestion_id))


@router.post("/suggestions/{suggestion_id}/dismiss", response_model=SuggestionSchema)
async def dismiss_suggestion(suggestion_id: str, context: ContextDep):
    return SuggestionSchema.from_suggestion(context.coordinator.dismiss(suggestion_id))
