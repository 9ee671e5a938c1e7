"""
Chat router: the single endpoint a nervous flyer talks to.

It handles three things:
1. Input validation, then graceful degradation when the API key isn't configured (503 instead of cryptic errors)
2. Running the companion pipeline once and shaping its envelope for the client
3. Reporting generation failures as a clean "temporarily unavailable" envelope

Input and configuration errors are raised as-is and turned into 400/500
responses by the handlers registered in api.main.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from api.companion import CompanionOrchestrator
from api.companion.orchestrator import validate_request
from api.companion.state import EmotionalState
from api.config import settings
from api.dependencies import get_orchestrator
from api.models.chat import ChatMetadata, ChatRequest, ChatResponse

logger = logging.getLogger("companion-api.chat")

router = APIRouter()


@router.post("/", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    response: Response,
    orchestrator: CompanionOrchestrator = Depends(get_orchestrator),
):
    """Accept one message + anxiety reading, return the companion's reply and mode."""

    # Bad input is a 400 even when chat is unavailable
    validate_request(request.user_id, request.message, request.anxiety_level)

    # Checked per request so the proxies keep working without an LLM key
    if not settings.anthropic_api_key:
        raise HTTPException(
            status_code=503,
            detail="Chat is unavailable: ANTHROPIC_API_KEY not configured",
        )

    logger.info("Processing message for user %s, anxiety=%s", request.user_id, request.anxiety_level)

    result = await orchestrator.process(
        request.user_id,
        request.message,
        request.anxiety_level,
        flight_context=request.flight_context,
        user_history=request.user_history,
    )

    if not result.ok:
        # The state update already committed; the client still gets the new level
        response.status_code = 502

    return ChatResponse(
        ok=result.ok,
        response=result.response_text,
        mode=result.mode.value,
        anxiety_level=result.anxiety_level,
        flags=result.flags,
        error=result.error,
        metadata=ChatMetadata(
            snapshot_id=result.snapshot_id,
            intervention_id=result.intervention_id,
            processing_time_ms=result.processing_time_ms,
        ),
    )


@router.get("/state/{user_id}", response_model=EmotionalState)
async def get_state(user_id: str, orchestrator: CompanionOrchestrator = Depends(get_orchestrator)):
    state = orchestrator.store.read(user_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"No emotional state for user '{user_id}'")
    return state
