"""API endpoints for the agent gateway."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Response

from clawagent import __version__
from clawagent.clients.base import ProviderError
from clawagent.models.conversation import ChatReply, ChatRequest, HealthResponse
from clawagent.services.conversation import ConversationService
from clawagent.services.runtime import get_conversation_service
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/chat", response_model=ChatReply, tags=["Chat"])
async def handle_chat(
    request: ChatRequest,
    service: ConversationService = Depends(get_conversation_service),
) -> ChatReply:
    """Run one agent turn and return the reply with its usage counters."""
    session_label = request.session_id or "(new)"
    try:
        logger.info(f"Processing message for session {session_label}: {request.message[:50]}...")
        reply = await service.process_message(request.message, request.session_id)
        logger.info(f"Generated response for session {reply.session_id}: {reply.response[:50]}...")
        return reply
    except ValueError as e:
        logger.warning(f"Message validation error for session {session_label}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ProviderError as e:
        logger.error(f"Provider error for session {session_label}: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Chat processing error for session {session_label}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error while processing the message") from e


@router.delete("/sessions/{session_id}", status_code=204, tags=["Chat"])
async def clear_session(
    session_id: str,
    service: ConversationService = Depends(get_conversation_service),
) -> Response:
    """Clear a session's conversation history."""
    try:
        await service.clear_session(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return Response(status_code=204)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
