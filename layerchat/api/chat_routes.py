from contextlib import aclosing
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from layerchat.core.dependencies import AppContext, get_context
from layerchat.core.errors import GenerationBackendError, UnknownModelError
from layerchat.orchestrator.pipeline import ChatOrchestrator
from layerchat.schemas.chat import ChatMessage, ChatRequest

# Configure logging
logger = logging.getLogger(__name__)

chat_router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def get_orchestrator(context: AppContext = Depends(get_context)) -> ChatOrchestrator:
    return ChatOrchestrator(context)


def validate_request(request: ChatRequest) -> None:
    if not request.content or not request.content.strip():
        raise HTTPException(status_code=400, detail="Message content is required")


@chat_router.post("/chat", response_model=ChatMessage)
async def chat(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    """Answer a chat message in one response."""
    validate_request(request)
    try:
        return await orchestrator.process_message(request)
    except UnknownModelError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationBackendError as e:
        logger.error(f"Chat request failed: {e}")
        raise HTTPException(status_code=502, detail=f"Generation backend error: {e}")


@chat_router.post("/chat/stream")
async def chat_stream(
    request: ChatRequest,
    http_request: Request,
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    """
    Stream a chat answer as newline-delimited JSON events.

    Event types: start, search_phase, content, done, error.
    """
    validate_request(request)
    try:
        transformer = orchestrator.create_stream(request)
    except UnknownModelError as e:
        raise HTTPException(status_code=400, detail=str(e))

    async def body():
        async with aclosing(orchestrator.events(transformer)) as events:
            async for event in events:
                if await http_request.is_disconnected():
                    transformer.cancel()
                    logger.info("Client disconnected, stream cancelled")
                    break
                yield event.to_wire()

    return StreamingResponse(
        body(),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
