from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from layerchat.api.chat_routes import chat_router
from layerchat.core.dependencies import AppContext, get_context

router = APIRouter()

# Include the chat router
router.include_router(chat_router, tags=["chat"])


class HealthResponse(BaseModel):
    """Model for health check response."""
    status: str = "ok"


class ToolInfo(BaseModel):
    name: str
    label: str
    description: str
    mentions: List[str]
    timeout: float


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint for the API."""
    return HealthResponse()


@router.get("/stats", tags=["health"])
async def get_stats(context: AppContext = Depends(get_context)) -> Dict[str, Any]:
    """Usage counters since process start."""
    return context.stats.as_dict()


@router.get("/tools", response_model=List[ToolInfo], tags=["tools"])
async def list_tools(context: AppContext = Depends(get_context)):
    """Registered tools in dispatch order."""
    return [ToolInfo(**tool.describe()) for tool in context.tools]
