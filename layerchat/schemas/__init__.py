"""
Pydantic models for the chat wire protocol and the governance surface.
"""

from .chat import (
    ChatMessage,
    ChatRequest,
    OutputMode,
    PromptBundle,
    Source,
    ToolResult,
)

__all__ = [
    'ChatMessage',
    'ChatRequest',
    'OutputMode',
    'PromptBundle',
    'Source',
    'ToolResult',
]
