from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
import json
import time
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OutputMode(str, Enum):
    """Presentation shape of a generated answer."""
    CONCISE_ONLY = "CONCISE_ONLY"
    DUAL = "DUAL"
    EXPLANATION_ONLY = "EXPLANATION_ONLY"


class WireModel(BaseModel):
    """Base for models sent to clients with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Source(WireModel):
    id: str
    title: str
    url: str
    snippet: str = ""
    date: Optional[str] = None


class ToolResult(BaseModel):
    tool: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    source_tag: str
    degraded: bool = False


class PromptBundle(BaseModel):
    model_config = ConfigDict(frozen=True)

    system: str
    user: str
    mode: OutputMode


class GenerationOptions(BaseModel):
    temperature: float = 0.7
    max_tokens: int = 4000


class GenerationResult(BaseModel):
    content: str
    tokens: Optional[int] = None
    model: Optional[str] = None


class ChatMessage(WireModel):
    id: str = Field(default_factory=lambda: f"response-{uuid.uuid4().hex[:12]}")
    role: str = "assistant"
    content: str
    concise: Optional[str] = None
    full: str
    explanation_available: bool = False
    output_mode: OutputMode
    sources: List[Source] = Field(default_factory=list)
    model: Optional[str] = None
    tool: Optional[str] = None
    tokens: Optional[int] = None
    policy_rule: Optional[str] = None
    timestamp: float = Field(default_factory=time.time)


class StreamEvent(WireModel):
    """Base for the typed envelopes of the streaming wire protocol."""

    def to_wire(self) -> str:
        """Serialize as one newline-terminated JSON envelope."""
        return self.model_dump_json(by_alias=True, exclude_none=True) + "\n"


class StartEvent(StreamEvent):
    type: Literal["start"] = "start"
    model: Optional[str] = None
    output_mode: OutputMode
    tool: Optional[str] = None
    timestamp: float = Field(default_factory=time.time)


class SearchPhaseEvent(StreamEvent):
    type: Literal["search_phase"] = "search_phase"
    phase: Literal["searching", "complete"]
    search_query: Optional[str] = None


class ContentEvent(StreamEvent):
    type: Literal["content"] = "content"
    content: str
    # Re-normalized display text, attached only when a throttled pass fired
    display: Optional[str] = None


class DoneEvent(StreamEvent):
    type: Literal["done"] = "done"
    message: ChatMessage

    def to_wire(self) -> str:
        body = {"type": self.type}
        body.update(self.message.model_dump(mode="json", by_alias=True))
        return json.dumps(body) + "\n"


class ErrorEvent(StreamEvent):
    type: Literal["error"] = "error"
    error: str


AnyStreamEvent = Union[StartEvent, SearchPhaseEvent, ContentEvent, DoneEvent, ErrorEvent]


class ChatSettings(BaseModel):
    """Per-request generation settings sent by the client."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")

    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(BaseModel):
    """Model for chat requests."""
    content: str
    model: Optional[str] = None
    variant: Optional[Literal["add-details", "more-concise"]] = None
    settings: Optional[ChatSettings] = None
