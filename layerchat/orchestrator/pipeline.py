"""
Request orchestration: plan a chat request, then run it streaming or whole.
"""
from contextlib import aclosing
from typing import AsyncIterator, Optional
import logging

from layerchat.core.dependencies import AppContext
from layerchat.core.errors import GenerationBackendError
from layerchat.orchestrator.plan import RequestPlan, plan_request
from layerchat.orchestrator.stream import StreamTransformer
from layerchat.schemas.chat import (
    AnyStreamEvent,
    ChatMessage,
    ChatRequest,
    DoneEvent,
    ErrorEvent,
    GenerationOptions,
)

# Configure logging
logger = logging.getLogger(__name__)


class ChatOrchestrator:
    """Runs chat requests against an application context."""

    def __init__(self, context: AppContext):
        self.context = context

    def plan(self, query: str, variant: Optional[str] = None) -> RequestPlan:
        return plan_request(
            query,
            self.context.policy,
            self.context.tools,
            auto_tools=self.context.settings.ENABLE_AUTO_TOOLS,
            variant=variant,
        )

    def options_for(self, request: ChatRequest) -> GenerationOptions:
        settings = self.context.settings
        requested = request.settings
        temperature = requested.temperature if requested and requested.temperature is not None else None
        max_tokens = requested.max_tokens if requested and requested.max_tokens else None
        return GenerationOptions(
            temperature=settings.DEFAULT_TEMPERATURE if temperature is None else temperature,
            max_tokens=max_tokens or settings.DEFAULT_MAX_TOKENS,
        )

    def create_stream(self, request: ChatRequest, streaming: bool = True) -> StreamTransformer:
        """
        Plan a request and build its stream transformer.

        Args:
            request: Incoming chat request
            streaming: Whether the caller consumes events incrementally

        Returns:
            StreamTransformer ready to run

        Raises:
            UnknownModelError: If the requested model cannot be served
        """
        backend = self.context.backends.resolve(request.model)
        plan = self.plan(request.content, variant=request.variant)
        self.context.stats.record_plan(
            plan.mode.value,
            plan.tool.name if plan.tool else None,
            plan.decision.matched_rule,
            streaming,
        )
        return StreamTransformer(
            plan,
            backend,
            options=self.options_for(request),
            persona=self.context.persona,
            renormalize_delta=self.context.settings.RENORMALIZE_DELTA,
        )

    async def events(self, transformer: StreamTransformer) -> AsyncIterator[AnyStreamEvent]:
        """Run a transformer, recording its outcome in the usage statistics."""
        stats = self.context.stats
        async with aclosing(transformer.run()) as events:
            async for event in events:
                if isinstance(event, DoneEvent):
                    stats.completed += 1
                elif isinstance(event, ErrorEvent):
                    stats.errors += 1
                yield event
        if transformer.cancelled:
            stats.cancelled += 1

    async def process_message(self, request: ChatRequest) -> ChatMessage:
        """
        Run a request to completion and return the final message.

        Raises:
            GenerationBackendError: If the backend failed
        """
        transformer = self.create_stream(request, streaming=False)
        async with aclosing(self.events(transformer)) as events:
            async for _ in events:
                pass
        if transformer.error is not None:
            raise GenerationBackendError(transformer.error)
        if transformer.message is None:
            raise GenerationBackendError("Generation finished without a message")
        return transformer.message
