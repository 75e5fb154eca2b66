"""
Per-request streaming state machine.

A StreamTransformer drives one tool invocation (optional) and one backend
call, emitting typed events in the order

    start -> search_phase* -> content* -> done | error

with exactly one terminal event. A cancelled request emits nothing further
and never emits ``done``.
"""
from enum import Enum
from typing import AsyncIterator, Dict, FrozenSet, Optional
import asyncio
import logging

from layerchat.answers.finalizer import finalize_response
from layerchat.answers.formatting import display_preview
from layerchat.core.errors import InvalidTransition
from layerchat.llm.backends import GenerationBackend
from layerchat.orchestrator.plan import RequestPlan
from layerchat.prompts.composer import apply_variant, build_enrichment, compose_prompt_bundle
from layerchat.prompts.persona import DEFAULT_PERSONA, PersonaConfig
from layerchat.rag.evidence import evidence_from_result
from layerchat.schemas.chat import (
    AnyStreamEvent,
    ChatMessage,
    ContentEvent,
    DoneEvent,
    ErrorEvent,
    GenerationOptions,
    PromptBundle,
    SearchPhaseEvent,
    StartEvent,
    ToolResult,
)

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_RENORMALIZE_DELTA = 140


class StreamState(str, Enum):
    INIT = "INIT"
    SEARCH_PENDING = "SEARCH_PENDING"
    STREAMING = "STREAMING"
    DONE = "DONE"
    ERROR = "ERROR"
    CANCELLED = "CANCELLED"


TERMINAL_STATES: FrozenSet[StreamState] = frozenset({StreamState.DONE, StreamState.ERROR, StreamState.CANCELLED})

TRANSITIONS: Dict[StreamState, FrozenSet[StreamState]] = {
    StreamState.INIT: frozenset({
        StreamState.SEARCH_PENDING, StreamState.STREAMING, StreamState.ERROR, StreamState.CANCELLED,
    }),
    StreamState.SEARCH_PENDING: frozenset({StreamState.STREAMING, StreamState.ERROR, StreamState.CANCELLED}),
    StreamState.STREAMING: frozenset({StreamState.DONE, StreamState.ERROR, StreamState.CANCELLED}),
    StreamState.DONE: frozenset(),
    StreamState.ERROR: frozenset(),
    StreamState.CANCELLED: frozenset(),
}


class StreamTransformer:
    """Converts one planned request into a sequence of stream events."""

    def __init__(
        self,
        plan: RequestPlan,
        backend: GenerationBackend,
        options: Optional[GenerationOptions] = None,
        persona: PersonaConfig = DEFAULT_PERSONA,
        renormalize_delta: int = DEFAULT_RENORMALIZE_DELTA,
    ):
        self.plan = plan
        self.backend = backend
        self.options = options or GenerationOptions()
        self.persona = persona
        self.renormalize_delta = renormalize_delta
        self.state = StreamState.INIT
        self.message: Optional[ChatMessage] = None
        self.error: Optional[str] = None
        self.tool_result: Optional[ToolResult] = None
        self._buffer = ""
        self._last_render_len = 0
        self._tokens: Optional[int] = None
        self._started = False

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def cancelled(self) -> bool:
        return self.state == StreamState.CANCELLED

    def _transition(self, target: StreamState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"Illegal stream transition {self.state.value} -> {target.value}")
        logger.debug(f"Stream transition {self.state.value} -> {target.value}")
        self.state = target

    def cancel(self) -> bool:
        """
        Stop the stream on behalf of the caller.

        Returns:
            True if the stream was live and is now cancelled
        """
        if self.state in TERMINAL_STATES:
            return False
        self._transition(StreamState.CANCELLED)
        self._buffer = ""
        logger.info(f"Stream cancelled for query: '{self.plan.query[:50]}'")
        return True

    async def run(self) -> AsyncIterator[AnyStreamEvent]:
        """
        Drive the request and yield its events.

        Raises:
            InvalidTransition: If the transformer has already been run
        """
        if self._started:
            raise InvalidTransition("A stream transformer can only be run once")
        self._started = True

        plan = self.plan
        tool = plan.tool
        try:
            yield StartEvent(
                model=self.backend.model or None,
                output_mode=plan.mode,
                tool=tool.name if tool else None,
            )

            if self.cancelled:
                return
            if tool is not None:
                self._transition(StreamState.SEARCH_PENDING)
                if tool.evidentiary:
                    yield SearchPhaseEvent(phase="searching", search_query=plan.query)
                self.tool_result = await self._invoke_tool()
                if self.cancelled:
                    return
                if tool.evidentiary:
                    yield SearchPhaseEvent(phase="complete")

            if self.cancelled:
                return
            bundle = self.compose_bundle()
            self._transition(StreamState.STREAMING)

            events = self._generate(bundle)
            try:
                async for event in events:
                    yield event
            finally:
                await events.aclose()
            if self.cancelled:
                return

            self.message = finalize_response(
                self._buffer,
                plan.mode,
                tool_result=self.tool_result,
                query=plan.query,
                model=self.backend.model or None,
                tokens=self._tokens,
                policy_rule=plan.decision.matched_rule,
            )
            self._transition(StreamState.DONE)
            yield DoneEvent(message=self.message)

        except (GeneratorExit, asyncio.CancelledError):
            # Consumer went away mid-stream
            if self.state not in TERMINAL_STATES:
                self.cancel()
            raise
        except InvalidTransition:
            raise
        except Exception as e:
            if self.cancelled:
                return
            if self.state in TERMINAL_STATES:
                raise
            logger.error(f"Stream failed in state {self.state.value}: {e}")
            self.error = str(e) or e.__class__.__name__
            self._transition(StreamState.ERROR)
            yield ErrorEvent(error=self.error)

    async def _invoke_tool(self) -> ToolResult:
        tool = self.plan.tool
        try:
            return await asyncio.wait_for(tool.invoke(self.plan.query), timeout=tool.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Tool '{tool.name}' timed out after {tool.timeout:g}s, using degraded payload")
            return tool.degraded_result(self.plan.query, f"timed out after {tool.timeout:g}s")

    def compose_bundle(self) -> PromptBundle:
        plan = self.plan
        user_text = None
        if self.tool_result is not None:
            evidence = evidence_from_result(self.tool_result, plan.query) if plan.tool.evidentiary else []
            user_text = build_enrichment(plan.query, self.tool_result, evidence)
        if plan.variant:
            user_text = apply_variant(user_text or plan.query, plan.variant)
        return compose_prompt_bundle(
            plan.mode,
            plan.query,
            persona=self.persona,
            enrichment=user_text,
            procedural=plan.procedural,
        )

    def _content_event(self, chunk: str) -> ContentEvent:
        self._buffer += chunk
        display = None
        if len(self._buffer) - self._last_render_len > self.renormalize_delta:
            display = display_preview(self._buffer, self.plan.mode)
            self._last_render_len = len(self._buffer)
        return ContentEvent(content=chunk, display=display)

    async def _generate(self, bundle: PromptBundle) -> AsyncIterator[ContentEvent]:
        if not self.backend.supports_streaming:
            result = await self.backend.generate(bundle, self.options)
            if self.cancelled:
                return
            self._tokens = result.tokens
            yield self._content_event(result.content)
            return

        chunks = self.backend.stream(bundle, self.options)
        try:
            async for chunk in chunks:
                if self.cancelled:
                    break
                if chunk:
                    yield self._content_event(chunk)
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()
