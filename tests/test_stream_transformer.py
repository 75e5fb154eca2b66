"""
Tests for the streaming state machine.
"""
import json

import pytest

from layerchat.core.errors import GenerationBackendError, InvalidTransition
from layerchat.orchestrator.plan import RequestPlan
from layerchat.orchestrator.stream import TERMINAL_STATES, TRANSITIONS, StreamState, StreamTransformer
from layerchat.schemas.chat import ContentEvent, DoneEvent, ErrorEvent, OutputMode
from tests.fakes import SEARCH_PAYLOAD, FakeBackend, FakeTool, allow, deny


def make_plan(query="2 + 2", tool=None, mode=OutputMode.DUAL, variant=None):
    decision = allow() if tool else deny()
    return RequestPlan(query=query, decision=decision, tool=tool, mode=mode, procedural=False, variant=variant)


async def collect(transformer):
    return [event async for event in transformer.run()]


def types(events):
    return [event.type for event in events]


class TestEventOrder:
    @pytest.mark.asyncio
    async def test_plain_request(self, fake_backend):
        transformer = StreamTransformer(make_plan(), fake_backend)

        events = await collect(transformer)

        assert types(events) == ["start", "content", "content", "content", "done"]
        assert transformer.state == StreamState.DONE
        done = events[-1]
        assert done.message.concise == "Four."
        assert done.message.full == "$$2 + 2 = 4$$"
        assert done.message.explanation_available is True
        assert done.message.policy_rule == "test"

    @pytest.mark.asyncio
    async def test_mode_is_fixed_for_the_request(self, fake_backend):
        plan = make_plan(mode=OutputMode.CONCISE_ONLY)

        events = await collect(StreamTransformer(plan, fake_backend))

        assert events[0].output_mode == OutputMode.CONCISE_ONLY
        assert events[-1].message.output_mode == OutputMode.CONCISE_ONLY
        assert fake_backend.bundles[0].mode == OutputMode.CONCISE_ONLY

    @pytest.mark.asyncio
    async def test_evidentiary_tool_announces_search_phase(self):
        tool = FakeTool(name="search", payload=SEARCH_PAYLOAD, evidentiary=True)
        backend = FakeBackend(chunks=["Rust 1.80 shipped."])

        events = await collect(StreamTransformer(make_plan("latest rust release", tool), backend))

        assert types(events) == ["start", "search_phase", "search_phase", "content", "done"]
        assert events[0].tool == "search"
        assert events[1].phase == "searching"
        assert events[1].search_query == "latest rust release"
        assert events[2].phase == "complete"
        assert [s.id for s in events[-1].message.sources] == ["1", "2"]
        assert "[1] **Rust 1.80 released**" in backend.bundles[0].user

    @pytest.mark.asyncio
    async def test_non_evidentiary_tool_has_no_search_phase(self):
        tool = FakeTool(name="math", payload={"formatted": "4", "steps": ["Result: 4"]})
        backend = FakeBackend(chunks=["<CONCISE>4</CONCISE>"])

        events = await collect(StreamTransformer(make_plan("2 + 2", tool), backend))

        assert types(events) == ["start", "content", "done"]
        assert tool.calls == ["2 + 2"]
        assert "The verified result is 4." in backend.bundles[0].user
        assert events[-1].message.tool == "math"

    @pytest.mark.asyncio
    async def test_variant_is_appended_to_user_prompt(self, fake_backend):
        await collect(StreamTransformer(make_plan(variant="add-details"), fake_backend))

        assert "VARIANT_MODE: add-details" in fake_backend.bundles[0].user

    @pytest.mark.asyncio
    async def test_non_streaming_backend_emits_one_content_event(self):
        backend = FakeBackend(chunks=["<CONCISE>A</CONCISE>", "<EXPLANATION>B</EXPLANATION>"], streaming=False)

        events = await collect(StreamTransformer(make_plan(), backend))

        assert types(events) == ["start", "content", "done"]
        assert events[1].content == "<CONCISE>A</CONCISE><EXPLANATION>B</EXPLANATION>"
        assert events[-1].message.tokens == 42


class TestToolDegradation:
    @pytest.mark.asyncio
    async def test_tool_timeout_degrades_and_continues(self, fake_backend):
        tool = FakeTool(name="weather", delay=1.0, timeout=0.01)
        transformer = StreamTransformer(make_plan("weather in Paris", tool), fake_backend)

        events = await collect(transformer)

        assert types(events)[-1] == "done"
        assert transformer.tool_result.degraded is True
        assert transformer.tool_result.source_tag == "weather_fallback"
        assert "The weather tool was unavailable (timed out after 0.01s)" in fake_backend.bundles[0].user

    @pytest.mark.asyncio
    async def test_degraded_search_still_completes_search_phase(self, fake_backend):
        tool = FakeTool(name="search", evidentiary=True, delay=1.0, timeout=0.01)

        events = await collect(StreamTransformer(make_plan("latest news", tool), fake_backend))

        assert types(events)[:3] == ["start", "search_phase", "search_phase"]
        assert events[-1].message.sources == []


class TestErrors:
    @pytest.mark.asyncio
    async def test_backend_failure_before_first_chunk(self):
        backend = FakeBackend(error=GenerationBackendError("upstream 500"))
        transformer = StreamTransformer(make_plan(), backend)

        events = await collect(transformer)

        assert types(events) == ["start", "error"]
        assert events[-1].error == "upstream 500"
        assert transformer.state == StreamState.ERROR
        assert transformer.message is None

    @pytest.mark.asyncio
    async def test_backend_failure_mid_stream(self):
        backend = FakeBackend(
            chunks=["<CONCISE>Par", "is</CONCISE>", "never sent"],
            error=GenerationBackendError("connection reset"),
            fail_after=2,
        )
        transformer = StreamTransformer(make_plan(), backend)

        events = await collect(transformer)

        assert types(events) == ["start", "content", "content", "error"]
        terminal = [e for e in events if isinstance(e, (DoneEvent, ErrorEvent))]
        assert len(terminal) == 1

    @pytest.mark.asyncio
    async def test_run_twice_rejected(self, fake_backend):
        transformer = StreamTransformer(make_plan(), fake_backend)
        await collect(transformer)

        with pytest.raises(InvalidTransition):
            await collect(transformer)


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_mid_stream(self):
        backend = FakeBackend(chunks=["<CONCISE>One", " two", " three</CONCISE>"])
        transformer = StreamTransformer(make_plan(), backend)

        events = []
        async for event in transformer.run():
            events.append(event)
            if isinstance(event, ContentEvent):
                assert transformer.cancel() is True

        assert types(events) == ["start", "content"]
        assert transformer.state == StreamState.CANCELLED
        assert transformer.buffer == ""
        assert transformer.message is None

    @pytest.mark.asyncio
    async def test_cancel_during_tool_call(self, fake_backend):
        tool = FakeTool(name="search", payload=SEARCH_PAYLOAD, evidentiary=True)
        transformer = StreamTransformer(make_plan("latest rust release", tool), fake_backend)

        events = []
        async for event in transformer.run():
            events.append(event)
            if event.type == "search_phase":
                transformer.cancel()

        assert types(events) == ["start", "search_phase"]
        assert fake_backend.bundles == []

    @pytest.mark.asyncio
    async def test_cancel_after_start(self, fake_backend):
        transformer = StreamTransformer(make_plan(), fake_backend)

        events = []
        async for event in transformer.run():
            events.append(event)
            if event.type == "start":
                transformer.cancel()

        assert types(events) == ["start"]
        assert transformer.state == StreamState.CANCELLED
        assert fake_backend.bundles == []

    @pytest.mark.asyncio
    async def test_cancel_after_search_complete(self, fake_backend):
        tool = FakeTool(name="search", payload=SEARCH_PAYLOAD, evidentiary=True)
        transformer = StreamTransformer(make_plan("latest rust release", tool), fake_backend)

        events = []
        async for event in transformer.run():
            events.append(event)
            if getattr(event, "phase", None) == "complete":
                transformer.cancel()

        assert types(events) == ["start", "search_phase", "search_phase"]
        assert transformer.state == StreamState.CANCELLED
        assert transformer.message is None
        assert fake_backend.bundles == []

    @pytest.mark.asyncio
    async def test_consumer_closing_generator_cancels(self, fake_backend):
        transformer = StreamTransformer(make_plan(), fake_backend)
        stream = transformer.run()

        await stream.__anext__()
        await stream.__anext__()
        await stream.aclose()

        assert transformer.state == StreamState.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_after_done_is_noop(self, fake_backend):
        transformer = StreamTransformer(make_plan(), fake_backend)
        await collect(transformer)

        assert transformer.cancel() is False
        assert transformer.state == StreamState.DONE


class TestThrottle:
    @pytest.mark.asyncio
    async def test_display_attached_when_buffer_grows_past_delta(self):
        backend = FakeBackend(chunks=["a" * 50] * 5)
        transformer = StreamTransformer(make_plan(mode=OutputMode.EXPLANATION_ONLY), backend, renormalize_delta=80)

        events = await collect(transformer)

        displays = [e.display for e in events if isinstance(e, ContentEvent)]
        assert displays == [None, "a" * 100, None, "a" * 200, None]

    def test_content_wire_shape(self):
        body = json.loads(ContentEvent(content="Hi").to_wire())
        assert body == {"type": "content", "content": "Hi"}


class TestTransitions:
    def test_terminal_states_have_no_exits(self):
        for state in TERMINAL_STATES:
            assert TRANSITIONS[state] == frozenset()

    def test_every_state_has_an_entry(self):
        assert set(TRANSITIONS) == set(StreamState)

    def test_illegal_transition(self, fake_backend):
        transformer = StreamTransformer(make_plan(), fake_backend)

        with pytest.raises(InvalidTransition):
            transformer._transition(StreamState.DONE)
        assert transformer.state == StreamState.INIT
