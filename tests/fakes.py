"""
Test doubles: a scripted generation backend and a configurable tool.
"""
import asyncio
import re
from typing import Any, Dict, List, Optional, Sequence

from layerchat.llm.backends import BackendRegistry, GenerationBackend
from layerchat.policy.engine import PolicyDecision
from layerchat.schemas.chat import GenerationOptions, GenerationResult, PromptBundle
from layerchat.tools.base import Tool


class FakeBackend(GenerationBackend):
    """Backend replaying scripted chunks, optionally failing."""

    def __init__(
        self,
        chunks: Sequence[str] = (),
        error: Optional[Exception] = None,
        fail_after: Optional[int] = None,
        model: str = "fake-model",
        streaming: bool = True,
    ):
        self.model = model
        self.chunks = list(chunks)
        self.error = error
        self.fail_after = fail_after
        self.supports_streaming = streaming
        self.bundles: List[PromptBundle] = []

    async def generate(self, bundle: PromptBundle, options: GenerationOptions) -> GenerationResult:
        self.bundles.append(bundle)
        if self.error is not None:
            raise self.error
        return GenerationResult(content="".join(self.chunks), tokens=42, model=self.model)

    async def stream(self, bundle: PromptBundle, options: GenerationOptions):
        self.bundles.append(bundle)
        if self.error is not None and self.fail_after is None:
            raise self.error
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index == self.fail_after:
                raise self.error
            await asyncio.sleep(0)
            yield chunk


class FakeTool(Tool):
    """Tool returning a fixed payload after an optional delay."""

    def __init__(
        self,
        name: str = "search",
        payload: Optional[Dict[str, Any]] = None,
        evidentiary: bool = False,
        delay: float = 0.0,
        timeout: float = 1.0,
        mentions: Sequence[str] = (),
        trigger: Optional[str] = None,
    ):
        super().__init__(timeout=timeout)
        self.name = name
        self.label = name.title()
        self.description = f"Fake {name} tool"
        self.mentions = tuple(mentions)
        self.trigger = re.compile(trigger, re.IGNORECASE) if trigger else None
        self.evidentiary = evidentiary
        self.source_tag = f"{name}_fake"
        self.fallback_tag = f"{name}_fallback"
        self.payload = payload or {}
        self.delay = delay
        self.calls: List[str] = []

    async def _run(self, query: str) -> Dict[str, Any]:
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        return dict(self.payload)


SEARCH_PAYLOAD = {
    "query": "latest rust release",
    "results": [
        {
            "title": "Rust 1.80 released",
            "url": "https://blog.example.org/2024/07/rust-1-80",
            "snippet": "The Rust team announced version 1.80 with lazy cell types and exclusive ranges in patterns.",
            "date": "2024-07-25",
        },
        {
            "title": "Latest news",
            "url": "https://news.example.org/category/programming",
            "snippet": "Everything that happened in programming this week, collected in one place for readers.",
        },
        {
            "title": "What is new in Rust",
            "url": "https://docs.example.org/rust/whats-new",
            "snippet": "A longer overview of the language changes across the last few releases and what they mean for you.",
        },
    ],
}


def allow() -> PolicyDecision:
    return PolicyDecision(allow_external=True, matched_rule="test", reason="test allows")


def deny() -> PolicyDecision:
    return PolicyDecision(allow_external=False, matched_rule="test", reason="test denies")


def backend_registry(backend: GenerationBackend) -> BackendRegistry:
    registry = BackendRegistry(default_model=backend.model, providers={})
    registry.register(backend)
    return registry
