"""
Base class shared by every augmentation tool.

A tool never raises for ordinary unavailability: failures inside ``_run`` are
logged and converted into a degraded ToolResult so the pipeline can still
compose an explanatory fallback prompt.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Pattern, Tuple
import logging

import httpx

from layerchat.schemas.chat import ToolResult

# Configure logging
logger = logging.getLogger(__name__)


class Tool:
    """One named external capability invoked at most once per query."""

    name: str = ""
    label: str = ""
    description: str = ""
    mentions: Tuple[str, ...] = ()
    trigger: Optional[Pattern] = None
    default_timeout: float = 10.0
    # Evidentiary tools return third-party documents and announce a search phase
    evidentiary: bool = False
    source_tag: str = ""
    fallback_tag: str = ""

    def __init__(self, timeout: Optional[float] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.timeout = float(timeout) if timeout is not None else self.default_timeout
        self._http_client = http_client

    def matches(self, query: str) -> bool:
        """Test the tool's own automatic trigger."""
        if self.trigger is None:
            return False
        return bool(self.trigger.search(query))

    def handles(self) -> Tuple[str, ...]:
        """Normalized @mention handles, the tool name first."""
        seen = []
        for handle in (self.name,) + tuple(self.mentions):
            normalized = normalize_handle(handle)
            if normalized and normalized not in seen:
                seen.append(normalized)
        return tuple(seen)

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a short-lived one bounded by the tool timeout."""
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    async def invoke(self, query: str) -> ToolResult:
        """
        Run the tool for a query.

        Args:
            query: Raw user text

        Returns:
            ToolResult, degraded when the remote service could not be used
        """
        try:
            payload = await self._run(query)
        except Exception as e:
            logger.error(f"{self.label or self.name} tool error: {e}")
            return self.degraded_result(query, str(e) or e.__class__.__name__)

        return ToolResult(tool=self.name, payload=payload, source_tag=self.source_tag)

    def degraded_result(self, query: str, reason: str) -> ToolResult:
        """Build the degraded payload used after a failure or a timeout."""
        payload = self._fallback_payload(query, reason)
        payload.setdefault("error", reason)
        return ToolResult(tool=self.name, payload=payload, source_tag=self.fallback_tag, degraded=True)

    async def _run(self, query: str) -> Dict[str, Any]:
        raise NotImplementedError

    def _fallback_payload(self, query: str, reason: str) -> Dict[str, Any]:
        return {"query": query}

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "mentions": [f"@{h}" for h in self.handles()],
            "timeout": self.timeout,
        }


def normalize_handle(handle: str) -> str:
    """Lowercase and drop every non-alphanumeric character."""
    return "".join(ch for ch in handle.lower() if ch.isalnum())
