"""
Application context and FastAPI dependencies.

The context holds every collaborator a request needs:
1. Settings
2. Policy engine
3. Tool registry
4. Generation backend registry
5. Persona
6. Usage statistics

It is built once per process (or per test) and attached to ``app.state``;
nothing here is a module-level singleton.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging
import time

from fastapi import Request

from layerchat.core.config import Settings
from layerchat.llm.backends import BackendRegistry, build_backend_registry
from layerchat.policy import build_policy_engine
from layerchat.policy.engine import PolicyEngine
from layerchat.prompts.persona import DEFAULT_PERSONA, PersonaConfig
from layerchat.tools import build_default_tools
from layerchat.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class UsageStats:
    """Process-local request counters."""
    started_at: float = field(default_factory=time.time)
    requests: int = 0
    streams: int = 0
    completed: int = 0
    errors: int = 0
    cancelled: int = 0
    modes: Counter = field(default_factory=Counter)
    tools: Counter = field(default_factory=Counter)
    rules: Counter = field(default_factory=Counter)

    def record_plan(self, mode: str, tool: Optional[str], rule: str, streaming: bool) -> None:
        self.requests += 1
        if streaming:
            self.streams += 1
        self.modes[mode] += 1
        self.rules[rule] += 1
        if tool:
            self.tools[tool] += 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": round(time.time() - self.started_at, 1),
            "requests": self.requests,
            "streams": self.streams,
            "completed": self.completed,
            "errors": self.errors,
            "cancelled": self.cancelled,
            "modes": dict(self.modes),
            "tools": dict(self.tools),
            "rules": dict(self.rules),
        }


@dataclass
class AppContext:
    settings: Settings
    policy: PolicyEngine
    tools: ToolRegistry
    backends: BackendRegistry
    persona: PersonaConfig = DEFAULT_PERSONA
    stats: UsageStats = field(default_factory=UsageStats)


def build_context(
    settings: Settings,
    tools: Optional[ToolRegistry] = None,
    backends: Optional[BackendRegistry] = None,
    persona: Optional[PersonaConfig] = None,
) -> AppContext:
    """
    Build the application context from settings.

    Args:
        settings: Application settings
        tools: Optional tool registry replacing the default adapters
        backends: Optional backend registry replacing the configured providers
        persona: Optional persona replacing the default one

    Returns:
        AppContext instance
    """
    context = AppContext(
        settings=settings,
        policy=build_policy_engine(settings),
        tools=tools if tools is not None else build_default_tools(settings),
        backends=backends if backends is not None else build_backend_registry(settings),
        persona=persona or DEFAULT_PERSONA,
    )
    logger.info(
        f"Application context ready: tools={context.tools.names()}, "
        f"governance={settings.GOVERNANCE_DEFAULT_MODE}, auto_tools={settings.ENABLE_AUTO_TOOLS}"
    )
    return context


def get_context(request: Request) -> AppContext:
    """Dependency returning the context attached to the running app."""
    return request.app.state.context
