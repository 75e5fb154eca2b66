from dataclasses import dataclass
from typing import Optional
import logging

from layerchat.policy.engine import PolicyDecision, PolicyEngine
from layerchat.prompts.output_mode import classify_output_mode, is_procedural_query
from layerchat.schemas.chat import OutputMode
from layerchat.tools.base import Tool
from layerchat.tools.dispatcher import select_tool
from layerchat.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestPlan:
    """Every decision taken for a request before generation starts."""
    query: str
    decision: PolicyDecision
    tool: Optional[Tool]
    mode: OutputMode
    procedural: bool
    variant: Optional[str] = None


def plan_request(
    query: str,
    engine: PolicyEngine,
    registry: ToolRegistry,
    auto_tools: bool = True,
    variant: Optional[str] = None,
) -> RequestPlan:
    """
    Run policy, dispatch and classification for one query.

    The output mode is fixed here, before any prompt is composed.
    """
    decision = engine.decide(query)
    tool = select_tool(query, registry, decision, auto_enabled=auto_tools)
    mode = classify_output_mode(query)
    plan = RequestPlan(
        query=query,
        decision=decision,
        tool=tool,
        mode=mode,
        procedural=is_procedural_query(query),
        variant=variant,
    )
    logger.info(
        f"Planned request: rule={decision.matched_rule}, external={decision.allow_external}, "
        f"tool={tool.name if tool else None}, mode={mode.value}"
    )
    return plan
