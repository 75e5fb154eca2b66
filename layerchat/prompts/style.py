"""
Interaction-context detection feeding the persona's context hint.

The hint is deterministic so identical queries compose identical prompts.
"""
from enum import Enum
from typing import Dict, List, Pattern, Tuple
import re


class InteractionContext(str, Enum):
    GREETING = "greeting"
    LEARNING = "learning"
    PROBLEM_SOLVING = "problem_solving"
    TECHNICAL = "technical"
    CREATIVE = "creative"
    CONVERSATIONAL = "conversational"


_CONTEXT_PATTERNS: List[Tuple[InteractionContext, Pattern]] = [
    (
        InteractionContext.GREETING,
        re.compile(r"^(hi|hey|hello|yo|sup|hiya|hi there|hey there|good (morning|afternoon|evening))[!. ]*$"),
    ),
    (
        InteractionContext.LEARNING,
        re.compile(r"\b(explain|understand|learn|teach|how does|why does|what is|help me understand)\b"),
    ),
    (
        InteractionContext.PROBLEM_SOLVING,
        re.compile(r"\b(solve|fix|debug|error|problem|issue|stuck|calculate|build|implement)\b"),
    ),
    (
        InteractionContext.TECHNICAL,
        re.compile(r"\b(function|class|react|typescript|python|code|api|database|server|deploy|docker)\b"),
    ),
    (
        InteractionContext.CREATIVE,
        re.compile(r"\b(story|poem|brainstorm|ideas|creative|design|metaphor|imagine)\b"),
    ),
]

CONTEXT_GUIDANCE: Dict[InteractionContext, str] = {
    InteractionContext.GREETING: (
        "User is greeting you. Respond warmly and naturally, then move on to being helpful."
    ),
    InteractionContext.LEARNING: (
        "User wants to understand something. Explain clearly with examples and analogies, "
        "adapting to their level."
    ),
    InteractionContext.PROBLEM_SOLVING: (
        "User has a specific problem. Focus on practical solutions and break the problem down logically."
    ),
    InteractionContext.TECHNICAL: (
        "Technical discussion. Be accurate, give working examples and consider edge cases."
    ),
    InteractionContext.CREATIVE: (
        "Creative session. Be imaginative while staying helpful and build on their ideas."
    ),
    InteractionContext.CONVERSATIONAL: (
        "General conversation. Respond naturally based on what they need."
    ),
}


def analyze_interaction_context(query: str) -> InteractionContext:
    text = query.strip().lower()
    if not text:
        return InteractionContext.CONVERSATIONAL
    for context, pattern in _CONTEXT_PATTERNS:
        if pattern.search(text):
            return context
    return InteractionContext.CONVERSATIONAL


def context_hint(query: str) -> str:
    """Build the persona context hint for a query."""
    context = analyze_interaction_context(query)
    return f"category={context.value}. {CONTEXT_GUIDANCE[context]}"
