"""
Tool selection for a query.

Selection is pure: it never invokes a tool. An explicit ``@name`` mention wins
regardless of policy; automatic selection runs only when the policy decision
allows external retrieval.
"""
from typing import List, Optional, Pattern, Tuple
import logging
import re

from rapidfuzz import fuzz

from layerchat.policy.engine import PolicyDecision
from layerchat.tools.base import Tool, normalize_handle
from layerchat.tools.registry import ToolRegistry

# Configure logging
logger = logging.getLogger(__name__)

FUZZY_MENTION_THRESHOLD = 90
FUZZY_MIN_LENGTH = 4

# "@" not preceded by a word character, so e-mail addresses are ignored
MENTION_PATTERN = re.compile(r"(?<!\w)@([A-Za-z][\w-]*)")

# Intent category -> regex -> tool name, tested in this order
FALLBACK_CASCADE: List[Tuple[str, Pattern, str]] = [
    (
        "temporal",
        re.compile(r"\b(time|clock|date|timezone|hour|minute|when is|what day|today|now|current)\b"),
        "clock",
    ),
    (
        "environmental",
        re.compile(r"\b(weather|temperature|rain|sunny|cloudy|forecast|climate)\b"),
        "weather",
    ),
    (
        "arithmetic",
        re.compile(r"\b(calculate|math|solve|equation|formula|compute|sum|multiply|divide|percentage)\b"),
        "math",
    ),
    (
        "media",
        re.compile(r"\b(video|youtube|watch|tutorial)\b|how to.*video|show me.*video"),
        "youtube",
    ),
    (
        "informational",
        re.compile(
            r"\b(latest|recent|news|current|happening|update|search|find|look up|tell me about"
            r"|what is|who is|where is|how is|why is|when did|how much|how many|price|cost|value"
            r"|worth|market|stock|crypto|bitcoin|ethereum|currency|exchange rate|trending|popular"
            r"|best|top|compare|vs|versus|review|status|available|open|closed|schedule|events"
            r"|releases|updates|launches)\b"
        ),
        "search",
    ),
]

SEARCH_TOOL_NAME = "search"

# Wide catalog tried last; biases ambiguous queries toward retrieval
SEARCH_HEURISTICS: List[Pattern] = [
    re.compile(
        r"\b(price|cost|value|worth|market|stock|crypto|bitcoin|ethereum|currency|exchange|trading"
        r"|invest|finance|economy|inflation|interest|rate|usd|eur|gbp|jpy|cad|aud|inr)\b"
    ),
    re.compile(
        r"\b(company|business|startup|corporation|enterprise|revenue|profit|earnings|ipo|acquisition"
        r"|merger|ceo|founder|valuation|funding|investment)\b"
    ),
    re.compile(
        r"\b(technology|tech|software|hardware|app|website|platform|service|product|device|gadget"
        r"|phone|computer|ai|artificial intelligence|machine learning|blockchain|cloud|cybersecurity)\b"
    ),
    re.compile(
        r"\b(sports|football|basketball|baseball|soccer|tennis|olympics|game|match|score|winner"
        r"|championship|tournament|movie|film|show|series|actor|actress|celebrity|music|album|song"
        r"|artist|concert|award)\b"
    ),
    re.compile(
        r"\b(health|medicine|disease|treatment|vaccine|drug|research|study|science|discovery"
        r"|breakthrough|environment|space|nasa|mars|planet|universe|covid|virus|pandemic)\b"
    ),
    re.compile(
        r"\b(politics|election|president|government|policy|law|congress|senate|parliament|minister"
        r"|democracy|vote|campaign|war|conflict|peace|treaty|agreement|summit|meeting)\b"
    ),
    re.compile(
        r"^(what|who|where|when|how|why|which|is|are|was|were|do|does|did|can|could|will|would"
        r"|should|may|might)\b"
    ),
    # Year tokens, currency amounts, hashtags
    re.compile(r"\b(19|20)\d{2}\b|[$€£¥₹]\s?\d+|#\w+"),
]

# Proper-noun bigrams are only visible before lowercasing
PROPER_NOUN_BIGRAM = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b")


def find_mentions(query: str) -> List[str]:
    """Return normalized @mention markers in order of appearance."""
    markers = []
    for raw in MENTION_PATTERN.findall(query):
        marker = normalize_handle(raw)
        if marker:
            markers.append(marker)
    return markers


def resolve_explicit(query: str, registry: ToolRegistry) -> Optional[Tool]:
    """
    Resolve an explicit @mention against the registry.

    Tools are checked in registry order and the first one mentioned wins.
    Exact handles are tried before fuzzy matches, which only apply to
    markers long enough to compare reliably.

    Args:
        query: Raw user text
        registry: Ordered tool registry

    Returns:
        The mentioned tool, or None
    """
    markers = find_mentions(query)
    if not markers:
        return None

    for tool in registry:
        handles = tool.handles()
        if any(marker in handles for marker in markers):
            return tool

    fuzzy_markers = [marker for marker in markers if len(marker) >= FUZZY_MIN_LENGTH]
    for tool in registry:
        for marker in fuzzy_markers:
            for handle in tool.handles():
                if len(handle) < FUZZY_MIN_LENGTH:
                    continue
                if fuzz.ratio(marker, handle) >= FUZZY_MENTION_THRESHOLD:
                    logger.info(f"Fuzzy mention '@{marker}' resolved to tool '{tool.name}'")
                    return tool
    return None


def resolve_automatic(query: str, registry: ToolRegistry) -> Optional[Tool]:
    """
    Pick a tool from the query content alone.

    Args:
        query: Raw user text
        registry: Ordered tool registry

    Returns:
        Selected tool, or None when nothing suggests one
    """
    for tool in registry:
        if tool.matches(query):
            return tool

    lower = query.lower()
    for category, pattern, tool_name in FALLBACK_CASCADE:
        if pattern.search(lower):
            tool = registry.get(tool_name)
            if tool is not None:
                logger.debug(f"Fallback category '{category}' selected tool '{tool_name}'")
                return tool

    search = registry.get(SEARCH_TOOL_NAME)
    if search is None:
        return None
    if any(pattern.search(lower) for pattern in SEARCH_HEURISTICS) or PROPER_NOUN_BIGRAM.search(query):
        return search
    return None


def select_tool(
    query: str,
    registry: ToolRegistry,
    decision: PolicyDecision,
    auto_enabled: bool = True,
) -> Optional[Tool]:
    """
    Select at most one tool for a query.

    Args:
        query: Raw user text
        registry: Ordered tool registry
        decision: Policy decision for the same query
        auto_enabled: Whether automatic selection is switched on

    Returns:
        Selected tool, or None
    """
    tool = resolve_explicit(query, registry)
    if tool is not None:
        logger.info(f"Explicit mention selected tool '{tool.name}'")
        return tool

    if not auto_enabled or not decision.allow_external:
        return None

    tool = resolve_automatic(query, registry)
    if tool is not None:
        logger.info(f"Automatic selection chose tool '{tool.name}' (rule: {decision.matched_rule})")
    return tool
