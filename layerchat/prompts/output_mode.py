"""
Output-mode classification and the response-shape contract of each mode.

The classifier is an ordered predicate cascade: the first match wins, so the
same query always yields the same mode.
"""
from dataclasses import dataclass
from typing import Dict, List, Pattern, Tuple
import re

from layerchat.schemas.chat import OutputMode

CONCISE_TAG = "CONCISE"
EXPLANATION_TAG = "EXPLANATION"

SHORT_QUERY_TOKENS = 6
LONG_QUERY_CHARS = 120
LONG_QUERY_LINES = 3

# Capability / integration / feasibility intent
CAPABILITY_PATTERNS: List[Pattern] = [
    re.compile(r"can (i|we|you) use [\w\s-]+ (for|to) "),
    re.compile(r"can [\w\s-]+ be used for "),
    re.compile(r"can we use .*\?"),
    re.compile(r"\buse \w+[\w\s-]* for \w+"),
    re.compile(r"best (way|method) to "),
    re.compile(r"how (do|to) (add|integrate|use|implement|setup|set up|configure|install) "),
    re.compile(r"\b(integrate|integration) .* (with|into) "),
    re.compile(r"\b(add|install|configure|setup|set up) .* (library|package|plugin|module)"),
    re.compile(r"should i use "),
    re.compile(r"is it (ok|okay|possible) to use "),
]

REASONING_PATTERNS: List[Pattern] = [
    re.compile(r"\b(why|reason|explain|because)\b"),
    re.compile(r"\b(how|steps|process|procedure|derive|prove|proof|show that)\b"),
    re.compile(r"\b(compare|difference between|versus|vs|advantages|disadvantages|pros|cons|trade[- ]?offs?)\b"),
    re.compile(r"\b(detailed|elaborate|in detail|step by step|step-by-step|walk me through)\b"),
]

EXPLANATION_ONLY_PATTERN = re.compile(r"explanation only|just explain|only explanation")
MULTI_QUESTION_PATTERN = re.compile(r"\?[^?]+\?")

SIMPLE_MATH_PATTERN = re.compile(
    r"^(?:[\d\s+*/×÷\-()%.^=]+"
    r"|calculate\s+\d+(?:\.\d+)?%?(?:\s*of\s*\d+(?:\.\d+)?)?"
    r"|what\s+is\s+\d+(?:\.\d+)?%?(?:\s*of\s*\d+(?:\.\d+)?)?"
    r"|\d+(?:\.\d+)?%\s*of\s*\d+(?:\.\d+)?)\??$",
    re.IGNORECASE,
)

GREETING_PATTERN = re.compile(r"^(hi|hey|hello|thanks|thank you)\b")

PROCEDURAL_PATTERN = re.compile(
    r"(calculate|compute|solve|deriv(e|ation)|prove|convert|steps|how to|install|configure|set ?up"
    r"|algorithm|recipe|procedure|workflow|process|integrat(e|ion))",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ModeContract:
    """Response-shape contract bound to one output mode."""
    mode: OutputMode
    required_tags: Tuple[str, ...]
    forbidden_tags: Tuple[str, ...]
    instruction: str


MODE_CONTRACTS: Dict[OutputMode, ModeContract] = {
    OutputMode.DUAL: ModeContract(
        mode=OutputMode.DUAL,
        required_tags=(CONCISE_TAG, EXPLANATION_TAG),
        forbidden_tags=(),
        instruction=(
            "OUTPUT FORMAT (MANDATORY):\n"
            "<CONCISE>A single self-contained sentence (or minimal expression when a number is best) "
            "that directly answers the user. Include units and context. No filler preface.</CONCISE>\n"
            "<EXPLANATION>A rich expansion that does not repeat the concise sentence as its first line. "
            "Include reasoning, math ($...$ or $$...$$), structured sections, and end with a bold "
            "**Final Answer:** line.</EXPLANATION>\n"
            "Always output BOTH tags exactly once."
        ),
    ),
    OutputMode.CONCISE_ONLY: ModeContract(
        mode=OutputMode.CONCISE_ONLY,
        required_tags=(CONCISE_TAG,),
        forbidden_tags=(EXPLANATION_TAG,),
        instruction=(
            "OUTPUT FORMAT (MANDATORY):\n"
            "<CONCISE>Only a single natural sentence (or tight expression) with enough context to stand "
            "alone. No additional commentary.</CONCISE>\n"
            "Output ONLY this tag and nothing else."
        ),
    ),
    OutputMode.EXPLANATION_ONLY: ModeContract(
        mode=OutputMode.EXPLANATION_ONLY,
        required_tags=(),
        forbidden_tags=(CONCISE_TAG, EXPLANATION_TAG),
        instruction=(
            "OUTPUT FORMAT (MANDATORY): A direct, full explanation. Start with a one-line bold summary, "
            "then detailed reasoning, and a bold **Final Answer:** line if applicable. "
            "Do NOT use <CONCISE> or <EXPLANATION> tags."
        ),
    ),
}


def classify_output_mode(query: str) -> OutputMode:
    """
    Decide the output mode for a query.

    Args:
        query: Raw user text

    Returns:
        OutputMode for the whole request
    """
    text = query.strip()
    lower = text.lower()

    if any(p.search(lower) for p in CAPABILITY_PATTERNS):
        return OutputMode.EXPLANATION_ONLY

    reasoning = any(p.search(lower) for p in REASONING_PATTERNS)
    lengthy = len(text) > LONG_QUERY_CHARS or len(text.split("\n")) > LONG_QUERY_LINES
    multi_question = bool(MULTI_QUESTION_PATTERN.search(text))
    if reasoning or lengthy or multi_question:
        if EXPLANATION_ONLY_PATTERN.search(lower):
            return OutputMode.EXPLANATION_ONLY
        return OutputMode.DUAL

    if (
        SIMPLE_MATH_PATTERN.match(text)
        or len(text.split()) <= SHORT_QUERY_TOKENS
        or GREETING_PATTERN.match(lower)
    ):
        return OutputMode.CONCISE_ONLY

    return OutputMode.DUAL


def is_procedural_query(query: str) -> bool:
    """True when the query asks for a procedure that reads best as numbered steps."""
    return bool(PROCEDURAL_PATTERN.search(query))
