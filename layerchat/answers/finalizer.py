"""
Response finalization: split the concise/full spans, mathify arithmetic
lines, and attach citations.

Every step is deterministic on the accumulated text.
"""
from typing import List, Optional, Tuple
import logging
import re

from layerchat.answers.formatting import normalize_whitespace, strip_tags
from layerchat.rag.evidence import MAX_CITATIONS, evidence_from_result
from layerchat.schemas.chat import ChatMessage, OutputMode, Source, ToolResult

# Configure logging
logger = logging.getLogger(__name__)

_CONCISE_OPEN = re.compile(r"<CONCISE>", re.IGNORECASE)
_CONCISE_CLOSE = re.compile(r"</CONCISE>", re.IGNORECASE)
_EXPLANATION_OPEN = re.compile(r"<EXPLANATION>", re.IGNORECASE)
_EXPLANATION_CLOSE = re.compile(r"</EXPLANATION>", re.IGNORECASE)
_CONCISE_BLOCK = re.compile(r"<CONCISE>([\s\S]*?)</CONCISE>", re.IGNORECASE)
_EXPLANATION_BLOCK = re.compile(r"<EXPLANATION>([\s\S]*?)</EXPLANATION>", re.IGNORECASE)

_LEADING_MATH = re.compile(r"\$\$[\s\S]+?\$\$|\$[^$\n]+\$")
_SENTENCE = re.compile(r"[^.!?\n]{5,200}[.!?]")
FALLBACK_CONCISE_CHARS = 160

_FENCE = "```"
_HAS_MATH = re.compile(r"\$|\\\[|\\\(")
_MATHISH = re.compile(r"^[-+*/×÷=0-9().%\s]+$")
_BINARY_OP = re.compile(r"[\d)%]\s*[-+*/×÷=]\s*[\d(]")
_LIST_MARKER = re.compile(r"^([-*+]\s|\d+[.)]\s)")
MAX_OPERATOR_CHARS = 6


def _is_well_formed_pair(raw: str) -> bool:
    counts = [
        len(_CONCISE_OPEN.findall(raw)),
        len(_CONCISE_CLOSE.findall(raw)),
        len(_EXPLANATION_OPEN.findall(raw)),
        len(_EXPLANATION_CLOSE.findall(raw)),
    ]
    return counts == [1, 1, 1, 1] and bool(_CONCISE_BLOCK.search(raw)) and bool(_EXPLANATION_BLOCK.search(raw))


def derive_concise(text: str) -> str:
    """Heuristic short answer: leading math, else first sentence, else first line."""
    if not text:
        return ""
    leading = _LEADING_MATH.match(text)
    if leading:
        return leading.group(0).replace("$", "").strip()
    sentence = _SENTENCE.search(text)
    if sentence:
        return sentence.group(0).strip()
    return text.split("\n")[0][:FALLBACK_CONCISE_CHARS].strip()


def split_dual_response(raw: str) -> Tuple[str, str]:
    """
    Split backend output into (concise, full).

    Exactly one well-formed <CONCISE>/<EXPLANATION> pair is used verbatim.
    Anything else, including an unterminated tag, is treated as malformed:
    stray tags are stripped and the concise span is derived heuristically.

    Args:
        raw: Accumulated backend text

    Returns:
        Tuple of (concise, full)
    """
    if not raw or not raw.strip():
        return "", ""

    if _is_well_formed_pair(raw):
        concise = _CONCISE_BLOCK.search(raw).group(1).strip()
        full = _EXPLANATION_BLOCK.search(raw).group(1).strip()
        return concise, full

    cleaned = normalize_whitespace(strip_tags(raw))
    return derive_concise(cleaned), cleaned


def _mathify_line(line: str) -> str:
    raw = line.strip()
    if not raw or _HAS_MATH.search(raw) or _LIST_MARKER.match(raw):
        return line
    if not _MATHISH.match(raw) or not _BINARY_OP.search(raw):
        return line
    if len(re.sub(r"[0-9().%\s]", "", raw)) > MAX_OPERATOR_CHARS:
        return line
    wrapped = "$$" + raw.replace("%", "\\%") + "$$"
    return line.replace(raw, wrapped, 1)


def auto_mathify(text: str) -> str:
    """
    Wrap standalone arithmetic lines in display-math delimiters.

    Fenced code is never touched; an unterminated fence protects the rest of
    the text.
    """
    if not text:
        return text

    in_fence = False
    out = []
    for line in text.split("\n"):
        fences = line.count(_FENCE)
        if fences:
            # An inline pair opens and closes on the same line
            if fences % 2:
                in_fence = not in_fence
            out.append(line)
            continue
        out.append(line if in_fence else _mathify_line(line))
    return "\n".join(out)


def extract_sources(tool_result: Optional[ToolResult], query: str = "", limit: int = MAX_CITATIONS) -> List[Source]:
    """Citations for the final message, curated with the evidence policy."""
    return evidence_from_result(tool_result, query, limit=limit)


def finalize_response(
    raw: str,
    mode: OutputMode,
    tool_result: Optional[ToolResult] = None,
    query: str = "",
    model: Optional[str] = None,
    tokens: Optional[int] = None,
    policy_rule: Optional[str] = None,
) -> ChatMessage:
    """
    Build the terminal ChatMessage from accumulated backend text.

    Args:
        raw: Accumulated backend text
        mode: Output mode decided for the request
        tool_result: Result of the tool used for this request, if any
        query: Raw user text
        model: Model that generated the text
        tokens: Token usage reported by the backend
        policy_rule: Name of the governance rule that decided

    Returns:
        Finalized ChatMessage
    """
    concise, full = split_dual_response(raw)
    full = auto_mathify(full)
    explanation_available = bool(concise) and concise != full and mode == OutputMode.DUAL

    return ChatMessage(
        content=full,
        concise=concise or None,
        full=full,
        explanation_available=explanation_available,
        output_mode=mode,
        sources=extract_sources(tool_result, query),
        model=model,
        tool=tool_result.tool if tool_result else None,
        tokens=tokens,
        policy_rule=policy_rule,
    )
