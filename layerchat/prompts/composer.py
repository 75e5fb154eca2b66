"""
Prompt composition.

``compose_prompt_bundle`` is a pure function: identical inputs always produce
an identical PromptBundle. Enrichment text rendered from a tool result replaces
the raw query as the user prompt.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from layerchat.prompts.output_mode import MODE_CONTRACTS
from layerchat.prompts.persona import DEFAULT_PERSONA, PersonaConfig
from layerchat.prompts.style import context_hint
from layerchat.schemas.chat import OutputMode, PromptBundle, Source, ToolResult

# Configure logging
logger = logging.getLogger(__name__)

STYLE_MARKER = "STYLE_INSTRUCTIONS_V1"

STEP_INSTRUCTION = "Explain with clear numbered steps (Step 1, Step 2, ...)."
PROSE_INSTRUCTION = "Provide a concise, well-structured explanation (avoid artificial step headings)."

VARIANT_INSTRUCTIONS: Dict[str, str] = {
    "add-details": (
        "Regenerate with a richly detailed, well-structured explanation: numbered steps when helpful, "
        "brief rationale, LaTeX for ALL math, and a **Final Answer: ...** line. Do NOT restate the "
        "question verbatim at the start. You may keep <CONCISE> and <EXPLANATION> tags."
    ),
    "more-concise": (
        "Answer with the most concise single sentence or expression giving ONLY the final result in "
        'bold, then optionally append: "Want a breakdown?". No steps, no extra commentary.'
    ),
}

SEARCH_INSTRUCTIONS = """INSTRUCTIONS:
- Analyze and reason about the search data before presenting the answer
- Synthesize the information; do not copy-paste from the results
- Be specific: include actual numbers, prices, dates or facts from the results
- Do NOT say you lack access to real-time information; current data is provided above
- If sources disagree, acknowledge and explain the differences
- Structure the response: context, key findings, implications, conclusion"""


def build_style_segment(mode: OutputMode, procedural: bool) -> str:
    contract = MODE_CONTRACTS[mode]
    step_line = STEP_INSTRUCTION if procedural else PROSE_INSTRUCTION
    return (
        f"({STYLE_MARKER}) STYLE & OUTPUT RULES:\n"
        f"OUTPUT_MODE: {mode.value}\n"
        f"{step_line}\n"
        "Use LaTeX for ALL math expressions (inline $...$, display $$...$$). Bold the final answer line. "
        "Keep the tone analytical yet approachable. Never output the final answer twice.\n"
        f"{contract.instruction}"
    )


def compose_prompt_bundle(
    mode: OutputMode,
    query: str,
    persona: PersonaConfig = DEFAULT_PERSONA,
    enrichment: Optional[str] = None,
    procedural: bool = False,
) -> PromptBundle:
    """
    Compose the system and user prompts for one request.

    Args:
        mode: Output mode decided for the request
        query: Raw user text
        persona: Persona segments
        enrichment: Tool-derived user text replacing the raw query
        procedural: Whether to ask for numbered steps

    Returns:
        PromptBundle carrying the mode
    """
    system = "\n\n".join([
        persona.render(context_hint(query)),
        f"{persona.formatting_rules}\n{build_style_segment(mode, procedural)}",
        persona.few_shot_examples,
    ])
    user = enrichment if enrichment else query
    return PromptBundle(system=system, user=user, mode=mode)


def apply_variant(user_text: str, variant: Optional[str]) -> str:
    """Append a regeneration variant instruction to the user text."""
    if not variant:
        return user_text
    instruction = VARIANT_INSTRUCTIONS.get(variant)
    if instruction is None:
        raise ValueError(f"Unknown variant: {variant}")
    return f"{user_text}\n\nVARIANT_MODE: {variant}\n{instruction}"


def build_enrichment(
    query: str,
    tool_result: ToolResult,
    evidence: Optional[List[Source]] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Render a tool result into the user prompt that replaces the raw query.

    Args:
        query: Raw user text
        tool_result: Result returned by the selected tool
        evidence: Curated sources for evidentiary tools
        now: Timestamp stamped into the prompt (defaults to current UTC time)

    Returns:
        Enrichment text
    """
    payload = tool_result.payload
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M UTC")

    if tool_result.degraded:
        return _render_degraded(query, tool_result, stamp)

    renderer = _RENDERERS.get(tool_result.tool)
    if renderer is None:
        logger.warning(f"No enrichment renderer for tool '{tool_result.tool}', using raw payload")
        body = "\n".join(f"- {key}: {value}" for key, value in payload.items())
    else:
        body = renderer(payload, evidence or [])

    return (
        f'The user asked: "{query}"\n\n'
        f"{body}\n\n"
        f"Data retrieved on: {stamp}\n"
        f"Data source: {tool_result.source_tag}"
    )


def _render_search(payload: Dict[str, Any], evidence: List[Source]) -> str:
    lines = [
        "IMPORTANT: Current information from an internet search is provided below. "
        "Use it to give an accurate, up-to-date response.",
        "",
        "CURRENT SEARCH RESULTS:",
        "",
    ]
    answer_box = payload.get("answer_box") or {}
    if answer_box.get("answer"):
        lines.append(f"DIRECT ANSWER: {answer_box['answer']}")
        lines.append("")
    knowledge_graph = payload.get("knowledge_graph") or {}
    if knowledge_graph.get("description"):
        lines.append(f"KEY INFORMATION: {knowledge_graph['description']}")
        lines.append("")

    if evidence:
        lines.append(f"SEARCH RESULTS ({len(evidence)} curated):")
        lines.append("")
        for source in evidence:
            lines.append(f"[{source.id}] **{source.title}**")
            lines.append(f"   {source.snippet}")
            lines.append(f"   Source: {source.url}")
            if source.date:
                lines.append(f"   Date: {source.date}")
            lines.append("")
    else:
        lines.append("No result passed the relevance filter; rely on the direct answer if present.")
        lines.append("")

    sitelinks = payload.get("sitelinks") or []
    if sitelinks:
        lines.append("ADDITIONAL RESOURCES:")
        for index, link in enumerate(sitelinks, start=1):
            lines.append(f"{index}. {link.get('title', '')}: {link.get('link', '')}")
        lines.append("")

    lines.append(SEARCH_INSTRUCTIONS)
    return "\n".join(lines)


def _render_weather(payload: Dict[str, Any], evidence: List[Source]) -> str:
    current = payload.get("current") or {}
    place = ", ".join(part for part in (payload.get("location"), payload.get("country")) if part)
    lines = [
        f"CURRENT WEATHER for {place}:",
        f"- Temperature: {current.get('temperature')} (feels like {current.get('feels_like')})",
        f"- Condition: {current.get('condition')}",
        f"- Humidity: {current.get('humidity')}",
        f"- Wind: {current.get('wind')}",
        "",
        "FORECAST:",
    ]
    for day in payload.get("forecast") or []:
        lines.append(
            f"- {day.get('date')}: {day.get('condition')}, high {day.get('max_temp')}, "
            f"low {day.get('min_temp')}, rain {day.get('chance_of_rain')}"
        )
    lines.append("")
    lines.append("Answer the weather question using this data; mention the location explicitly.")
    return "\n".join(lines)


def _render_clock(payload: Dict[str, Any], evidence: List[Source]) -> str:
    return "\n".join([
        f"CURRENT TIME for {payload.get('location')}:",
        f"- Time: {payload.get('current_time')}",
        f"- Date: {payload.get('current_date')}",
        f"- Timezone: {payload.get('timezone')} (UTC offset {payload.get('utc_offset') or 'n/a'})",
        "",
        "Answer with the current local time and date for the requested location.",
    ])


def _render_videos(payload: Dict[str, Any], evidence: List[Source]) -> str:
    lines = [f"YOUTUBE RESULTS for \"{payload.get('query')}\":", ""]
    for index, video in enumerate(payload.get("videos") or [], start=1):
        lines.append(f"{index}. **{video.get('title')}** by {video.get('channel_title')}")
        lines.append(f"   {video.get('url')}")
    lines.append("")
    lines.append("Recommend the most relevant videos and say briefly why each is useful.")
    return "\n".join(lines)


def _render_math(payload: Dict[str, Any], evidence: List[Source]) -> str:
    steps = "\n".join(f"- {step}" for step in payload.get("steps") or [])
    return (
        f"CALCULATION RESULT:\n{steps}\n\n"
        f"The verified result is {payload.get('formatted')}. Present it and explain how it is obtained."
    )


def _render_degraded(query: str, tool_result: ToolResult, stamp: str) -> str:
    payload = tool_result.payload
    lines = [
        f'The user asked: "{query}"',
        "",
        f"NOTE: The {tool_result.tool} tool was unavailable ({payload.get('error', 'unknown error')}).",
        "Answer from your own knowledge, say clearly that live data could not be retrieved, "
        "and do not invent current figures.",
    ]
    # The clock fallback still carries a usable system time
    if tool_result.tool == "clock" and payload.get("current_time"):
        lines.append(
            f"System clock reading: {payload['current_time']} on {payload.get('current_date')} "
            f"({payload.get('timezone')})."
        )
    if payload.get("message"):
        lines.append(f"Service message: {payload['message']}")
    if payload.get("suggestion"):
        lines.append(f"Suggest to the user: {payload['suggestion']}")
    if payload.get("examples"):
        lines.append("Examples of supported input: " + "; ".join(payload["examples"]))
    lines.append("")
    lines.append(f"Attempted on: {stamp}")
    return "\n".join(lines)


_RENDERERS = {
    "search": _render_search,
    "weather": _render_weather,
    "clock": _render_clock,
    "youtube": _render_videos,
    "math": _render_math,
}
