"""
Tests for prompt composition and tool enrichment.
"""
from datetime import datetime, timezone

import pytest

from layerchat.prompts.composer import (
    STEP_INSTRUCTION,
    STYLE_MARKER,
    apply_variant,
    build_enrichment,
    build_style_segment,
    compose_prompt_bundle,
)
from layerchat.prompts.persona import PersonaConfig
from layerchat.prompts.style import InteractionContext, analyze_interaction_context
from layerchat.rag.evidence import evidence_from_result
from layerchat.schemas.chat import OutputMode, ToolResult
from layerchat.tools.calculator import MathTool
from layerchat.tools.clock import ClockTool
from tests.fakes import SEARCH_PAYLOAD

NOW = datetime(2024, 7, 26, 9, 30, tzinfo=timezone.utc)


class TestBundle:
    def test_dual_mandates_both_tags(self):
        bundle = compose_prompt_bundle(OutputMode.DUAL, "Why is the sky blue?")

        assert bundle.mode == OutputMode.DUAL
        assert bundle.user == "Why is the sky blue?"
        assert "OUTPUT_MODE: DUAL" in bundle.system
        assert "Always output BOTH tags exactly once." in bundle.system

    def test_concise_only_segment(self):
        segment = build_style_segment(OutputMode.CONCISE_ONLY, procedural=False)

        assert STYLE_MARKER in segment
        assert "Output ONLY this tag" in segment
        assert "<EXPLANATION>" not in segment

    def test_explanation_only_forbids_tags(self):
        segment = build_style_segment(OutputMode.EXPLANATION_ONLY, procedural=False)
        assert "Do NOT use <CONCISE> or <EXPLANATION> tags." in segment

    def test_procedural_asks_for_steps(self):
        bundle = compose_prompt_bundle(OutputMode.DUAL, "How to install numpy", procedural=True)
        assert STEP_INSTRUCTION in bundle.system

    def test_composition_is_pure(self):
        first = compose_prompt_bundle(OutputMode.DUAL, "Explain closures in Python")
        second = compose_prompt_bundle(OutputMode.DUAL, "Explain closures in Python")
        assert first == second

    def test_enrichment_replaces_user_prompt(self):
        bundle = compose_prompt_bundle(OutputMode.DUAL, "weather in Paris", enrichment="ENRICHED")
        assert bundle.user == "ENRICHED"

    def test_custom_persona(self):
        persona = PersonaConfig(base_prompt="You are Tester.")

        bundle = compose_prompt_bundle(OutputMode.CONCISE_ONLY, "hi", persona=persona)

        assert bundle.system.startswith("You are Tester.\nContext: category=greeting.")

    def test_bundle_is_frozen(self):
        bundle = compose_prompt_bundle(OutputMode.DUAL, "x")
        with pytest.raises(Exception):
            bundle.user = "y"


class TestContextHint:
    @pytest.mark.parametrize("query,expected", [
        ("hello!", InteractionContext.GREETING),
        ("help me understand monads", InteractionContext.LEARNING),
        ("fix this error please", InteractionContext.PROBLEM_SOLVING),
        ("write a poem about rain", InteractionContext.CREATIVE),
        ("", InteractionContext.CONVERSATIONAL),
    ])
    def test_analyze(self, query, expected):
        assert analyze_interaction_context(query) == expected


class TestVariants:
    def test_apply_variant(self):
        text = apply_variant("2 + 2", "more-concise")

        assert text.startswith("2 + 2\n\nVARIANT_MODE: more-concise\n")

    def test_no_variant_is_identity(self):
        assert apply_variant("2 + 2", None) == "2 + 2"

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            apply_variant("2 + 2", "shout")


class TestEnrichment:
    def test_search_enrichment_lists_curated_evidence(self):
        result = ToolResult(tool="search", payload=SEARCH_PAYLOAD, source_tag="serper_api")
        evidence = evidence_from_result(result, "latest rust release")

        text = build_enrichment("latest rust release", result, evidence, now=NOW)

        assert text.startswith('The user asked: "latest rust release"')
        assert "[1] **Rust 1.80 released**" in text
        assert "category/programming" not in text
        assert "Data retrieved on: 2024-07-26 09:30 UTC" in text
        assert "Data source: serper_api" in text

    def test_math_enrichment(self):
        result = ToolResult(
            tool="math",
            payload={"expression": "2 + 2", "result": 4.0, "formatted": "4", "steps": ["Result: 4"]},
            source_tag="math_calculator",
        )

        text = build_enrichment("2 + 2", result, now=NOW)

        assert "The verified result is 4." in text

    def test_degraded_enrichment_explains_unavailability(self):
        result = MathTool().degraded_result("what is love", "Invalid mathematical expression")

        text = build_enrichment("what is love", result, now=NOW)

        assert "The math tool was unavailable (Invalid mathematical expression)" in text
        assert "Examples of supported input:" in text

    def test_degraded_clock_carries_system_time(self):
        result = ClockTool().degraded_result("what time is it in Tokyo", "timed out")

        text = build_enrichment("what time is it in Tokyo", result, now=NOW)

        assert "System clock reading:" in text
        assert result.payload["message"] in text
