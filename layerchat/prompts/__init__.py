"""
Output-mode classification, persona and prompt composition.
"""
from layerchat.prompts.composer import apply_variant, build_enrichment, compose_prompt_bundle
from layerchat.prompts.output_mode import MODE_CONTRACTS, ModeContract, classify_output_mode, is_procedural_query
from layerchat.prompts.persona import DEFAULT_PERSONA, PersonaConfig

__all__ = [
    "apply_variant",
    "build_enrichment",
    "compose_prompt_bundle",
    "MODE_CONTRACTS",
    "ModeContract",
    "classify_output_mode",
    "is_procedural_query",
    "DEFAULT_PERSONA",
    "PersonaConfig",
]
