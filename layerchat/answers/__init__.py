"""
Answer finalization and display formatting.
"""
from layerchat.answers.finalizer import auto_mathify, extract_sources, finalize_response, split_dual_response
from layerchat.answers.formatting import display_preview

__all__ = ["auto_mathify", "extract_sources", "finalize_response", "split_dual_response", "display_preview"]
