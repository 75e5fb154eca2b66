"""
Retrieval-side helpers: evidence filtering and ranking.
"""
from layerchat.rag.evidence import curate_evidence, evidence_from_result, filter_evidence, is_news_like, rank_evidence

__all__ = ["curate_evidence", "evidence_from_result", "filter_evidence", "is_news_like", "rank_evidence"]
