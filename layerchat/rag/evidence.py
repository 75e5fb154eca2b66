"""
Evidence curation for retrieved web results.

The same filter and rank policy feeds both the prompt enrichment and the
citation list, so nothing excluded from the prompt is ever cited.
"""
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
import logging
import re

from layerchat.schemas.chat import Source, ToolResult

# Configure logging
logger = logging.getLogger(__name__)

MIN_SNIPPET_NEWS = 30
MIN_SNIPPET_GENERAL = 50
GENERIC_TITLE_SNIPPET_LIMIT = 120
MAX_EVIDENCE_NEWS = 10
MAX_EVIDENCE_GENERAL = 8
MAX_CITATIONS = 8

# Listing, index and category pages carry no citable content
LISTING_PATH_PATTERN = re.compile(
    r"/(category|categories|tag|tags|topic|topics|section|sections|archive|archives|author|authors"
    r"|latest|all-news|all-articles|page/\d+)(/|$)",
    re.IGNORECASE,
)

GENERIC_TITLE_PATTERN = re.compile(
    r"\b(latest|all|recent|top)\s+(news|articles|stories|posts|headlines|updates)\b"
    r"|\bnews archive\b|\barticles? archive\b",
    re.IGNORECASE,
)

NEWS_QUERY_PATTERN = re.compile(
    r"\b(news|latest|breaking|headlines?|today|yesterday|this week|announced|announcement|update)\b",
    re.IGNORECASE,
)


def is_listing_url(url: str) -> bool:
    if not url:
        return True
    path = urlparse(url).path or "/"
    return bool(LISTING_PATH_PATTERN.search(path))


def is_news_like(payload: Dict[str, Any], query: str = "") -> bool:
    """
    Classify a search result as news-like or general.

    Args:
        payload: Search tool payload
        query: Raw user text

    Returns:
        True when the payload says so, the query uses news vocabulary,
        or at least half of the results carry a date
    """
    if payload.get("news"):
        return True
    if query and NEWS_QUERY_PATTERN.search(query):
        return True
    results = payload.get("results") or []
    if not results:
        return False
    dated = sum(1 for item in results if item.get("date"))
    return dated * 2 >= len(results)


def filter_evidence(raw: List[Dict[str, Any]], news_like: bool) -> List[Dict[str, Any]]:
    """
    Drop listing pages, thin snippets, generic index titles and duplicate URLs.

    Args:
        raw: Raw result dicts with title, url, snippet and optional date
        news_like: Whether the news thresholds apply

    Returns:
        Accepted items in their original order
    """
    min_snippet = MIN_SNIPPET_NEWS if news_like else MIN_SNIPPET_GENERAL
    seen_urls = set()
    accepted = []

    for item in raw:
        url = (item.get("url") or "").strip()
        title = (item.get("title") or "").strip()
        snippet = (item.get("snippet") or "").strip()

        if is_listing_url(url):
            logger.debug(f"Rejected listing URL: {url}")
            continue
        if len(snippet) < min_snippet:
            continue
        if GENERIC_TITLE_PATTERN.search(title) and len(snippet) < GENERIC_TITLE_SNIPPET_LIMIT:
            continue
        if url in seen_urls:
            continue

        seen_urls.add(url)
        accepted.append(item)

    return accepted


def rank_evidence(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Order by (has date, snippet length), both descending; ties keep input order."""
    return sorted(
        items,
        key=lambda item: (bool(item.get("date")), len((item.get("snippet") or "").strip())),
        reverse=True,
    )


def curate_evidence(
    raw: List[Dict[str, Any]],
    news_like: bool,
    limit: Optional[int] = None,
) -> List[Source]:
    """
    Filter, rank and cap raw results into Source records.

    Args:
        raw: Raw result dicts
        news_like: Whether the news thresholds and cap apply
        limit: Optional tighter cap

    Returns:
        Sources with 1-based string ids
    """
    cap = MAX_EVIDENCE_NEWS if news_like else MAX_EVIDENCE_GENERAL
    if limit is not None:
        cap = min(cap, limit)

    ranked = rank_evidence(filter_evidence(raw, news_like))[:cap]
    sources = [
        Source(
            id=str(index),
            title=(item.get("title") or "").strip(),
            url=(item.get("url") or "").strip(),
            snippet=(item.get("snippet") or "").strip(),
            date=item.get("date") or None,
        )
        for index, item in enumerate(ranked, start=1)
    ]
    logger.info(f"Curated {len(sources)} of {len(raw)} results (news_like={news_like})")
    return sources


def evidence_from_result(tool_result: Optional[ToolResult], query: str = "", limit: Optional[int] = None) -> List[Source]:
    """Curate the evidence carried by a tool result; non-search results carry none."""
    if tool_result is None or tool_result.degraded:
        return []
    raw = tool_result.payload.get("results")
    if not raw:
        return []
    return curate_evidence(raw, is_news_like(tool_result.payload, query), limit=limit)
