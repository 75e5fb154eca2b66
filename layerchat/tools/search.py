"""
Web search tool backed by the Serper API.
"""
from datetime import datetime
from typing import Any, Dict, Optional
import logging
import re

from layerchat.core.errors import ToolUnavailable
from layerchat.tools.base import Tool

# Configure logging
logger = logging.getLogger(__name__)

SEARCH_TRIGGER = re.compile(
    r"@search|search for|find information|what's happening|latest news|current events"
    r"|stock price|\blatest\b|\brecent\b|\bcurrently\b|real-time|what's new|happening now"
    r"|\bprice\b|\bcost\b|\bworth\b|\bmarket\b|\bbitcoin\b|\bcrypto\b|\bcurrency\b"
    r"|\bcompany\b|\bnews\b|\btrending\b|who is|when did|how much|how many",
    re.IGNORECASE,
)

_MENTION = re.compile(r"@search\s*", re.IGNORECASE)


class SearchTool(Tool):
    name = "search"
    label = "Internet Search"
    description = (
        "Search the internet for current information, real-time data, news, facts, prices, "
        "and any information that benefits from up-to-date sources"
    )
    mentions = ("internetsearch", "web")
    trigger = SEARCH_TRIGGER
    default_timeout = 10.0
    evidentiary = True
    source_tag = "serper_api"
    fallback_tag = "search_fallback"

    def __init__(
        self,
        api_key: str = "",
        url: str = "https://google.serper.dev/search",
        num_results: int = 6,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.url = url
        self.num_results = num_results

    async def _run(self, query: str) -> Dict[str, Any]:
        if not self.api_key:
            raise ToolUnavailable("Serper API key not configured")

        search_query = enhance_query(query)
        async with self.client() as client:
            response = await client.post(
                self.url,
                json={"q": search_query, "num": self.num_results},
                headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        results = [
            {
                "title": item.get("title", ""),
                "url": item.get("link", ""),
                "snippet": item.get("snippet", ""),
                "date": item.get("date"),
                "position": item.get("position"),
            }
            for item in data.get("organic") or []
        ]
        answer_box = data.get("answerBox")
        knowledge_graph = data.get("knowledgeGraph")
        search_info = data.get("searchInformation") or {}

        logger.info(f"Search returned {len(results)} results for '{search_query[:50]}'")
        return {
            "query": search_query,
            "original_query": query,
            "results": results,
            "answer_box": _pick(answer_box, "answer", "snippet", "title", "link"),
            "knowledge_graph": _pick(knowledge_graph, "title", "type", "description", "attributes"),
            "sitelinks": (data.get("sitelinks") or [])[:3],
            "total_results": search_info.get("totalResults", 0),
        }

    def _fallback_payload(self, query: str, reason: str) -> Dict[str, Any]:
        return {
            "query": query,
            "results": [],
            "message": "Unable to perform web search. Please check the Serper API configuration.",
        }


def enhance_query(query: str) -> str:
    """
    Add recency context to a search query.

    Args:
        query: Raw user text

    Returns:
        Query sent to the search API
    """
    search_query = _MENTION.sub("", query).strip() or query
    lower = query.lower()

    if re.search(r"\b(price|cost|value|worth)\b", lower):
        if not any(word in search_query for word in ("current", "latest", "today")):
            search_query = f"current {search_query}"

    if re.search(r"\b(bitcoin|btc|ethereum|eth|crypto|cryptocurrency)\b", lower) and "price" in lower:
        search_query = f"{search_query} latest price today USD"

    if re.search(r"\b(company|business|startup|stock)\b", lower):
        if "news" not in search_query and "latest" not in search_query:
            search_query = f"{search_query} latest news"

    if lower.startswith("what is") or lower.startswith("who is"):
        search_query = f"{search_query} {datetime.now().year} latest information"

    return search_query


def _pick(data: Optional[Dict[str, Any]], *keys: str) -> Optional[Dict[str, Any]]:
    if not data:
        return None
    return {key: data.get(key) for key in keys}
