from typing import Any, Dict
from urllib.parse import quote_plus
import logging
import re

from layerchat.core.errors import ToolUnavailable
from layerchat.tools.base import Tool

# Configure logging
logger = logging.getLogger(__name__)

_MENTION = re.compile(r"@(youtube|video)\s*", re.IGNORECASE)


class YouTubeTool(Tool):
    """Video lookup through the YouTube Data API."""

    name = "youtube"
    label = "YouTube"
    description = "Search and get information from YouTube videos"
    mentions = ("video",)
    trigger = re.compile(r"@youtube|\byoutube\b|video about|find videos|watch.*video", re.IGNORECASE)
    default_timeout = 10.0
    source_tag = "youtube_api"
    fallback_tag = "youtube_fallback"

    def __init__(self, api_key: str = "", base_url: str = "https://www.googleapis.com/youtube/v3", max_results: int = 5, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.max_results = max_results

    async def _run(self, query: str) -> Dict[str, Any]:
        if not self.api_key:
            raise ToolUnavailable("YouTube API key not configured")

        search_query = _MENTION.sub("", query).strip() or query
        async with self.client() as client:
            response = await client.get(
                f"{self.base_url}/search",
                params={
                    "part": "snippet",
                    "q": search_query,
                    "type": "video",
                    "maxResults": self.max_results,
                    "key": self.api_key,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        videos = []
        for item in data.get("items") or []:
            video_id = (item.get("id") or {}).get("videoId")
            snippet = item.get("snippet") or {}
            if not video_id:
                continue
            videos.append({
                "id": video_id,
                "title": snippet.get("title", ""),
                "description": snippet.get("description", ""),
                "channel_title": snippet.get("channelTitle", ""),
                "published_at": snippet.get("publishedAt"),
                "url": f"https://www.youtube.com/watch?v={video_id}",
            })

        return {
            "query": search_query,
            "videos": videos,
            "total_results": (data.get("pageInfo") or {}).get("totalResults", 0),
        }

    def _fallback_payload(self, query: str, reason: str) -> Dict[str, Any]:
        search_query = _MENTION.sub("", query).strip() or query
        return {
            "query": search_query,
            "videos": [],
            "message": "Unable to search YouTube videos. Please check the YouTube API configuration.",
            "suggestion": f"https://www.youtube.com/results?search_query={quote_plus(search_query)}",
        }
