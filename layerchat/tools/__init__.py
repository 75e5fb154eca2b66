"""
Augmentation tools, their registry, and the dispatcher that picks one per query.
"""
from layerchat.tools.base import Tool
from layerchat.tools.calculator import MathTool
from layerchat.tools.clock import ClockTool
from layerchat.tools.registry import ToolRegistry
from layerchat.tools.search import SearchTool
from layerchat.tools.weather import WeatherTool
from layerchat.tools.youtube import YouTubeTool


def build_default_tools(settings) -> ToolRegistry:
    """Build the registry in dispatch order: search, clock, youtube, math, weather."""
    return ToolRegistry([
        SearchTool(api_key=settings.SERPER_API_KEY, url=settings.SERPER_URL, timeout=settings.SEARCH_TIMEOUT),
        ClockTool(base_url=settings.TIME_API_URL, timeout=settings.TIME_TIMEOUT),
        YouTubeTool(api_key=settings.YOUTUBE_API_KEY, base_url=settings.YOUTUBE_URL, timeout=settings.YOUTUBE_TIMEOUT),
        MathTool(),
        WeatherTool(base_url=settings.WEATHER_URL, timeout=settings.WEATHER_TIMEOUT),
    ])


__all__ = [
    "Tool",
    "ToolRegistry",
    "SearchTool",
    "ClockTool",
    "YouTubeTool",
    "MathTool",
    "WeatherTool",
    "build_default_tools",
]
