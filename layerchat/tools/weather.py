"""
Weather tool backed by wttr.in (no API key required).
"""
from typing import Any, Dict, List
from urllib.parse import quote
import logging
import re

from layerchat.tools.base import Tool

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "London"
_NOT_LOCATIONS = {"like", "today", "now", "tomorrow", "forecast", "here"}

_LOCATION_PATTERNS = [
    re.compile(r"(?:weather in|weather for|temperature in|forecast for|forecast in)\s*([^,.\n?]+)", re.IGNORECASE),
    re.compile(r"@?weather\s+(?:in\s+)?(.+?)(?:\?|$)", re.IGNORECASE),
]


def extract_location(query: str) -> str:
    """Pull the location out of a weather query, defaulting to London."""
    for pattern in _LOCATION_PATTERNS:
        match = pattern.search(query)
        if match and match[1].strip() and match[1].strip().lower() not in _NOT_LOCATIONS:
            return match[1].strip()
    return DEFAULT_LOCATION


def _first_value(items: List[Dict[str, Any]], default: str = "") -> str:
    if items and isinstance(items[0], dict):
        return items[0].get("value", default)
    return default


class WeatherTool(Tool):
    name = "weather"
    label = "Weather"
    description = "Get current weather and forecasts for any location"
    mentions = ("forecast",)
    trigger = re.compile(r"@weather|weather in|\btemperature\b|\bforecast\b|\bclimate\b|how's the weather", re.IGNORECASE)
    default_timeout = 8.0
    source_tag = "wttr_weather_api"
    fallback_tag = "weather_fallback"

    def __init__(self, base_url: str = "https://wttr.in", **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    async def _run(self, query: str) -> Dict[str, Any]:
        location = extract_location(query)
        async with self.client() as client:
            response = await client.get(
                f"{self.base_url}/{quote(location)}",
                params={"format": "j1"},
                headers={"User-Agent": "LayerChat/1.0"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

        current = data["current_condition"][0]
        area = (data.get("nearest_area") or [{}])[0]
        forecast = []
        for day in (data.get("weather") or [])[:3]:
            hourly = (day.get("hourly") or [{}])[0]
            forecast.append({
                "date": day.get("date"),
                "max_temp": f"{day.get('maxtempC')}°C ({day.get('maxtempF')}°F)",
                "min_temp": f"{day.get('mintempC')}°C ({day.get('mintempF')}°F)",
                "condition": _first_value(hourly.get("weatherDesc"), "Unknown"),
                "chance_of_rain": f"{hourly.get('chanceofrain', 0)}%",
            })

        return {
            "location": _first_value(area.get("areaName"), location) or location,
            "country": _first_value(area.get("country")),
            "region": _first_value(area.get("region")),
            "current": {
                "temperature": f"{current.get('temp_C')}°C ({current.get('temp_F')}°F)",
                "feels_like": f"{current.get('FeelsLikeC')}°C ({current.get('FeelsLikeF')}°F)",
                "condition": _first_value(current.get("weatherDesc"), "Unknown"),
                "humidity": f"{current.get('humidity')}%",
                "wind": f"{current.get('windspeedKmph')} km/h {current.get('winddir16Point', '')}".strip(),
                "pressure": f"{current.get('pressure')} mb",
                "visibility": f"{current.get('visibility')} km",
                "uv_index": current.get("uvIndex"),
            },
            "forecast": forecast,
            "source": "wttr.in (World Weather Online)",
        }

    def _fallback_payload(self, query: str, reason: str) -> Dict[str, Any]:
        return {
            "location": extract_location(query),
            "current": {"temperature": "N/A", "condition": "Unable to fetch current conditions"},
            "message": "Weather data unavailable - please try again later",
            "suggestion": 'You can check the weather by searching "weather in [location]" in a web browser',
        }
