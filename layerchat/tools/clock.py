"""
World clock tool backed by WorldTimeAPI, falling back to the system clock.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import re

from layerchat.tools.base import Tool

# Configure logging
logger = logging.getLogger(__name__)

TIMEZONE_MAP: Dict[str, str] = {
    "india": "Asia/Kolkata",
    "usa": "America/New_York",
    "uk": "Europe/London",
    "japan": "Asia/Tokyo",
    "australia": "Australia/Sydney",
    "germany": "Europe/Berlin",
    "france": "Europe/Paris",
    "china": "Asia/Shanghai",
    "brazil": "America/Sao_Paulo",
    "russia": "Europe/Moscow",
    "new york": "America/New_York",
    "los angeles": "America/Los_Angeles",
    "london": "Europe/London",
    "tokyo": "Asia/Tokyo",
    "sydney": "Australia/Sydney",
    "paris": "Europe/Paris",
    "berlin": "Europe/Berlin",
    "moscow": "Europe/Moscow",
    "dubai": "Asia/Dubai",
    "singapore": "Asia/Singapore",
}

_LOCATION = re.compile(r"(?:time|date|clock)\s+(?:in|for|at)\s+([^?.!,]+)|\bin\s+([^?.!,]+)", re.IGNORECASE)


def extract_location(query: str) -> Optional[str]:
    match = _LOCATION.search(query)
    if not match:
        return None
    location = (match[1] or match[2] or "").strip()
    return location or None


def resolve_timezone(location: Optional[str]) -> str:
    """Map a location name to an IANA timezone; unknown places resolve to UTC."""
    if not location:
        return "UTC"
    return TIMEZONE_MAP.get(location.lower(), "UTC")


def format_datetime(moment: datetime) -> Dict[str, str]:
    return {
        "current_time": moment.strftime("%I:%M:%S %p"),
        "current_date": moment.strftime("%A, %B %d, %Y"),
        "datetime": moment.isoformat(),
    }


class ClockTool(Tool):
    name = "clock"
    label = "World Time"
    description = "Get current time, date, and timezone information for any location"
    mentions = ("time", "worldtime")
    trigger = re.compile(
        r"what time|current time|time in|what's the time|\bclock\b|\btimezone\b|date today|today's date|current date",
        re.IGNORECASE,
    )
    default_timeout = 8.0
    source_tag = "worldtimeapi"
    fallback_tag = "system_time_fallback"

    def __init__(self, base_url: str = "http://worldtimeapi.org/api", **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    async def _run(self, query: str) -> Dict[str, Any]:
        location = extract_location(query)
        tz_name = resolve_timezone(location)
        url = f"{self.base_url}/timezone/{tz_name}" if location else f"{self.base_url}/ip"

        async with self.client() as client:
            response = await client.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()

        moment = datetime.fromisoformat(data["datetime"])
        payload = {
            "location": location or data.get("timezone") or "Current location",
            "timezone": data.get("timezone", tz_name),
            "utc_offset": data.get("utc_offset"),
            "abbreviation": data.get("abbreviation"),
            "is_dst": data.get("dst"),
            "day_of_year": data.get("day_of_year"),
            "week_number": data.get("week_number"),
        }
        payload.update(format_datetime(moment))
        return payload

    def _fallback_payload(self, query: str, reason: str) -> Dict[str, Any]:
        location = extract_location(query)
        tz_name = resolve_timezone(location)
        try:
            moment = datetime.now(ZoneInfo(tz_name))
        except ZoneInfoNotFoundError:
            logger.warning(f"Timezone data unavailable for {tz_name}, using UTC")
            tz_name = "UTC"
            moment = datetime.now(timezone.utc)

        payload = {
            "location": location or "System location",
            "timezone": tz_name,
            "message": "Using system time (WorldTimeAPI unavailable)",
        }
        payload.update(format_datetime(moment))
        return payload
