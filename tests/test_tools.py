"""
Tests for the tool adapters, with remote services replaced by httpx mock transports.
"""
import json
import time

import httpx
import pytest

from layerchat.tools.calculator import MathTool, clean_expression, format_number, safe_eval
from layerchat.tools.clock import ClockTool, extract_location as clock_location, resolve_timezone
from layerchat.tools.search import SearchTool, enhance_query
from layerchat.tools.weather import WeatherTool, extract_location as weather_location
from layerchat.tools.youtube import YouTubeTool


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def failing_handler(request):
    raise httpx.ConnectError("connection refused", request=request)


class TestCalculator:
    @pytest.mark.parametrize("text,expected", [
        ("calculate 15% of 200", "(15 / 100) * 200"),
        ("what is 2 ^ 10?", "2 ** 10"),
        ("7 times 6", "7 * 6"),
        ("square root of 16", "sqrt(16)"),
        ("@math 9 ÷ 3", "9 / 3"),
    ])
    def test_clean_expression(self, text, expected):
        assert clean_expression(text) == expected

    @pytest.mark.parametrize("expression,expected", [
        ("2 + 2", 4.0),
        ("(15 / 100) * 200", 30.0),
        ("2 ** 10", 1024.0),
        ("sqrt(16)", 4.0),
        ("-3 + 1", -2.0),
        ("7 // 2", 3.0),
    ])
    def test_safe_eval(self, expression, expected):
        assert safe_eval(expression) == expected

    def test_trigonometry_in_degrees(self):
        assert safe_eval("sin(30)") == pytest.approx(0.5)

    @pytest.mark.parametrize("expression", [
        "__import__('os').system('ls')",
        "1 / 0",
        "2 ** 100000",
        "(9 ** 99) ** 99",
        "10 ** 309",
        "open('x')",
        "",
        "2 +",
    ])
    def test_rejected_expressions(self, expression):
        with pytest.raises(ValueError):
            safe_eval(expression)

    def test_format_number(self):
        assert format_number(4.0) == "4"
        assert format_number(1 / 3) == "0.333333"

    @pytest.mark.asyncio
    async def test_invoke(self):
        result = await MathTool().invoke("what is 15% of 200")

        assert result.degraded is False
        assert result.payload["formatted"] == "30"
        assert result.source_tag == "math_calculator"

    @pytest.mark.asyncio
    async def test_invalid_input_degrades(self):
        result = await MathTool().invoke("what is love")

        assert result.degraded is True
        assert result.source_tag == "math_fallback"
        assert result.payload["examples"]

    @pytest.mark.asyncio
    async def test_nested_powers_degrade_without_computing(self):
        started = time.monotonic()

        result = await MathTool().invoke("calculate ((9^99)^99)^999")

        assert result.degraded is True
        assert time.monotonic() - started < 1.0


class TestSearch:
    @pytest.mark.asyncio
    async def test_results_mapped(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["key"] = request.headers["X-API-KEY"]
            return httpx.Response(200, json={
                "organic": [
                    {"title": "Rust 1.80", "link": "https://blog.example.org/rust", "snippet": "Released.", "position": 1},
                ],
                "answerBox": {"answer": "1.80", "extra": "dropped"},
                "searchInformation": {"totalResults": 1200},
            })

        async with mock_client(handler) as client:
            tool = SearchTool(api_key="secret", http_client=client)
            result = await tool.invoke("@search rust release")

        assert seen["key"] == "secret"
        assert seen["body"] == {"q": "rust release", "num": 6}
        assert result.degraded is False
        assert result.payload["results"][0]["url"] == "https://blog.example.org/rust"
        assert result.payload["answer_box"] == {"answer": "1.80", "snippet": None, "title": None, "link": None}
        assert result.payload["total_results"] == 1200

    @pytest.mark.asyncio
    async def test_missing_key_degrades_without_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        async with mock_client(handler) as client:
            result = await SearchTool(api_key="", http_client=client).invoke("bitcoin price")

        assert result.degraded is True
        assert result.source_tag == "search_fallback"
        assert result.payload["results"] == []
        assert "Serper API key" in result.payload["error"]

    @pytest.mark.asyncio
    async def test_http_error_degrades(self):
        async with mock_client(lambda request: httpx.Response(500)) as client:
            result = await SearchTool(api_key="secret", http_client=client).invoke("bitcoin price")

        assert result.degraded is True

    def test_enhance_query(self):
        assert enhance_query("bitcoin price") == "current bitcoin price latest price today USD"
        assert enhance_query("@search acme company") == "acme company latest news"


class TestWeather:
    @pytest.mark.parametrize("query,expected", [
        ("weather in Tokyo", "Tokyo"),
        ("@weather Paris?", "Paris"),
        ("forecast for New York, please", "New York"),
        ("what's the weather like", "London"),
    ])
    def test_extract_location(self, query, expected):
        assert weather_location(query) == expected

    @pytest.mark.asyncio
    async def test_current_conditions(self):
        def handler(request):
            assert request.url.path == "/Tokyo"
            assert request.url.params["format"] == "j1"
            return httpx.Response(200, json={
                "current_condition": [{
                    "temp_C": "21", "temp_F": "70", "FeelsLikeC": "20", "FeelsLikeF": "68",
                    "weatherDesc": [{"value": "Sunny"}], "humidity": "40",
                    "windspeedKmph": "11", "winddir16Point": "NE", "pressure": "1015",
                    "visibility": "10", "uvIndex": "5",
                }],
                "nearest_area": [{"areaName": [{"value": "Tokyo"}], "country": [{"value": "Japan"}]}],
                "weather": [{
                    "date": "2024-07-26", "maxtempC": "27", "maxtempF": "81", "mintempC": "19", "mintempF": "66",
                    "hourly": [{"weatherDesc": [{"value": "Clear"}], "chanceofrain": "10"}],
                }],
            })

        async with mock_client(handler) as client:
            result = await WeatherTool(http_client=client).invoke("weather in Tokyo")

        assert result.payload["country"] == "Japan"
        assert result.payload["current"]["temperature"] == "21°C (70°F)"
        assert result.payload["forecast"][0]["chance_of_rain"] == "10%"

    @pytest.mark.asyncio
    async def test_unreachable_service_degrades(self):
        async with mock_client(failing_handler) as client:
            result = await WeatherTool(http_client=client).invoke("weather in Oslo")

        assert result.degraded is True
        assert result.payload["location"] == "Oslo"
        assert result.payload["current"]["temperature"] == "N/A"


class TestClock:
    def test_location_and_timezone(self):
        assert clock_location("what time is it in Tokyo?") == "Tokyo"
        assert clock_location("what time is it") is None
        assert resolve_timezone("Tokyo") == "Asia/Tokyo"
        assert resolve_timezone("Atlantis") == "UTC"
        assert resolve_timezone(None) == "UTC"

    @pytest.mark.asyncio
    async def test_remote_time(self):
        def handler(request):
            assert request.url.path == "/api/timezone/Asia/Tokyo"
            return httpx.Response(200, json={
                "datetime": "2024-07-26T18:30:00.000000+09:00",
                "timezone": "Asia/Tokyo",
                "utc_offset": "+09:00",
                "abbreviation": "JST",
                "dst": False,
            })

        async with mock_client(handler) as client:
            result = await ClockTool(http_client=client).invoke("what time is it in Tokyo")

        assert result.degraded is False
        assert result.payload["current_time"] == "06:30:00 PM"
        assert result.payload["current_date"] == "Friday, July 26, 2024"
        assert result.payload["utc_offset"] == "+09:00"

    @pytest.mark.asyncio
    async def test_fallback_uses_system_time(self):
        async with mock_client(failing_handler) as client:
            result = await ClockTool(http_client=client).invoke("what time is it")

        assert result.degraded is True
        assert result.source_tag == "system_time_fallback"
        assert result.payload["timezone"] == "UTC"
        assert result.payload["current_time"]
        assert result.payload["message"] == "Using system time (WorldTimeAPI unavailable)"


class TestYouTube:
    @pytest.mark.asyncio
    async def test_missing_key_suggests_search_link(self):
        result = await YouTubeTool().invoke("@youtube sourdough starter")

        assert result.degraded is True
        assert result.payload["suggestion"] == "https://www.youtube.com/results?search_query=sourdough+starter"

    @pytest.mark.asyncio
    async def test_videos_mapped(self):
        def handler(request):
            assert request.url.params["q"] == "sourdough starter"
            return httpx.Response(200, json={
                "items": [
                    {"id": {"videoId": "abc123"}, "snippet": {"title": "Starter 101", "channelTitle": "Bakes"}},
                    {"id": {}, "snippet": {"title": "Channel, not a video"}},
                ],
                "pageInfo": {"totalResults": 2},
            })

        async with mock_client(handler) as client:
            result = await YouTubeTool(api_key="k", http_client=client).invoke("@youtube sourdough starter")

        assert [v["url"] for v in result.payload["videos"]] == ["https://www.youtube.com/watch?v=abc123"]
