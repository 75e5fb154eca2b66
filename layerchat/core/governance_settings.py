"""
Configuration tables for the governance rules.

Each default rule reads its patterns from here so that the tables can be
reviewed and tuned without touching rule logic.
"""
from typing import Dict, List

# Identity and meta questions are answered from internal knowledge
IDENTITY_PATTERNS = [
    r"who are you",
    r"what are you",
    r"tell me about yourself",
    r"your name",
    r"your capabilities",
    r"what can you do",
    r"how do you work",
    r"what is ai\b",
    r"what is artificial intelligence",
    r"define ",
    r"explain ",
    r"how does .* work",
]

MATH_PATTERNS = [
    r"calculate",
    r"^solve",
    r"math",
    r"percentage",
    r"percent",
    r"\d+%",
    r"multiply",
    r"divide",
    r"addition",
    r"subtraction",
    r"equation",
    r"formula",
    r"\d+\s*[\+\-\*/×÷^]\s*\d+",
    r"^\d+.*of.*\d+",
    r"what is \d",
    r"how much is \d",
]

GENERAL_KNOWLEDGE_PATTERNS = [
    r"what is a ",
    r"what are ",
    r"how to ",
    r"explain the concept",
    r"what does .* mean",
    r"difference between",
    r"history of",
    r"definition of",
    r"meaning of",
    r"examples of",
    r"types of",
    r"advantages of",
    r"disadvantages of",
    r"benefits of",
    r"process of",
    r"steps to",
    r"why does",
    r"purpose of",
]

# Phrases that override the general-knowledge rule
EXPLICIT_REALTIME_INDICATORS = [
    "current price", "latest news", "recent events", "live updates",
    "breaking news", "today's", "this week's", "real-time",
    "as of now", "up to date", "most recent",
]

PROGRAMMING_PATTERNS = [
    r"how to code",
    r"write a function",
    r"javascript",
    r"typescript",
    r"python",
    r"react",
    r"algorithm",
    r"data structure",
    r"programming",
    r"software development",
]

REQUIRES_LATEST_PHRASES = [
    "latest version", "newest", "recent updates", "current version",
    "just released", "announcement", "breaking changes",
]

REALTIME_PATTERNS = [
    r"current price of",
    r"latest news about",
    r"recent events",
    r"breaking news",
    r"real-time",
    r"live updates",
    r"as of (today|now)",
    r"what's happening (now|today)",
    r"latest developments",
    r"most recent",
    r"up to date",
    r"current status of",
    r"today's",
    r"this week's",
    r"trending now",
    r"current market",
    r"live data",
]

FINANCIAL_PATTERNS = [
    r"price",
    r"cost",
    r"market",
    r"stock",
    r"crypto",
    r"bitcoin",
    r"ethereum",
    r"trading",
    r"exchange rate",
    r"currency",
]

WEATHER_TIME_PATTERNS = [
    r"weather",
    r"temperature",
    r"forecast",
    r"what time",
    r"current time",
    r"time in",
    r"timezone",
]

EXPLICIT_SEARCH_PATTERNS = [
    r"@search",
    r"search for",
    r"look up",
    r"find information",
    r"google",
    r"internet search",
]

FORCE_INTERNET_PATTERNS = [
    r"search the web",
    r"browse the internet",
    r"check online",
    r"find on google",
    r"current news",
    r"breaking.*news",
    r"live.*update",
]

# Rule metadata: name -> (description, priority)
DEFAULT_RULES: Dict[str, tuple] = {
    "Identity Questions": (
        "Questions about AI identity, capabilities, or general knowledge should use internal knowledge",
        100,
    ),
    "Mathematical Calculations": (
        "All math calculations, percentage calculations, and basic arithmetic use internal knowledge",
        100,
    ),
    "General Knowledge": (
        "Common facts, definitions, and educational content use internal knowledge",
        95,
    ),
    "Programming & Technical": (
        "Programming questions and technical concepts use internal knowledge unless asking for latest versions",
        85,
    ),
    "Real-time Data": (
        "Only explicitly current, breaking, or real-time information requests",
        85,
    ),
    "Financial Data": (
        "Stock prices, crypto prices, market data, and financial information",
        75,
    ),
    "Weather & Time": (
        "Weather conditions and current time queries",
        70,
    ),
    "Explicit Search Request": (
        "User explicitly asks to search or look something up",
        95,
    ),
    "Default Internal Knowledge": (
        "Default to internal knowledge unless explicitly requesting real-time data",
        10,
    ),
}

GOVERNANCE_MODES: List[Dict[str, str]] = [
    {
        "value": "smart",
        "label": "Smart Mode",
        "description": "Governance rules decide per query (recommended)",
    },
    {
        "value": "internal",
        "label": "Internal Only",
        "description": "Use internal knowledge when no rule decides",
    },
    {
        "value": "internet",
        "label": "Internet Preferred",
        "description": "Prefer internet search when no rule decides",
    },
]
