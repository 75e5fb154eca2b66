"""
Default governance rules and the compiler for declarative rule specs.

Every rule is an independent predicate receiving lowercased query text. A rule
returns False to keep the query on internal knowledge, True to permit external
retrieval, or None to abstain.
"""
from typing import Iterable, List, Optional, Pattern
import re

from layerchat.core.errors import RuleSpecError
from layerchat.core.governance_settings import (
    DEFAULT_RULES,
    EXPLICIT_REALTIME_INDICATORS,
    EXPLICIT_SEARCH_PATTERNS,
    FINANCIAL_PATTERNS,
    FORCE_INTERNET_PATTERNS,
    GENERAL_KNOWLEDGE_PATTERNS,
    IDENTITY_PATTERNS,
    MATH_PATTERNS,
    PROGRAMMING_PATTERNS,
    REALTIME_PATTERNS,
    REQUIRES_LATEST_PHRASES,
    WEATHER_TIME_PATTERNS,
)
from layerchat.policy.engine import GovernanceRule
from layerchat.schemas.governance import RuleSpec


def _compile(patterns: Iterable[str]) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


def _any_match(compiled: List[Pattern], text: str) -> bool:
    return any(p.search(text) for p in compiled)


def _any_phrase(phrases: Iterable[str], text: str) -> bool:
    return any(phrase in text for phrase in phrases)


_IDENTITY = _compile(IDENTITY_PATTERNS)
_MATH = _compile(MATH_PATTERNS)
_GENERAL = _compile(GENERAL_KNOWLEDGE_PATTERNS)
_PROGRAMMING = _compile(PROGRAMMING_PATTERNS)
_REALTIME = _compile(REALTIME_PATTERNS)
_FINANCIAL = _compile(FINANCIAL_PATTERNS)
_WEATHER_TIME = _compile(WEATHER_TIME_PATTERNS)
_EXPLICIT_SEARCH = _compile(EXPLICIT_SEARCH_PATTERNS)
_FORCE_INTERNET = _compile(FORCE_INTERNET_PATTERNS)


def identity_rule(text: str) -> Optional[bool]:
    return False if _any_match(_IDENTITY, text) else None


def math_rule(text: str) -> Optional[bool]:
    return False if _any_match(_MATH, text) else None


def general_knowledge_rule(text: str) -> Optional[bool]:
    if _any_phrase(EXPLICIT_REALTIME_INDICATORS, text):
        return None
    return False if _any_match(_GENERAL, text) else None


def programming_rule(text: str) -> Optional[bool]:
    if _any_phrase(REQUIRES_LATEST_PHRASES, text):
        return None
    return False if _any_match(_PROGRAMMING, text) else None


def realtime_rule(text: str) -> Optional[bool]:
    # Bare time words ("now", "latest") are not enough on their own
    return True if _any_match(_REALTIME, text) else None


def financial_rule(text: str) -> Optional[bool]:
    return True if _any_match(_FINANCIAL, text) else None


def weather_time_rule(text: str) -> Optional[bool]:
    return True if _any_match(_WEATHER_TIME, text) else None


def explicit_search_rule(text: str) -> Optional[bool]:
    return True if _any_match(_EXPLICIT_SEARCH, text) else None


def default_internal_rule(text: str) -> Optional[bool]:
    # Never abstains: acts as the floor of the table
    return _any_match(_FORCE_INTERNET, text)


_RULE_FUNCTIONS: List[tuple] = [
    ("Identity Questions", identity_rule),
    ("Mathematical Calculations", math_rule),
    ("General Knowledge", general_knowledge_rule),
    ("Programming & Technical", programming_rule),
    ("Real-time Data", realtime_rule),
    ("Financial Data", financial_rule),
    ("Weather & Time", weather_time_rule),
    ("Explicit Search Request", explicit_search_rule),
    ("Default Internal Knowledge", default_internal_rule),
]


def default_rules() -> List[GovernanceRule]:
    """
    Build the default rule table in registration order.

    Returns:
        List of GovernanceRule objects
    """
    rules = []
    for name, func in _RULE_FUNCTIONS:
        description, priority = DEFAULT_RULES[name]
        rules.append(GovernanceRule(name=name, description=description, priority=priority, evaluate=func))
    return rules


def rule_from_spec(spec: RuleSpec) -> GovernanceRule:
    """
    Compile a declarative rule spec into a GovernanceRule.

    Args:
        spec: Rule spec received through the admin surface

    Returns:
        GovernanceRule whose verdict is ``spec.verdict`` when any pattern
        matches and none of the ``unless`` phrases is present

    Raises:
        RuleSpecError: If a pattern does not compile
    """
    try:
        compiled = _compile(spec.patterns)
    except re.error as e:
        raise RuleSpecError(f"Invalid pattern in rule {spec.name!r}: {e}") from e
    unless = [phrase.lower() for phrase in spec.unless]
    verdict = spec.verdict

    def evaluate(text: str) -> Optional[bool]:
        if unless and _any_phrase(unless, text):
            return None
        return verdict if _any_match(compiled, text) else None

    return GovernanceRule(
        name=spec.name,
        description=spec.description or f"Custom rule {spec.name}",
        priority=spec.priority,
        evaluate=evaluate,
    )
