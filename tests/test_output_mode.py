"""
Tests for output-mode classification.
"""
import pytest

from layerchat.prompts.output_mode import (
    CONCISE_TAG,
    EXPLANATION_TAG,
    MODE_CONTRACTS,
    classify_output_mode,
    is_procedural_query,
)
from layerchat.schemas.chat import OutputMode


@pytest.mark.parametrize("query,expected", [
    ("2 + 2", OutputMode.CONCISE_ONLY),
    ("what is 15% of 200?", OutputMode.CONCISE_ONLY),
    ("hello there", OutputMode.CONCISE_ONLY),
    ("What is the capital of France?", OutputMode.CONCISE_ONLY),
    ("Why does caching improve performance and how would you design an eviction policy?", OutputMode.DUAL),
    ("Tell me something interesting about the Roman Empire please", OutputMode.DUAL),
    ("Which city is bigger? And which one is older?", OutputMode.DUAL),
    ("Can I use Redis for session storage?", OutputMode.EXPLANATION_ONLY),
    ("Should I use Postgres or MySQL", OutputMode.EXPLANATION_ONLY),
    ("Explain recursion, explanation only", OutputMode.EXPLANATION_ONLY),
])
def test_classification(query, expected):
    assert classify_output_mode(query) == expected


def test_long_query_is_dual():
    query = "I have a list of numbers and I would like to know the average " * 3
    assert len(query) > 120
    assert classify_output_mode(query) == OutputMode.DUAL


def test_classification_is_idempotent():
    queries = ["2 + 2", "Explain recursion", "Can we use Kafka for logs?", "hi"]
    assert [classify_output_mode(q) for q in queries] == [classify_output_mode(q) for q in queries]


def test_capability_wins_over_reasoning():
    # "how" is a reasoning cue, but the integration intent decides first
    assert classify_output_mode("How do I integrate Stripe with Django?") == OutputMode.EXPLANATION_ONLY


@pytest.mark.parametrize("query,expected", [
    ("How to install numpy on Windows", True),
    ("Calculate the area of a circle", True),
    ("Capital of France", False),
])
def test_procedural(query, expected):
    assert is_procedural_query(query) is expected


def test_mode_contracts():
    assert MODE_CONTRACTS[OutputMode.DUAL].required_tags == (CONCISE_TAG, EXPLANATION_TAG)
    assert MODE_CONTRACTS[OutputMode.CONCISE_ONLY].forbidden_tags == (EXPLANATION_TAG,)
    assert MODE_CONTRACTS[OutputMode.EXPLANATION_ONLY].required_tags == ()
    assert set(MODE_CONTRACTS) == set(OutputMode)
