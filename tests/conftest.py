"""
Shared fixtures.
"""
import pytest

from layerchat.core.config import Settings
from tests.fakes import FakeBackend


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, ADMIN_API_KEY="test-admin-key", DEFAULT_MODEL="fake-model")


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend(chunks=["<CONCISE>Four.</CONCISE>", "<EXPLANATION>2 + 2 = 4", "</EXPLANATION>"])
