"""Shared pytest fixtures."""

import pytest

from feed_normalizer.config import reset_config


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Isolate tests from a developer's config file and cached settings."""
    monkeypatch.delenv("FEED_NORMALIZER_CONFIG", raising=False)
    reset_config()
    yield
    reset_config()
